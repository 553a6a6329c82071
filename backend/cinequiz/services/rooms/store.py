from dataclasses import dataclass
from functools import wraps
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cinequiz import db
from cinequiz.errors import Conflict, StoreUnavailable
from cinequiz.models import MultiplayerRoom, RoomParticipant


@dataclass
class RoomRecord:
    """Read-only snapshot of a room row handed to the coordinator."""
    id: str
    name: str
    host_id: str
    max_players: int = 8
    current_players: int = 0
    category: Optional[str] = None
    time_per_question: int = 30
    is_private: bool = False
    password_hash: Optional[str] = None
    is_active: bool = True
    is_started: bool = False

    @property
    def status(self) -> str:
        if not self.is_active:
            return 'finished'
        if self.is_started:
            return 'in_progress'
        return 'waiting'

    @classmethod
    def from_model(cls, room: MultiplayerRoom) -> 'RoomRecord':
        return cls(
            id=room.id,
            name=room.name,
            host_id=room.host_id,
            max_players=room.max_players or 0,
            current_players=room.current_players or 0,
            category=room.category,
            time_per_question=room.time_per_question or 0,
            is_private=bool(room.is_private),
            password_hash=room.password_hash,
            is_active=bool(room.is_active),
            is_started=bool(room.is_started),
        )


def _storage_call(fn):
    """Roll back and re-raise database failures as StoreUnavailable."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable(f'{fn.__name__} failed: {exc.__class__.__name__}') from exc
    return wrapper


class SqlRoomStore:
    """Room and participant persistence on top of Flask-SQLAlchemy."""

    @_storage_call
    def get_room(self, room_id: str) -> Optional[RoomRecord]:
        room = MultiplayerRoom.query.filter_by(id=room_id).first()
        return RoomRecord.from_model(room) if room else None

    @_storage_call
    def get_participants(self, room_id: str) -> List[dict]:
        rows = (
            RoomParticipant.query.filter_by(room_id=room_id)
            .order_by(RoomParticipant.joined_at.asc())
            .all()
        )
        return [p.to_dict() for p in rows]

    @_storage_call
    def get_participant(self, room_id: str, user_id: str) -> Optional[dict]:
        row = RoomParticipant.query.filter_by(room_id=room_id, user_id=user_id).first()
        return row.to_dict() if row else None

    def create_participant(self, room_id: str, user_id: str) -> dict:
        try:
            row = RoomParticipant(room_id=room_id, user_id=user_id)
            db.session.add(row)
            db.session.commit()
            return row.to_dict()
        except IntegrityError as exc:
            db.session.rollback()
            # Either a concurrent join won the unique (room, user) row or the
            # room/user reference is bad; only the first is a resume.
            if RoomParticipant.query.filter_by(room_id=room_id, user_id=user_id).first():
                raise Conflict('participant already exists') from exc
            raise StoreUnavailable('create_participant failed: IntegrityError') from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable(f'create_participant failed: {exc.__class__.__name__}') from exc

    @_storage_call
    def delete_participant(self, room_id: str, user_id: str) -> bool:
        deleted = RoomParticipant.query.filter_by(room_id=room_id, user_id=user_id).delete()
        db.session.commit()
        return deleted > 0

    @_storage_call
    def set_current_player_count(self, room_id: str, count: int) -> None:
        MultiplayerRoom.query.filter_by(id=room_id).update({'current_players': count})
        db.session.commit()

    @_storage_call
    def set_host(self, room_id: str, user_id: str) -> None:
        MultiplayerRoom.query.filter_by(id=room_id).update({'host_id': user_id})
        db.session.commit()

    @_storage_call
    def set_started(self, room_id: str) -> None:
        MultiplayerRoom.query.filter_by(id=room_id).update({'is_started': True})
        db.session.commit()

    @_storage_call
    def deactivate(self, room_id: str) -> None:
        MultiplayerRoom.query.filter_by(id=room_id).update({'is_active': False})
        db.session.commit()

    @_storage_call
    def add_score(self, room_id: str, user_id: str, points: int) -> None:
        RoomParticipant.query.filter_by(room_id=room_id, user_id=user_id).update(
            {'score': RoomParticipant.score + points}
        )
        db.session.commit()

    @_storage_call
    def get_scores(self, room_id: str) -> List[dict]:
        rows = (
            RoomParticipant.query.filter_by(room_id=room_id)
            .order_by(RoomParticipant.score.desc(), RoomParticipant.joined_at.asc())
            .all()
        )
        return [{'userId': p.user_id, 'score': p.score or 0} for p in rows]
