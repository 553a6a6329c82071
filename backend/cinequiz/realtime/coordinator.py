"""Multiplayer room coordination.

The coordinator applies client messages to a room: it validates them
against the durable room state, keeps the connection registry in step,
persists participant counts and fans the resulting events out through the
broadcaster.

Room lifecycle: ``waiting`` -> ``in_progress`` -> ``finished``. The state
is derived from the durable room row (``is_started`` / ``is_active``); the
question batch of a running game lives in memory only.

Every operation on a room runs under that room's lock, so registry updates
and broadcasts for one room happen in arrival order while other rooms run
in parallel. Two room locks are never held at the same time.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from cinequiz import messages
from cinequiz.errors import (
    Conflict,
    Forbidden,
    InvalidMessage,
    InvalidState,
    NotFound,
    RoomError,
    StoreUnavailable,
)
from cinequiz.messages import (
    GameStart,
    JoinRoom,
    LeaveRoom,
    NextQuestion,
    SubmitAnswer,
    parse_client_message,
)


class RoomLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def for_room(self, room_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.Lock()
            return lock


@dataclass
class GameProgress:
    host_id: str
    questions: List[dict]
    time_per_question: int = 0
    index: int = 0
    answered: Set[Tuple[str, str]] = field(default_factory=set)


class RoomCoordinator:
    def __init__(self, registry, broadcaster, store, question_bank, answer_checker=None,
                 password_checker=None, timers=None, batch_size: int = 10,
                 points_per_correct: int = 10, logger=None):
        self.registry = registry
        self.broadcaster = broadcaster
        self.store = store
        self.question_bank = question_bank
        self.answer_checker = answer_checker or question_bank
        self.password_checker = password_checker
        self.timers = timers
        self.batch_size = batch_size
        self.points_per_correct = points_per_correct
        self.logger = logger or logging.getLogger(__name__)
        self._locks = RoomLocks()
        self._games: Dict[str, GameProgress] = {}

    # ---- Message entry point ----

    def handle_message(self, connection, raw) -> None:
        """Parse and apply one client frame; errors go back to the sender only."""
        room_id = None
        try:
            message = parse_client_message(raw)
            room_id = message.room_id
            self.dispatch(connection, message)
        except StoreUnavailable as exc:
            self.logger.exception(f"[store-error] room={room_id} {exc.message}")
            self.broadcaster.send(connection, messages.error(exc, room_id))
        except RoomError as exc:
            self.logger.info(f"[rejected] room={room_id} code={exc.code} {exc.message}")
            self.broadcaster.send(connection, messages.error(exc, room_id))

    def dispatch(self, connection, message) -> None:
        if isinstance(message, JoinRoom):
            self.join(message.room_id, message.user_id, connection, password=message.password)
        elif isinstance(message, LeaveRoom):
            self._check_speaks_for(connection, message.user_id)
            self.leave(message.room_id, message.user_id)
        elif isinstance(message, GameStart):
            user_id = self._sender(connection, message.user_id)
            self.start_game(message.room_id, user_id, category=message.category)
        elif isinstance(message, SubmitAnswer):
            self._check_speaks_for(connection, message.user_id, required=True)
            self.submit_answer(message.room_id, message.user_id, message.question_id,
                               message.answer, connection)
        elif isinstance(message, NextQuestion):
            user_id = self._sender(connection, message.user_id)
            self.advance_question(message.room_id, user_id, message.payload)
        else:
            raise InvalidMessage(f'unhandled message {type(message).__name__}')

    # ---- Membership ----

    def join(self, room_id: str, user_id: str, connection, password: Optional[str] = None) -> List[dict]:
        previous_room = self.registry.room_of(user_id)
        previous_user = self.registry.user_for(connection)
        moving = previous_room not in (None, room_id) or previous_user not in (None, user_id)
        if moving:
            # Validate before leaving anything so a bad join changes nothing
            self._require_joinable(room_id, user_id, password)
            if previous_room not in (None, room_id):
                self._leave_quietly(previous_room, user_id)
            if previous_user not in (None, user_id):
                other_room = self.registry.room_of(previous_user)
                if other_room is not None:
                    self._leave_quietly(other_room, previous_user)

        with self._locks.for_room(room_id):
            raced = self.registry.room_of(user_id)
            if raced not in (None, previous_room, room_id):
                # A concurrent join attached this user elsewhere after the move
                # check; attach below moves the socket but that room keeps the row.
                self.logger.warning(f"[join-race] room={room_id} user={user_id} other={raced}")
            return self._join_locked(room_id, user_id, password, connection)

    def enroll(self, room_id: str, user_id: str, password: Optional[str] = None) -> List[dict]:
        """Join without a socket: create the row, recount and notify the room.

        Used by the HTTP join route. The user starts receiving events once a
        socket joins the same room.
        """
        with self._locks.for_room(room_id):
            return self._join_locked(room_id, user_id, password, None)

    def leave(self, room_id: str, user_id: str) -> bool:
        """Remove the user from the room. Returns False when there was nothing to leave."""
        with self._locks.for_room(room_id):
            return self._leave_locked(room_id, user_id)

    def disconnect(self, connection) -> bool:
        """Transport close: same effect as leave for whoever this connection belonged to."""
        user_id = self.registry.user_for(connection)
        if user_id is None:
            return False
        room_id = self.registry.room_of(user_id)
        if room_id is None:
            return False
        with self._locks.for_room(room_id):
            # The user may have reconnected or moved while we waited
            if self.registry.user_for(connection) != user_id or self.registry.room_of(user_id) != room_id:
                return False
            self.logger.info(f"[disconnect] room={room_id} user={user_id}")
            return self._leave_locked(room_id, user_id)

    # ---- Game flow ----

    def start_game(self, room_id: str, user_id: str, category: Optional[str] = None) -> List[dict]:
        with self._locks.for_room(room_id):
            room = self.store.get_room(room_id)
            if room is None:
                raise NotFound(f'room {room_id} not found')
            if room.status != 'waiting':
                raise InvalidState(f'room is {room.status}')
            if user_id != room.host_id:
                raise Forbidden('only the host can start the game')
            questions = self.question_bank.get_question_batch(self.batch_size, category or room.category)
            if not questions:
                raise NotFound('no questions available for this category')
            self.store.set_started(room_id)
            game = GameProgress(host_id=room.host_id, questions=questions,
                                time_per_question=room.time_per_question or 0)
            self._games[room_id] = game
            self.logger.info(f"[game-start] room={room_id} questions={len(questions)}")
            self.broadcaster.broadcast(room_id, messages.game_started(room_id, questions))
            self._schedule_timer(room_id, game)
            return questions

    def submit_answer(self, room_id: str, user_id: str, question_id: str, answer: str, connection) -> bool:
        with self._locks.for_room(room_id):
            game = self._require_game(room_id)
            if self.registry.room_of(user_id) != room_id:
                raise Forbidden('join the room before answering')
            if not any(q.get('id') == question_id for q in game.questions):
                raise NotFound(f'question {question_id} is not part of this game')
            key = (user_id, question_id)
            if key in game.answered:
                raise InvalidState('question already answered')
            is_correct = bool(self.answer_checker.check_answer(question_id, answer))
            game.answered.add(key)
            score_error = None
            if is_correct and self.points_per_correct:
                try:
                    self.store.add_score(room_id, user_id, self.points_per_correct)
                except StoreUnavailable as exc:
                    score_error = exc
            # Correctness goes to the submitter only; the room just sees progress
            self.broadcaster.send(connection, messages.answer_result(room_id, question_id, is_correct))
            self.broadcaster.broadcast(room_id, messages.player_answered(room_id, user_id, question_id))
            if score_error is not None:
                raise score_error
            return is_correct

    def advance_question(self, room_id: str, user_id: str, payload: Optional[dict] = None) -> Optional[int]:
        """Move the room to the next question. Returns the new index, or None when the game ended."""
        with self._locks.for_room(room_id):
            game = self._require_game(room_id)
            if user_id != game.host_id:
                raise Forbidden('only the host can advance questions')
            return self._advance_locked(room_id, game, payload or {})

    def timer_expired(self, room_id: str, question_index: int) -> None:
        try:
            with self._locks.for_room(room_id):
                game = self._games.get(room_id)
                if game is None or game.index != question_index:
                    return
                self._advance_locked(room_id, game, {})
        except RoomError as exc:
            self.logger.error(f"[timer-error] room={room_id} code={exc.code} {exc.message}")

    def game_progress(self, room_id: str) -> Optional[GameProgress]:
        return self._games.get(room_id)

    # ---- Helpers (callers hold the room lock unless noted) ----

    def _require_joinable(self, room_id: str, user_id: str, password: Optional[str]):
        room = self.store.get_room(room_id)
        if room is None or not room.is_active:
            raise NotFound(f'room {room_id} not found')
        existing = self.store.get_participant(room_id, user_id)
        if existing is None:
            if room.status == 'in_progress':
                raise InvalidState('game already started')
            if room.is_private and room.password_hash and not self._password_ok(room.password_hash, password):
                raise Forbidden('wrong room password')
        return room, existing

    def _join_locked(self, room_id: str, user_id: str, password: Optional[str], connection) -> List[dict]:
        room, existing = self._require_joinable(room_id, user_id, password)
        if existing is None:
            try:
                self.store.create_participant(room_id, user_id)
            except Conflict:
                self.logger.info(f"[join-resume] room={room_id} user={user_id} row already present")
        else:
            self.logger.info(f"[join-resume] room={room_id} user={user_id}")
        if connection is not None:
            self.registry.attach(room_id, user_id, connection)
        participants = self._sync_player_count(room_id)
        if len(participants) > (room.max_players or 0):
            self.logger.info(f"[over-capacity] room={room_id} players={len(participants)} max={room.max_players}")
        self.logger.info(f"[join] room={room_id} user={user_id} players={len(participants)}")
        self.broadcaster.broadcast(room_id, messages.user_joined(room_id, user_id, participants))
        return participants

    def _password_ok(self, password_hash: str, password: Optional[str]) -> bool:
        if not password or self.password_checker is None:
            return False
        return bool(self.password_checker(password_hash, password))

    def _leave_locked(self, room_id: str, user_id: str) -> bool:
        attached_here = self.registry.room_of(user_id) == room_id
        store_error = None
        try:
            removed = self.store.delete_participant(room_id, user_id)
        except StoreUnavailable as exc:
            store_error = exc
            removed = False
        if store_error is not None and not attached_here:
            # Unknown whether the row existed; nobody was here to announce
            raise store_error
        if attached_here:
            # Always stop delivering to someone who left, even if the store failed
            self.registry.detach(user_id)
        if store_error is None and not removed and not attached_here:
            return False
        try:
            participants = self._sync_player_count(room_id)
        except StoreUnavailable as exc:
            raise store_error or exc
        self.logger.info(f"[leave] room={room_id} user={user_id} players={len(participants)}")
        self.broadcaster.broadcast(room_id, messages.user_left(room_id, user_id, participants))
        if store_error is not None:
            raise store_error
        if participants:
            self._hand_over_host(room_id, user_id, participants)
        elif room_id in self._games:
            self._finish_locked(room_id)
        return True

    def _hand_over_host(self, room_id: str, leaving_id: str, participants: List[dict]) -> None:
        room = self.store.get_room(room_id)
        if room is None or not room.is_active or room.host_id != leaving_id:
            return
        # Earliest remaining participant takes over
        new_host = participants[0]['userId']
        self.store.set_host(room_id, new_host)
        game = self._games.get(room_id)
        if game is not None:
            game.host_id = new_host
        self.logger.info(f"[host-change] room={room_id} from={leaving_id} to={new_host}")
        self.broadcaster.broadcast(room_id, messages.host_changed(room_id, new_host))

    def _leave_quietly(self, room_id: str, user_id: str) -> None:
        try:
            self.leave(room_id, user_id)
        except StoreUnavailable as exc:
            self.logger.exception(f"[store-error] room={room_id} user={user_id} leave on move: {exc.message}")

    def _sync_player_count(self, room_id: str) -> List[dict]:
        participants = self.store.get_participants(room_id)
        self.store.set_current_player_count(room_id, len(participants))
        return participants

    def _require_game(self, room_id: str) -> GameProgress:
        game = self._games.get(room_id)
        if game is not None:
            return game
        room = self.store.get_room(room_id)
        if room is None:
            raise NotFound(f'room {room_id} not found')
        raise InvalidState(f'room is {room.status}')

    def _advance_locked(self, room_id: str, game: GameProgress, payload: dict) -> Optional[int]:
        requested = payload.get('questionIndex')
        if requested is None:
            index = game.index + 1
        elif isinstance(requested, int) and not isinstance(requested, bool) and requested >= 0:
            index = requested
        else:
            raise InvalidMessage('questionIndex must be a non-negative integer')
        if self.timers is not None:
            self.timers.cancel(room_id)
        if index >= len(game.questions):
            self._finish_locked(room_id)
            return None
        game.index = index
        event_payload = dict(payload)
        event_payload['questionIndex'] = index
        event_payload.setdefault('question', game.questions[index])
        self.broadcaster.broadcast(room_id, messages.next_question(room_id, event_payload))
        self._schedule_timer(room_id, game)
        return index

    def _finish_locked(self, room_id: str) -> List[dict]:
        self._games.pop(room_id, None)
        if self.timers is not None:
            self.timers.cancel(room_id)
        store_error = None
        scores: List[dict] = []
        try:
            scores = self.store.get_scores(room_id)
            # Archived rather than deleted
            self.store.deactivate(room_id)
        except StoreUnavailable as exc:
            store_error = exc
        self.logger.info(f"[game-finish] room={room_id} players={len(scores)}")
        self.broadcaster.broadcast(room_id, messages.game_finished(room_id, scores))
        if store_error is not None:
            raise store_error
        return scores

    def _schedule_timer(self, room_id: str, game: GameProgress) -> None:
        if self.timers is not None:
            self.timers.schedule(room_id, game.index, game.time_per_question, self.timer_expired)

    # Not under a room lock: read-only registry lookups
    def _sender(self, connection, claimed: Optional[str]) -> str:
        resolved = self.registry.user_for(connection)
        if resolved is None:
            raise Forbidden('join a room first')
        if claimed is not None and claimed != resolved:
            raise Forbidden('connection belongs to another user')
        return resolved

    def _check_speaks_for(self, connection, user_id: str, required: bool = False) -> None:
        owner = self.registry.user_for(connection)
        if owner == user_id:
            return
        if required or owner is not None or self.registry.room_of(user_id) is not None:
            raise Forbidden('connection does not belong to this user')
