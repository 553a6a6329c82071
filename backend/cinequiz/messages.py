"""Wire messages for the ``/ws`` namespace.

Clients send one JSON object per ``message`` event; ``type`` picks one of
the client message classes below. Anything else is an ``InvalidMessage``.
Server events are plain ``ServerEvent`` instances serialized with
``to_json``.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from cinequiz.errors import InvalidMessage


@dataclass(frozen=True)
class JoinRoom:
    room_id: str
    user_id: str
    password: Optional[str] = None


@dataclass(frozen=True)
class LeaveRoom:
    room_id: str
    user_id: str


@dataclass(frozen=True)
class GameStart:
    room_id: str
    user_id: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class SubmitAnswer:
    room_id: str
    user_id: str
    question_id: str
    answer: str


@dataclass(frozen=True)
class NextQuestion:
    room_id: str
    user_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


ClientMessage = Union[JoinRoom, LeaveRoom, GameStart, SubmitAnswer, NextQuestion]


def _id(data: dict, key: str, required: bool = True) -> Optional[str]:
    value = data.get(key)
    if value is None or value == '':
        if required:
            raise InvalidMessage(f'{key} is required')
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidMessage(f'{key} must be a string')
    return str(value)


def _payload(data: dict) -> dict:
    payload = data.get('payload')
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidMessage('payload must be an object')
    return payload


def _parse_join(data: dict) -> JoinRoom:
    password = _payload(data).get('password')
    if password is not None and not isinstance(password, str):
        raise InvalidMessage('password must be a string')
    return JoinRoom(_id(data, 'roomId'), _id(data, 'userId'), password)


def _parse_leave(data: dict) -> LeaveRoom:
    return LeaveRoom(_id(data, 'roomId'), _id(data, 'userId'))


def _parse_game_start(data: dict) -> GameStart:
    category = _payload(data).get('category')
    if category is not None and not isinstance(category, str):
        raise InvalidMessage('category must be a string')
    return GameStart(_id(data, 'roomId'), _id(data, 'userId', required=False), category or None)


def _parse_submit_answer(data: dict) -> SubmitAnswer:
    payload = _payload(data)
    answer = payload.get('answer')
    if not isinstance(answer, str) or not answer:
        raise InvalidMessage('answer is required')
    return SubmitAnswer(_id(data, 'roomId'), _id(data, 'userId'), _id(payload, 'questionId'), answer)


def _parse_next_question(data: dict) -> NextQuestion:
    return NextQuestion(_id(data, 'roomId'), _id(data, 'userId', required=False), dict(_payload(data)))


_PARSERS = {
    'join_room': _parse_join,
    'leave_room': _parse_leave,
    'game_start': _parse_game_start,
    'submit_answer': _parse_submit_answer,
    'next_question': _parse_next_question,
}


def parse_client_message(raw: Union[str, bytes, dict]) -> ClientMessage:
    """Decode one client frame into a message object or raise InvalidMessage."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise InvalidMessage('message is not valid JSON')
    if not isinstance(raw, dict):
        raise InvalidMessage('message must be a JSON object')
    kind = raw.get('type')
    parser = _PARSERS.get(kind) if isinstance(kind, str) else None
    if parser is None:
        raise InvalidMessage(f'unknown message type: {kind!r}')
    return parser(raw)


@dataclass(frozen=True)
class ServerEvent:
    type: str
    payload: Any = None
    user_id: Optional[str] = None
    room_id: Optional[str] = None

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {'type': self.type}
        if self.room_id is not None:
            data['roomId'] = self.room_id
        if self.user_id is not None:
            data['userId'] = self.user_id
        data['payload'] = self.payload
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)


def user_joined(room_id: str, user_id: str, participants: List[dict]) -> ServerEvent:
    return ServerEvent('user_joined', participants, user_id=user_id, room_id=room_id)


def user_left(room_id: str, user_id: str, participants: List[dict]) -> ServerEvent:
    return ServerEvent('user_left', participants, user_id=user_id, room_id=room_id)


def game_started(room_id: str, questions: List[dict]) -> ServerEvent:
    return ServerEvent('game_started', {'questions': questions}, room_id=room_id)


def answer_result(room_id: str, question_id: str, is_correct: bool) -> ServerEvent:
    return ServerEvent('answer_result', {'isCorrect': is_correct, 'questionId': question_id}, room_id=room_id)


def player_answered(room_id: str, user_id: str, question_id: str) -> ServerEvent:
    return ServerEvent('player_answered', {'questionId': question_id}, user_id=user_id, room_id=room_id)


def next_question(room_id: str, payload: dict) -> ServerEvent:
    return ServerEvent('next_question', payload, room_id=room_id)


def game_finished(room_id: str, scores: List[dict]) -> ServerEvent:
    return ServerEvent('game_finished', {'scores': scores}, room_id=room_id)


def host_changed(room_id: str, host_id: str) -> ServerEvent:
    return ServerEvent('host_changed', {'hostId': host_id}, user_id=host_id, room_id=room_id)


def error(exc, room_id: Optional[str] = None) -> ServerEvent:
    return ServerEvent('error', exc.to_payload(), room_id=room_id)
