from flask import current_app, request
from flask_socketio import emit
from cinequiz import socketio
from cinequiz.errors import RoomError
from cinequiz.realtime import SocketConnection


def _coordinator():
    return current_app.extensions['room_coordinator']


def _connection() -> SocketConnection:
    # type: ignore: request.sid and request.namespace exist in Socket.IO context
    return SocketConnection(socketio, request.sid, request.namespace)  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # Transport close: drop the user out of whatever room this socket joined
    try:
        _coordinator().disconnect(_connection())
    except RoomError as exc:
        current_app.logger.error(f"[disconnect-error] sid={request.sid} code={exc.code} {exc.message}")  # type: ignore


def handle_message(data):
    _coordinator().handle_message(_connection(), data)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('message', handle_message, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
