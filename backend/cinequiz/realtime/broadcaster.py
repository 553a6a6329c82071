from typing import Optional

from cinequiz.messages import ServerEvent


class ConnectionClosed(Exception):
    pass


class SocketConnection:
    """Handle for one Socket.IO client on a namespace.

    Equality and hashing go by (namespace, sid) so a handle rebuilt from
    ``request.sid`` in a later event resolves to the same registry entry.
    """

    def __init__(self, socketio, sid: str, namespace: str = '/ws'):
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace

    @property
    def is_open(self) -> bool:
        server = getattr(self.socketio, 'server', None)
        if server is None:
            return False
        try:
            return bool(server.manager.is_connected(self.sid, self.namespace))
        except KeyError:
            return False

    def send(self, text: str) -> None:
        if not self.is_open:
            raise ConnectionClosed(self.sid)
        # Emit only queues the packet for this client
        self.socketio.emit('message', text, to=self.sid, namespace=self.namespace)

    def __eq__(self, other):
        return (
            isinstance(other, SocketConnection)
            and self.sid == other.sid
            and self.namespace == other.namespace
        )

    def __hash__(self):
        return hash((self.namespace, self.sid))

    def __repr__(self):
        return f'<SocketConnection {self.namespace} {self.sid}>'


class RoomBroadcaster:
    def __init__(self, registry):
        self.registry = registry

    def broadcast(self, room_id: str, event: ServerEvent) -> int:
        """Send ``event`` to every live connection in the room.

        The event is serialized once and the same text goes to each
        connection. Closed connections are skipped. Returns the number of
        connections the text was handed to.
        """
        text = event.to_json()
        delivered = 0
        for connection in self.registry.connections_in_room(room_id):
            if self._deliver(connection, text):
                delivered += 1
        return delivered

    def send(self, connection, event: ServerEvent) -> bool:
        return self._deliver(connection, event.to_json())

    @staticmethod
    def _deliver(connection, text: str) -> bool:
        is_open: Optional[bool] = getattr(connection, 'is_open', True)
        if not is_open:
            return False
        try:
            connection.send(text)
        except ConnectionClosed:
            return False
        return True
