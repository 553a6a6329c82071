import threading
from typing import Dict, Hashable, Iterator, Optional


class RoomConnections:
    """Restartable view over the live connections of one room.

    Each iteration takes a fresh snapshot, so callers may keep the view
    around and iterate it again later.
    """

    def __init__(self, registry: 'ConnectionRegistry', room_id: str):
        self._registry = registry
        self._room_id = room_id

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._registry._snapshot(self._room_id))

    def __len__(self) -> int:
        return len(self._registry._snapshot(self._room_id))


class ConnectionRegistry:
    """In-memory index of who is connected to which room.

    Forward map: room id -> {user id -> connection}. Reverse map: user id ->
    room id. A user is in at most one room, and both maps always agree.
    ``attach`` and ``detach`` are the only mutations; the lock is held just
    for the dict updates, never across I/O.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: Dict[str, Dict[str, Hashable]] = {}
        self._user_room: Dict[str, str] = {}
        self._connection_user: Dict[Hashable, str] = {}

    def attach(self, room_id: str, user_id: str, connection: Hashable) -> None:
        with self._lock:
            current = self._user_room.get(user_id)
            if current is not None:
                self._remove(user_id)
            previous_user = self._connection_user.get(connection)
            if previous_user is not None and previous_user != user_id:
                # One socket speaks for one user at a time
                self._remove(previous_user)
            self._rooms.setdefault(room_id, {})[user_id] = connection
            self._user_room[user_id] = room_id
            self._connection_user[connection] = user_id

    def detach(self, user_id: str) -> Optional[str]:
        """Remove the user from its room. Returns that room id, or None."""
        with self._lock:
            if user_id not in self._user_room:
                return None
            return self._remove(user_id)

    def connections_in_room(self, room_id: str) -> RoomConnections:
        return RoomConnections(self, room_id)

    def room_of(self, user_id: str) -> Optional[str]:
        with self._lock:
            return self._user_room.get(user_id)

    def user_for(self, connection: Hashable) -> Optional[str]:
        with self._lock:
            return self._connection_user.get(connection)

    def users_in_room(self, room_id: str) -> list:
        with self._lock:
            return list(self._rooms.get(room_id, {}))

    def has_room(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms

    # Callers hold self._lock
    def _remove(self, user_id: str) -> str:
        room_id = self._user_room.pop(user_id)
        members = self._rooms.get(room_id, {})
        connection = members.pop(user_id, None)
        if not members:
            self._rooms.pop(room_id, None)
        if connection is not None and self._connection_user.get(connection) == user_id:
            del self._connection_user[connection]
        return room_id

    def _snapshot(self, room_id: str) -> list:
        with self._lock:
            return list(self._rooms.get(room_id, {}).values())
