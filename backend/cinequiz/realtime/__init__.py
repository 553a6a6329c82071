from cinequiz.realtime.registry import ConnectionRegistry
from cinequiz.realtime.broadcaster import RoomBroadcaster, SocketConnection, ConnectionClosed
from cinequiz.realtime.coordinator import RoomCoordinator

__all__ = [
    'ConnectionRegistry',
    'RoomBroadcaster',
    'SocketConnection',
    'ConnectionClosed',
    'RoomCoordinator',
]
