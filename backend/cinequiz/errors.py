"""Error taxonomy for the multiplayer room subsystem.

Each error carries a short machine readable ``code`` which is what the
client receives in an ``error`` event.
"""


class RoomError(Exception):
    code = 'room_error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_payload(self) -> dict:
        return {'code': self.code, 'message': self.message}


class NotFound(RoomError):
    """Room or participant does not exist."""
    code = 'not_found'


class Conflict(RoomError):
    """Duplicate join; resolved as a resume and never sent to clients."""
    code = 'conflict'


class StoreUnavailable(RoomError):
    """Durable read or write failed."""
    code = 'store_unavailable'


class InvalidMessage(RoomError):
    """Malformed or unknown wire message."""
    code = 'invalid_message'


class InvalidState(RoomError):
    """Operation not allowed in the room's current game state."""
    code = 'invalid_state'


class Forbidden(RoomError):
    """Requester lacks the rights for the operation (host only, bad password)."""
    code = 'forbidden'
