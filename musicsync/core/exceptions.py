"""
Domain errors raised by the room engine and the transport boundary.
"""


class MusicSyncError(Exception):
    """Base class for all engine errors"""

    message = "Unexpected error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotFound(MusicSyncError):
    """Raised when a room code does not name a live room"""

    message = "Room not found"

    def __init__(self, code: str):
        super().__init__()
        self.code = code


class RoomCodeExhausted(MusicSyncError):
    """Raised when no free room code could be generated"""

    message = "Could not allocate a room code, please try again"

    def __init__(self, attempts: int):
        super().__init__()
        self.attempts = attempts


class OriginRejected(MusicSyncError):
    """Raised when a connection comes from an origin outside the allow-list"""

    message = "Origin not allowed"

    def __init__(self, origin: str):
        super().__init__()
        self.origin = origin
