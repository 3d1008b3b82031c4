"""
Wire schemas: inbound commands, outbound events and HTTP responses.
"""

from .commands import (
    Command,
    RoomCommand,
    CreateRoom,
    JoinRoom,
    SendMessage,
    Typing,
    AddSong,
    MusicControl,
    SelectSong,
    parse_command,
)
from .events import (
    Audience,
    Outbound,
    ServerEvent,
)
from .health import HealthResponse
from .room import (
    RoomListResponse,
    RoomSummaryResponse,
)

__all__ = [
    # Inbound commands
    "Command",
    "RoomCommand",
    "CreateRoom",
    "JoinRoom",
    "SendMessage",
    "Typing",
    "AddSong",
    "MusicControl",
    "SelectSong",
    "parse_command",
    # Outbound events
    "Audience",
    "Outbound",
    "ServerEvent",
    # HTTP responses
    "HealthResponse",
    "RoomListResponse",
    "RoomSummaryResponse",
]
