"""
In-memory models of the room engine.
Attributes are snake_case; the wire form (``to_wire``) is camelCase.
"""

from .base import CamelModel
from .member import Member
from .message import Message, SYSTEM_AUTHOR
from .room import Room
from .session import Session
from .song import Song, new_song_id

__all__ = [
    "CamelModel",
    "Member",
    "Message",
    "SYSTEM_AUTHOR",
    "Room",
    "Session",
    "Song",
    "new_song_id",
]
