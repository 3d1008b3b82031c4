import asyncio
from typing import Callable

from musicsync.config import get_settings
from musicsync.core.exceptions import RoomCodeExhausted, RoomNotFound
from musicsync.core.logging import get_logger
from musicsync.models import Room, Session
from musicsync.utils.room_code import generate_room_code, normalize_room_code

logger = get_logger("RoomRegistry")


class RoomRegistry:
    """
    Owns every live room and its lock.
    Rooms exist from create() until their last member leaves.
    """

    def __init__(
        self,
        code_generator: Callable[[int], str] = generate_room_code,
        code_length: int | None = None,
        max_attempts: int | None = None,
    ):
        settings = get_settings()
        self._rooms: dict[str, Room] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._generate_code = code_generator
        self.code_length = code_length or settings.room_code_length
        self.max_attempts = max_attempts or settings.room_code_max_attempts

    def create(self) -> Room:
        """
        Create an empty room under a code no live room uses.

        Raises:
            RoomCodeExhausted: every generated code collided with a live room
        """
        for attempt in range(1, self.max_attempts + 1):
            code = normalize_room_code(self._generate_code(self.code_length))
            if code in self._rooms:
                logger.warning(f"Room code collision on {code} (attempt {attempt}/{self.max_attempts})")
                continue

            room = Room(code=code)
            self._rooms[code] = room
            self._locks[code] = asyncio.Lock()
            logger.info(f"Room {code} created - {len(self._rooms)} live")
            return room

        raise RoomCodeExhausted(self.max_attempts)

    def get(self, code: str) -> Room:
        room = self._rooms.get(normalize_room_code(code))
        if room is None:
            raise RoomNotFound(code)
        return room

    def exists(self, code: str) -> bool:
        return normalize_room_code(code) in self._rooms

    def lock(self, code: str) -> asyncio.Lock:
        """Exclusive lock serializing every state change of one room"""
        lock = self._locks.get(normalize_room_code(code))
        if lock is None:
            raise RoomNotFound(code)
        return lock

    def join(self, code: str, session: Session) -> Room:
        """
        Add a session's profile to a room's members.

        Raises:
            RoomNotFound: no live room has this code
        """
        room = self.get(code)
        room.add_member(session.profile())
        return room

    def leave(self, code: str, connection_id: str) -> Room | None:
        """
        Remove a member and delete the room once nobody is left.

        Returns:
            The room the member left (possibly just deleted), or None if the room is gone
        """
        code = normalize_room_code(code)
        room = self._rooms.get(code)
        if room is None:
            return None

        room.remove_member(connection_id)
        if room.is_empty:
            self.delete(code)
        return room

    def delete(self, code: str) -> None:
        code = normalize_room_code(code)
        if self._rooms.pop(code, None) is not None:
            self._locks.pop(code, None)
            logger.info(f"Room {code} deleted - {len(self._rooms)} live")

    def codes(self) -> list[str]:
        return list(self._rooms)

    def __contains__(self, code: str) -> bool:
        return self.exists(code)

    def __len__(self) -> int:
        return len(self._rooms)
