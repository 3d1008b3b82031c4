import asyncio
from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol

from musicsync.core.exceptions import RoomCodeExhausted, RoomNotFound
from musicsync.core.logging import get_connection_logger, get_logger
from musicsync.models import Room, Session
from musicsync.schemas.commands import Command, CreateRoom, JoinRoom, RoomCommand
from musicsync.schemas.events import Audience, Outbound, ServerEvent
from musicsync.services.room_handlers import ROOM_HANDLERS, handle_join, handle_leave
from musicsync.services.room_registry import RoomRegistry
from musicsync.services.session_table import SessionTable
from musicsync.utils.formatters import (
    format_room_created,
    format_room_error,
    format_room_joined,
)
from musicsync.utils.room_code import normalize_room_code

logger = get_logger("EventRouter")


class EventTransport(Protocol):
    async def send(self, connection_id: str, message: dict) -> None:
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventRouter:
    """
    Routes inbound commands to the room they concern.

    Every room-scoped command runs under that room's lock: the handler's state
    change, the recipient list and the queueing of its events complete before
    the next command for the same room starts.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        sessions: SessionTable,
        transport: EventTransport,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.sessions = sessions
        self.transport = transport
        self._clock = clock

    async def dispatch(self, connection_id: str, command: Command) -> None:
        if isinstance(command, CreateRoom):
            await self._create_room(connection_id, command)
        elif isinstance(command, JoinRoom):
            await self._join_room(connection_id, command)
        else:
            await self._room_command(connection_id, command)

    async def disconnect(self, connection_id: str) -> None:
        """Clean up after a lost connection. No-op for connections that never joined."""
        await self._leave(connection_id)

    # ==================== HANDLERS ====================

    async def _create_room(self, connection_id: str, command: CreateRoom) -> None:
        log = get_connection_logger("EventRouter", connection_id)
        try:
            room = self.registry.create()
        except RoomCodeExhausted as e:
            log.error(f"Room creation failed after {e.attempts} attempts")
            await self._send(connection_id, format_room_error(e.message))
            return

        log.info(f"Created room {room.code} for {command.data.display_name or 'anonymous'}")
        await self._send(connection_id, format_room_created(room.code))

    async def _join_room(self, connection_id: str, command: JoinRoom) -> None:
        code = normalize_room_code(command.data.code)
        log = get_connection_logger("EventRouter", connection_id, code)

        try:
            # An unknown code must not disturb the room the connection is in
            target = self.registry.get(code)

            current = self.sessions.get(connection_id)
            if current is not None and current.room_code == code:
                await self._send(connection_id, format_room_joined(target))
                return

            # A session belongs to at most one room
            if current is not None:
                await self._leave(connection_id)

            lock = self.registry.lock(code)
            async with lock:
                self._ensure_live(code, lock)

                session = Session.open(connection_id, command.data.display_name, code)
                room = self.registry.join(code, session)
                self.sessions.bind(session)

                log.info(f"{session.display_name} joined - {len(room.members)} members")
                await self._deliver(connection_id, room, handle_join(room, session, self._clock()))
        except RoomNotFound as e:
            log.info(f"Join rejected: room {e.code} not found")
            await self._send(connection_id, format_room_error(e.message))

    async def _room_command(self, connection_id: str, command: RoomCommand) -> None:
        session = self.sessions.get(connection_id)
        if session is None:
            # Orphan event, e.g. racing a disconnect
            logger.debug(f"Dropping {command.type} from {connection_id}: no session")
            return

        try:
            lock = self.registry.lock(session.room_code)
        except RoomNotFound:
            logger.debug(f"Dropping {command.type} from {connection_id}: room {session.room_code} is gone")
            return

        async with lock:
            # The session may have left while this command waited for the lock
            if self.sessions.get(connection_id) is not session:
                return

            room = self.registry.get(session.room_code)
            handler = ROOM_HANDLERS[command.type]
            outbound = handler(room, session, command.data, self._clock())
            await self._deliver(connection_id, room, outbound)

    async def _leave(self, connection_id: str) -> None:
        session = self.sessions.get(connection_id)
        if session is None:
            return

        log = get_connection_logger("EventRouter", connection_id, session.room_code)
        try:
            lock = self.registry.lock(session.room_code)
        except RoomNotFound:
            self.sessions.remove(connection_id)
            return

        async with lock:
            if self.sessions.remove(connection_id) is None:
                return

            room = self.registry.leave(session.room_code, connection_id)
            if room is None:
                return

            log.info(f"{session.display_name} left - {len(room.members)} members remaining")
            await self._deliver(connection_id, room, handle_leave(room, session, self._clock()))

    # ==================== FANOUT ====================

    def _ensure_live(self, code: str, lock: asyncio.Lock) -> None:
        """The room may have been deleted (or re-created) while we waited for its lock."""
        if not self.registry.exists(code) or self.registry.lock(code) is not lock:
            raise RoomNotFound(code)

    def _recipients(self, sender_id: str, room: Room, audience: Audience) -> Iterable[str]:
        if audience is Audience.REQUESTER:
            return [sender_id]
        member_ids = [member.id for member in room.members]
        if audience is Audience.OTHERS:
            return [member_id for member_id in member_ids if member_id != sender_id]
        return member_ids

    async def _deliver(self, sender_id: str, room: Room, outbound: list[Outbound]) -> None:
        for item in outbound:
            message = item.event.model_dump()
            for connection_id in self._recipients(sender_id, room, item.audience):
                await self.transport.send(connection_id, message)

    async def _send(self, connection_id: str, event: ServerEvent) -> None:
        await self.transport.send(connection_id, event.model_dump())
