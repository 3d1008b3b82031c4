from musicsync.core.logging import get_logger
from musicsync.models import Session

logger = get_logger("SessionTable")


class SessionTable:
    """
    Maps each live connection to its Session.
    A connection without an entry has never joined, or has already left.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def bind(self, session: Session) -> None:
        self._sessions[session.connection_id] = session
        logger.debug(f"Bound {session.connection_id} as {session.display_name} in {session.room_code}")

    def get(self, connection_id: str) -> Session | None:
        return self._sessions.get(connection_id)

    def remove(self, connection_id: str) -> Session | None:
        return self._sessions.pop(connection_id, None)

    def in_room(self, room_code: str) -> list[Session]:
        """Sessions bound to a room, in join order"""
        return [s for s in self._sessions.values() if s.room_code == room_code]

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
