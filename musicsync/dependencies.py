from functools import lru_cache

from fastapi import Depends, HTTPException, status

from musicsync.core.exceptions import RoomNotFound
from musicsync.core.logging import get_logger
from musicsync.models import Room
from musicsync.services.event_router import EventRouter
from musicsync.services.room_registry import RoomRegistry
from musicsync.services.session_table import SessionTable
from musicsync.services.websocket_manager import WebSocketManager, websocket_manager

logger = get_logger("Dependencies")


def get_websocket_manager() -> WebSocketManager:
    return websocket_manager


@lru_cache()
def get_event_router() -> EventRouter:
    """
    The process-wide router. Rooms and sessions live here and nowhere else.
    Tests override this dependency with a fresh instance.
    """
    return EventRouter(
        registry=RoomRegistry(),
        sessions=SessionTable(),
        transport=get_websocket_manager(),
    )


def get_room_registry(router: EventRouter = Depends(get_event_router)) -> RoomRegistry:
    return router.registry


async def get_live_room(
    code: str,
    registry: RoomRegistry = Depends(get_room_registry)
) -> Room:
    """
    Resolve a room code from the path to a live room.

    Raises:
        HTTPException(404): No live room has this code
    """
    try:
        return registry.get(code)
    except RoomNotFound:
        logger.debug(f"Room lookup for unknown code {code}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Room not found"
        )
