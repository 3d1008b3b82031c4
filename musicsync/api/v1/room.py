from fastapi import APIRouter, Depends

from musicsync.core.logging import get_logger
from musicsync.dependencies import get_live_room, get_room_registry
from musicsync.models import Room
from musicsync.schemas.room import RoomListResponse, RoomSummaryResponse
from musicsync.services.room_registry import RoomRegistry

logger = get_logger("api.room")
router = APIRouter()


@router.get("", response_model=RoomListResponse)
async def get_all_rooms(registry: RoomRegistry = Depends(get_room_registry)):
    """List live rooms with their member counts"""
    rooms = [RoomSummaryResponse.from_room(registry.get(code)) for code in registry.codes()]
    logger.debug(f"Listing {len(rooms)} live rooms")
    return RoomListResponse(rooms=rooms, count=len(rooms))


@router.get("/{code}")
async def get_room(room: Room = Depends(get_live_room)) -> dict:
    """
    Get the full state of a live room: members, chat log, playlist and playback.
    Read-only, the same snapshot a participant receives on join.
    """
    logger.debug(f"Room {room.code} has {len(room.members)} members")
    return room.snapshot()
