"""
Room-related response schemas for the HTTP API.
"""
from musicsync.models import CamelModel, Room


# ==================== RESPONSE SCHEMAS ====================

class RoomSummaryResponse(CamelModel):
    """A live room without its chat log and playlist"""
    code: str
    member_count: int
    is_playing: bool
    current_song_title: str | None = None

    @classmethod
    def from_room(cls, room: Room) -> "RoomSummaryResponse":
        return cls(
            code=room.code,
            member_count=len(room.members),
            is_playing=room.is_playing,
            current_song_title=room.current_song.title if room.current_song else None,
        )


class RoomListResponse(CamelModel):
    """Response schema for the live room listing"""
    rooms: list[RoomSummaryResponse]
    count: int
