
from typing import Iterable

from musicsync.models import Member, Message, Room, Session, Song
from musicsync.schemas.events import ServerEvent


def format_members(members: Iterable[Member]) -> list[dict]:
    return [member.to_wire() for member in members]


def format_playlist(playlist: Iterable[Song]) -> list[dict]:
    return [song.to_wire() for song in playlist]


def format_room_created(code: str) -> ServerEvent:
    return ServerEvent(type="room-created", data={"code": code})


def format_room_joined(room: Room) -> ServerEvent:
    """
    Format the snapshot a participant receives after joining.

    Args:
        room: Room the participant just joined (already including them)

    Returns:
        room-joined event carrying the full room state
    """
    return ServerEvent(type="room-joined", data={"room": room.snapshot()})


def format_room_error(message: str) -> ServerEvent:
    return ServerEvent(type="room-error", data={"message": message})


def format_user_joined(member: Member) -> ServerEvent:
    return ServerEvent(type="user-joined", data={"user": member.to_wire()})


def format_users_updated(members: Iterable[Member]) -> ServerEvent:
    return ServerEvent(type="users-updated", data={"users": format_members(members)})


def format_user_left(connection_id: str) -> ServerEvent:
    return ServerEvent(type="user-left", data={"connectionId": connection_id})


def format_new_message(message: Message) -> ServerEvent:
    return ServerEvent(type="new-message", data={"message": message.to_wire()})


def format_user_typing(session: Session) -> ServerEvent:
    return ServerEvent(
        type="user-typing",
        data={
            "connectionId": session.connection_id,
            "displayName": session.display_name,
            "isTyping": session.is_typing,
        },
    )


def format_playlist_updated(playlist: Iterable[Song]) -> ServerEvent:
    return ServerEvent(type="playlist-updated", data={"playlist": format_playlist(playlist)})


def format_music_sync(room: Room, relay_timestamp: int) -> ServerEvent:
    """
    Format a playback relay for the other members of a room.

    Args:
        room: Room whose playback state was just updated
        relay_timestamp: Server time of the relay, epoch milliseconds

    Returns:
        music-sync event
    """
    return ServerEvent(
        type="music-sync",
        data={
            "isPlaying": room.is_playing,
            "currentTime": room.current_time,
            "relayTimestamp": relay_timestamp,
        },
    )


def format_song_changed(room: Room) -> ServerEvent:
    return ServerEvent(
        type="song-changed",
        data={
            "song": room.current_song.to_wire() if room.current_song else None,
            "isPlaying": room.is_playing,
            "currentTime": room.current_time,
        },
    )


def format_pong() -> ServerEvent:
    return ServerEvent(type="pong", data={})
