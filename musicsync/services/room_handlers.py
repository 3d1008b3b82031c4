"""
Per-room state transitions.

Each handler applies one command to a Room (and the sender's Session) and
returns the outbound events it produces, tagged with their audience. Handlers
never touch the transport, so they are called with the room lock held and
tested without any connection.

Playback per room moves between three states:
    Empty (no current song) -> Selected-Paused (song set, paused at 0)
    Selected-Paused <-> Playing (is_playing set by music-control)
Selecting a song from any state lands in Selected-Paused.
"""
from datetime import datetime

from musicsync.models import Message, Room, Session, Song, new_song_id
from musicsync.schemas.commands import (
    AddSongData,
    MusicControlData,
    SelectSongData,
    SendMessageData,
    TypingData,
)
from musicsync.schemas.events import Outbound, to_others, to_requester, to_room
from musicsync.utils.formatters import (
    format_music_sync,
    format_new_message,
    format_playlist_updated,
    format_room_joined,
    format_song_changed,
    format_user_joined,
    format_user_left,
    format_user_typing,
    format_users_updated,
)


def _epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def handle_join(room: Room, session: Session, now: datetime) -> list[Outbound]:
    """Announce a member the registry has just added to the room."""
    member = room.member(session.connection_id) or session.profile()

    welcome = Message.system(f"{session.display_name} joined the room", now)
    room.messages.append(welcome)

    return [
        to_requester(format_room_joined(room)),
        to_others(format_user_joined(member)),
        to_room(format_users_updated(room.members)),
        to_others(format_new_message(welcome)),
    ]


def handle_leave(room: Room, session: Session, now: datetime) -> list[Outbound]:
    """Announce a departure; the registry has already removed the member."""
    farewell = Message.system(f"{session.display_name} left the room", now)
    room.messages.append(farewell)

    return [
        to_others(format_user_left(session.connection_id)),
        to_others(format_users_updated(room.members)),
        to_others(format_new_message(farewell)),
    ]


def handle_send_message(room: Room, session: Session, data: SendMessageData, now: datetime) -> list[Outbound]:
    message = Message(
        author_name=session.display_name,
        author_avatar=session.avatar_color,
        text=data.text,
        created_at=now,
    )
    room.messages.append(message)
    return [to_room(format_new_message(message))]


def handle_typing(room: Room, session: Session, data: TypingData, now: datetime) -> list[Outbound]:
    member = room.member(session.connection_id)
    if member is None:
        return []

    session.is_typing = data.is_typing
    member.is_typing = data.is_typing
    return [to_others(format_user_typing(session))]


def handle_add_song(room: Room, session: Session, data: AddSongData, now: datetime) -> list[Outbound]:
    # Caller-supplied ids are trusted, duplicates included
    song = Song(
        id=data.id if data.id is not None else new_song_id(),
        title=data.title,
        artist=data.artist or "Unknown Artist",
        duration_label=data.duration_label or "0:00",
        added_by_name=session.display_name,
        payload_ref=data.audio_ref,
    )
    room.playlist.append(song)
    return [to_room(format_playlist_updated(room.playlist))]


def handle_music_control(room: Room, session: Session, data: MusicControlData, now: datetime) -> list[Outbound]:
    # No legality check: any member may drive playback with any values
    room.is_playing = data.is_playing
    room.current_time = data.current_time or 0.0
    return [to_others(format_music_sync(room, _epoch_ms(now)))]


def handle_select_song(room: Room, session: Session, data: SelectSongData, now: datetime) -> list[Outbound]:
    # Broadcast exactly what was selected; playlist ids may repeat
    song = data.song

    room.current_song = song
    room.is_playing = False
    room.current_time = 0.0

    announcement = Message.system(
        f'{session.display_name} selected "{song.title}" by {song.artist}', now
    )
    room.messages.append(announcement)

    return [
        to_room(format_song_changed(room)),
        to_room(format_new_message(announcement)),
    ]


ROOM_HANDLERS = {
    "send-message": handle_send_message,
    "typing": handle_typing,
    "add-song": handle_add_song,
    "music-control": handle_music_control,
    "select-song": handle_select_song,
}
