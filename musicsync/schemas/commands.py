"""
Inbound event schemas.

Every frame a client sends is ``{"type": <event>, "data": {...}}``; the
``type`` tag selects the command model.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from musicsync.models import CamelModel, Song


# ==================== PAYLOADS ====================

class CreateRoomData(CamelModel):
    display_name: str | None = None


class JoinRoomData(CamelModel):
    code: str
    display_name: str


class SendMessageData(CamelModel):
    text: str


class TypingData(CamelModel):
    is_typing: bool


class AddSongData(CamelModel):
    id: str | int | None = None
    title: str
    artist: str | None = None
    duration_label: str | None = None
    audio_ref: str | None = None


class MusicControlData(CamelModel):
    is_playing: bool
    current_time: float | None = None


class SelectSongData(CamelModel):
    song: Song


# ==================== COMMANDS ====================

class CreateRoom(BaseModel):
    type: Literal["create-room"]
    data: CreateRoomData = Field(default_factory=CreateRoomData)


class JoinRoom(BaseModel):
    type: Literal["join-room"]
    data: JoinRoomData


class SendMessage(BaseModel):
    type: Literal["send-message"]
    data: SendMessageData


class Typing(BaseModel):
    type: Literal["typing"]
    data: TypingData


class AddSong(BaseModel):
    type: Literal["add-song"]
    data: AddSongData


class MusicControl(BaseModel):
    type: Literal["music-control"]
    data: MusicControlData


class SelectSong(BaseModel):
    type: Literal["select-song"]
    data: SelectSongData


Command = Annotated[
    Union[CreateRoom, JoinRoom, SendMessage, Typing, AddSong, MusicControl, SelectSong],
    Field(discriminator="type"),
]

# Commands that act on the sender's current room
RoomCommand = Union[SendMessage, Typing, AddSong, MusicControl, SelectSong]

command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(raw: str | bytes | dict) -> Command:
    """Validate a raw frame into a command; raises ``pydantic.ValidationError``."""
    if isinstance(raw, dict):
        return command_adapter.validate_python(raw)
    return command_adapter.validate_json(raw)
