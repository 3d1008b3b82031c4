from uuid import uuid4

from pydantic import ConfigDict, Field

from .base import CamelModel


def new_song_id() -> str:
    return uuid4().hex


class Song(CamelModel):
    """A playlist entry. The audio payload is an opaque reference the server never reads."""

    model_config = ConfigDict(frozen=True)

    id: str | int = Field(default_factory=new_song_id)
    title: str
    artist: str = "Unknown Artist"
    duration_label: str = "0:00"
    added_by_name: str | None = None
    payload_ref: str | None = None
