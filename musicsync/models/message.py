from datetime import datetime
from uuid import uuid4

from pydantic import ConfigDict, Field

from musicsync.utils.avatar import SYSTEM_AVATAR
from .base import CamelModel

SYSTEM_AUTHOR = "System"


class Message(CamelModel):
    """A chat log entry, immutable once appended"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    author_name: str
    author_avatar: str
    text: str
    created_at: datetime

    @property
    def is_system(self) -> bool:
        return self.author_name == SYSTEM_AUTHOR and self.author_avatar == SYSTEM_AVATAR

    @classmethod
    def system(cls, text: str, created_at: datetime) -> "Message":
        return cls(
            author_name=SYSTEM_AUTHOR,
            author_avatar=SYSTEM_AVATAR,
            text=text,
            created_at=created_at,
        )
