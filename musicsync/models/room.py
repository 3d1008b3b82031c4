from pydantic import Field

from .base import CamelModel
from .member import Member
from .message import Message
from .song import Song


class Room(CamelModel):
    """Mutable in-memory state of one live room"""

    code: str
    members: list[Member] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    playlist: list[Song] = Field(default_factory=list)
    current_song: Song | None = None
    is_playing: bool = False
    current_time: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.members

    def member(self, connection_id: str) -> Member | None:
        for member in self.members:
            if member.id == connection_id:
                return member
        return None

    def add_member(self, member: Member) -> None:
        self.members.append(member)

    def remove_member(self, connection_id: str) -> Member | None:
        member = self.member(connection_id)
        if member is not None:
            self.members.remove(member)
        return member

    def snapshot(self) -> dict:
        """Full wire representation sent to a participant on join"""
        return self.to_wire()
