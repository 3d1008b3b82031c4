from musicsync.utils.avatar import avatar_color
from .base import CamelModel
from .member import Member


class Session(CamelModel):
    """Binding of one live connection to a participant identity inside a room"""

    connection_id: str
    display_name: str
    avatar_color: str
    is_typing: bool = False
    room_code: str

    @classmethod
    def open(cls, connection_id: str, display_name: str, room_code: str) -> "Session":
        return cls(
            connection_id=connection_id,
            display_name=display_name,
            avatar_color=avatar_color(display_name),
            room_code=room_code,
        )

    def profile(self) -> Member:
        return Member(
            id=self.connection_id,
            display_name=self.display_name,
            avatar_color=self.avatar_color,
            is_typing=self.is_typing,
        )
