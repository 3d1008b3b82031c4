from .base import CamelModel


class Member(CamelModel):
    """Public profile of a participant as listed in a room"""

    id: str
    display_name: str
    avatar_color: str
    is_typing: bool = False
