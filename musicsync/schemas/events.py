"""
Outbound event schemas.
"""
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class ServerEvent(BaseModel):
    """Frame sent to clients: ``{"type": ..., "data": {...}}``"""
    type: str
    data: dict = Field(default_factory=dict)


class Audience(str, Enum):
    """Who receives an outbound event, relative to the sender"""
    REQUESTER = "requester"
    ROOM = "room"
    OTHERS = "others"


@dataclass(frozen=True)
class Outbound:
    event: ServerEvent
    audience: Audience


def to_requester(event: ServerEvent) -> Outbound:
    return Outbound(event, Audience.REQUESTER)


def to_room(event: ServerEvent) -> Outbound:
    return Outbound(event, Audience.ROOM)


def to_others(event: ServerEvent) -> Outbound:
    return Outbound(event, Audience.OTHERS)
