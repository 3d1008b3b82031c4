"""
API v1 routes for the MusicSync server.
"""
from musicsync.api.v1 import room, websocket

__all__ = ["room", "websocket"]
