"""
Deterministic avatar colours for display names.
"""

PALETTE = (
    "#8B5CF6", "#EC4899", "#3B82F6", "#10B981", "#F59E0B",
    "#EF4444", "#6366F1", "#8B5A2B", "#059669", "#DC2626",
)

# Author colour of server-generated chat messages
SYSTEM_AVATAR = "#6366F1"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def name_hash(name: str) -> int:
    """
    Fold a name into the browser-compatible string hash.

    Iterates UTF-16 code units and applies ``hash = code + ((hash << 5) - hash)``
    where the shift operates on 32-bit signed integers, so a client computing
    the same hash in JavaScript gets the same value.
    """
    data = name.encode("utf-16-le")
    value = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        shifted = _to_int32(_to_int32(value) << 5)
        value = code + (shifted - value)
    return value


def avatar_color(name: str) -> str:
    """Map a display name onto the palette. Collisions between names are expected."""
    return PALETTE[abs(name_hash(name)) % len(PALETTE)]
