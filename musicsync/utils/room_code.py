import secrets
import string

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length: int = 6) -> str:
    """Generate a random room code"""
    return ''.join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


def normalize_room_code(code: str) -> str:
    """Room codes are matched case-insensitively"""
    return code.strip().upper()
