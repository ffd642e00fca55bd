"""
Room Code Utilities

Room codes are 6 characters drawn from uppercase A-Z and 0-9. Client-side
generation is a uniform random pick per character; it is not
cryptographically secure and collisions are fine, the backend decides
whether a room exists.
"""

import random
import string
from typing import Optional

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6


def generate_room_code(rng: Optional[random.Random] = None) -> str:
    """
    Generate a new random room code.

    Args:
        rng: Optional random source (for deterministic tests)

    Returns:
        6-character uppercase alphanumeric code
    """
    rng = rng or random
    return "".join(
        rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH)
    )


def normalize_room_code(code: str) -> str:
    """Strip surrounding whitespace and upper-case a room code."""
    return code.strip().upper()


def is_valid_room_code(code: str) -> bool:
    """Check that a code is exactly 6 characters of A-Z0-9."""
    return len(code) == ROOM_CODE_LENGTH and all(
        char in ROOM_CODE_ALPHABET for char in code
    )
