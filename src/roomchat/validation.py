"""
Validation Utilities

Precondition checks for user intents.
"""

from typing import Optional, Tuple

from .errors import ValidationError
from .room_code import is_valid_room_code, normalize_room_code

# Validation messages shown to the user
NAME_REQUIRED = "Please enter your name"
INVALID_ROOM_CODE = "Please enter a valid 6-character room code"


def validate_join_input(name: str, code: str) -> Tuple[str, str]:
    """
    Validate and normalize join input.

    Args:
        name: Display name as typed by the user
        code: Room code as typed by the user

    Returns:
        tuple: (display_name, room_code), trimmed and normalized

    Raises:
        ValidationError: If the name is blank or the code is malformed
    """
    display_name = (name or "").strip()
    if not display_name:
        raise ValidationError(NAME_REQUIRED)

    room_code = normalize_room_code(code or "")
    if not is_valid_room_code(room_code):
        raise ValidationError(INVALID_ROOM_CODE)

    return display_name, room_code


def normalize_message_text(text: Optional[str]) -> Optional[str]:
    """
    Trim outgoing message text.

    Returns:
        The trimmed text, or None if nothing is left to send
    """
    trimmed = (text or "").strip()
    return trimmed or None
