"""
Room Schema Definitions

This module defines the frames for room membership: joining and leaving a
room, the server's join acknowledgment and the participant snapshot.
"""

from dataclasses import dataclass, field
from typing import Any, List

from .base import BaseEvent, BaseRequest


@dataclass
class JoinRequest(BaseRequest):
    """
    Request to join a room.

    Attributes:
        room_id: 6-character room code
        user_name: Display name of the joining user
    """

    room_id: str
    user_name: str

    _wire_names = {"room_id": "roomId", "user_name": "userName"}

    @property
    def _message_type(self) -> str:
        """Return the frame type for join requests."""
        return "join"


@dataclass
class LeaveRequest(BaseRequest):
    """
    Request to leave a room.

    Attributes:
        room_id: 6-character room code
        user_name: Display name of the leaving user
    """

    room_id: str
    user_name: str

    _wire_names = {"room_id": "roomId", "user_name": "userName"}

    @property
    def _message_type(self) -> str:
        """Return the frame type for leave requests."""
        return "leave"


@dataclass
class RoomJoinedEvent(BaseEvent):
    """Acknowledgment that the server accepted the join. Carries no data."""

    message_type = "room_joined"


@dataclass
class UserListEvent(BaseEvent):
    """
    Full snapshot of the room's participants.

    Attributes:
        participants: Display names of everyone currently in the room
    """

    participants: List[str] = field(default_factory=list)

    message_type = "user_list"

    @classmethod
    def _from_payload(cls, payload: Any) -> "UserListEvent":
        """Create from a payload that must be a list of names."""
        if not isinstance(payload, list):
            raise TypeError("user_list payload must be a list")
        if not all(isinstance(name, str) for name in payload):
            raise TypeError("user_list entries must be strings")
        return cls(participants=list(payload))
