"""
Schemas Package

This package contains the wire frame schemas for client-server communication.
Schemas are organized by category: room membership and chat messages.

The package provides base classes (BaseRequest, BaseEvent) that hold the
serialization and deserialization methods shared by every frame.
"""

from .base import BaseEvent, BaseRequest
from .room import JoinRequest, LeaveRequest, RoomJoinedEvent, UserListEvent
from .message import ChatMessageEvent, ChatMessageRequest, ServerErrorEvent

__all__ = [
    # Base classes
    "BaseRequest",
    "BaseEvent",
    # Room schemas
    "JoinRequest",
    "LeaveRequest",
    "RoomJoinedEvent",
    "UserListEvent",
    # Message schemas
    "ChatMessageRequest",
    "ChatMessageEvent",
    "ServerErrorEvent",
]
