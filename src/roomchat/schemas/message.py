"""
Message Schema Definitions

This module defines the frames for chat messages and server-reported
errors.
"""

from dataclasses import dataclass
from typing import Any

from ..errors import ProtocolError
from .base import BaseEvent, BaseRequest


@dataclass
class ChatMessageRequest(BaseRequest):
    """
    Request to send a message to a room.

    Attributes:
        room_id: Room code the message is addressed to
        sender: Display name of the sender
        text: Trimmed message text
    """

    room_id: str
    sender: str
    text: str

    _wire_names = {"room_id": "roomId"}

    @property
    def _message_type(self) -> str:
        """Return the frame type for chat message requests."""
        return "chat_message"


@dataclass
class ChatMessageEvent(BaseEvent):
    """
    A chat message relayed by the server, including our own.

    Attributes:
        sender: Display name of the sender
        text: The message text
    """

    sender: str
    text: str

    message_type = "chat_message"

    @classmethod
    def _from_payload(cls, payload: Any) -> "ChatMessageEvent":
        """Create from a payload with string sender and text."""
        if not isinstance(payload, dict):
            raise TypeError("chat_message payload must be an object")
        sender = payload["sender"]
        text = payload["text"]
        if not isinstance(sender, str) or not isinstance(text, str):
            raise TypeError("chat_message sender and text must be strings")
        return cls(sender=sender, text=text)


@dataclass
class ServerErrorEvent(BaseEvent):
    """
    An error reported by the server.

    Attributes:
        message: Human-readable error message
    """

    message: str

    message_type = "error"

    @classmethod
    def _from_payload(cls, payload: Any) -> "ServerErrorEvent":
        """Create from a payload object with an optional message."""
        if not isinstance(payload, dict):
            raise TypeError("error payload must be an object")
        message = payload.get("message") or "Unknown error"
        return cls(message=str(message))

    def to_error(self) -> ProtocolError:
        """Return the error as a ProtocolError."""
        return ProtocolError(self.message)
