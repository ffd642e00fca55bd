"""
Room Session State

The local model of one chat session: connection status, room code, own
display name, the ordered message log, the current participants and the
last error. Only the SessionStateMachine mutates it; the UI reads immutable
``SessionView`` snapshots.

Reconciliation rules:
    - participants are replaced wholesale by every user_list snapshot
    - messages are appended in arrival order and never deduplicated
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    """Connection lifecycle status."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ChatMessage:
    """
    A chat message as received by this client.

    Attributes:
        sender: Display name of the sender
        text: The message text
        received_at: Local receipt time (UTC)
    """

    sender: str
    text: str
    received_at: datetime


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot of the session handed to the rendering layer."""

    connection_status: ConnectionStatus
    room_code: Optional[str]
    display_name: Optional[str]
    participants: Tuple[str, ...]
    messages: Tuple[ChatMessage, ...]
    error: Optional[str]


@dataclass
class RoomSessionState:
    """
    Authoritative local model of a chat session.

    Attributes:
        connection_status: Current connection lifecycle status
        room_code: Room code of the current attempt, None when disconnected
        display_name: Own display name for the current attempt
        participants: Names from the latest user_list snapshot
        messages: Append-only message log in arrival order
        last_error: Last error message, cleared on a new join attempt
    """

    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    room_code: Optional[str] = None
    display_name: Optional[str] = None
    participants: List[str] = field(default_factory=list)
    messages: List[ChatMessage] = field(default_factory=list)
    last_error: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        """Check if the server has acknowledged room entry."""
        return self.connection_status is ConnectionStatus.CONNECTED

    @property
    def is_disconnected(self) -> bool:
        """Check if there is no connection or connection attempt."""
        return self.connection_status is ConnectionStatus.DISCONNECTED

    def begin_attempt(self, display_name: str, room_code: str) -> None:
        """Start a new join attempt."""
        self.participants.clear()
        self.messages.clear()
        self.last_error = None
        self.display_name = display_name
        self.room_code = room_code
        self.connection_status = ConnectionStatus.CONNECTING

    def mark_connected(self) -> None:
        """Record the server's room_joined acknowledgment."""
        self.connection_status = ConnectionStatus.CONNECTED

    def replace_participants(self, participants: List[str]) -> None:
        """Replace the participant list with a full server snapshot."""
        self.participants = list(participants)

    def append_message(self, message: ChatMessage) -> None:
        """Append a message to the log."""
        self.messages.append(message)

    def set_error(self, message: str) -> None:
        """Record an error for display."""
        self.last_error = message

    def reset(self) -> None:
        """
        Return to DISCONNECTED, dropping room membership.

        Called on leave and on every disconnect. last_error is kept so the
        reason for an abnormal disconnect stays visible.
        """
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.room_code = None
        self.participants.clear()
        self.messages.clear()
        logger.debug("Session state reset")

    def snapshot(self) -> SessionView:
        """Return an immutable view for rendering."""
        return SessionView(
            connection_status=self.connection_status,
            room_code=self.room_code,
            display_name=self.display_name,
            participants=tuple(self.participants),
            messages=tuple(self.messages),
            error=self.last_error,
        )
