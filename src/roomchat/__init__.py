"""
Real-Time Chat Room Client

This package provides the client side of an ephemeral chat room service:
the wire protocol codec, the session state machine, the connection manager
that drives it over a WebSocket, and the intent surface the terminal user
interface calls.

Schemas are organized in the `schemas` subpackage by category:
    - room: Join/leave requests, join acknowledgment, participant snapshots
    - message: Chat messages and server-reported errors
"""

from .codec import ProtocolCodec
from .config import ClientSettings
from .connection_manager import ConnectionManager
from .dispatcher import IntentDispatcher
from .errors import (
    ChatClientError,
    DecodeError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from .room_code import generate_room_code, is_valid_room_code
from .session import (
    ChatMessage,
    ConnectionStatus,
    RoomSessionState,
    SessionView,
)
from .state_machine import SessionStateMachine
from .transport import Transport, WebSocketTransport
from .schemas import (
    # Base classes
    BaseRequest,
    BaseEvent,
    # Room schemas
    JoinRequest,
    LeaveRequest,
    RoomJoinedEvent,
    UserListEvent,
    # Message schemas
    ChatMessageRequest,
    ChatMessageEvent,
    ServerErrorEvent,
)

__all__ = [
    # Core classes
    "ProtocolCodec",
    "ClientSettings",
    "ConnectionManager",
    "IntentDispatcher",
    "SessionStateMachine",
    "Transport",
    "WebSocketTransport",
    # Session model
    "ChatMessage",
    "ConnectionStatus",
    "RoomSessionState",
    "SessionView",
    # Errors
    "ChatClientError",
    "DecodeError",
    "ProtocolError",
    "TransportError",
    "ValidationError",
    # Room codes
    "generate_room_code",
    "is_valid_room_code",
    # Base schema classes
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
