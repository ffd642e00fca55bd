"""
Error Types for the Chat Client

Every failure the client can run into is one of the classes below. None of
them escape an intent or the receive loop: they are caught by the
ConnectionManager / IntentDispatcher and end up in the session's
``last_error`` (or only in the log, for DecodeError).
"""


class ChatClientError(Exception):
    """Base class for all chat client errors."""


class ValidationError(ChatClientError, ValueError):
    """Join input was rejected locally (empty name, malformed room code)."""


class TransportError(ChatClientError, ConnectionError):
    """The connection could not be established or was dropped."""


class ProtocolError(ChatClientError):
    """
    The server reported an error for an action (room full, room not found).

    Attributes:
        message: Human-readable message sent by the server
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DecodeError(ChatClientError, ValueError):
    """An inbound frame could not be decoded into a known event."""
