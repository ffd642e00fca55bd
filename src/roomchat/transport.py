"""
Transport Layer

This module isolates all network I/O behind a minimal capability interface
so that the connection state machine can be exercised without a live
server.

Architecture:
    - ``Transport`` is the capability interface: ``send``, ``close`` and
      async iteration over inbound text frames
    - ``WebSocketTransport`` implements it on top of the websockets library
    - Supports dependency injection for the websocket factory (for
      testability)
    - Library exceptions are translated into TransportError here
"""

import logging
from typing import AsyncIterator, Callable, Optional, Protocol

import websockets

from .errors import TransportError

logger = logging.getLogger(__name__)

# Seconds to wait for the opening handshake
DEFAULT_OPEN_TIMEOUT = 10.0


class Transport(Protocol):
    """Capability interface the ConnectionManager needs from a connection."""

    async def send(self, frame: str) -> None:
        """Send one text frame."""

    async def close(self) -> None:
        """Close the connection. Must be safe to call more than once."""

    def __aiter__(self) -> AsyncIterator[str]:
        """
        Iterate over inbound text frames.

        Iteration ends normally when the peer closes the connection cleanly
        and raises TransportError when it is dropped.
        """


class WebSocketTransport:
    """
    Transport over a single WebSocket connection.

    Attributes:
        url: WebSocket URL of the room-coordination service
        websocket: The underlying websockets connection
    """

    def __init__(self, url: str, websocket) -> None:
        """
        Wrap an already-open websocket connection.

        Args:
            url: URL the connection was opened to
            websocket: Open connection object from websockets.connect
        """
        self.url = url
        self.websocket = websocket
        self._closed = False

    @classmethod
    async def open(
        cls,
        url: str,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
        websocket_factory: Optional[Callable] = None,
    ) -> "WebSocketTransport":
        """
        Establish a WebSocket connection to the service.

        Args:
            url: WebSocket URL (ws:// or wss://)
            open_timeout: Seconds to wait for the opening handshake
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)

        Returns:
            An open WebSocketTransport

        Raises:
            TransportError: If the connection cannot be established
        """
        factory = websocket_factory or websockets.connect
        try:
            logger.info("Connecting to %s...", url)
            websocket = await factory(url, open_timeout=open_timeout)
        except Exception as e:
            logger.error("Failed to connect to %s: %s", url, e)
            raise TransportError(f"Could not connect to {url}: {e}") from e

        logger.info("Successfully connected to %s", url)
        return cls(url, websocket)

    @property
    def is_closed(self) -> bool:
        """Check if close() has been called."""
        return self._closed

    async def send(self, frame: str) -> None:
        """
        Send one text frame.

        Raises:
            TransportError: If the connection is closed or sending fails
        """
        if self._closed:
            raise TransportError("Transport is closed")
        try:
            await self.websocket.send(frame)
        except websockets.exceptions.ConnectionClosed as e:
            raise TransportError(f"Connection closed on send: {e}") from e
        except OSError as e:
            raise TransportError(f"Failed to send frame: {e}") from e

    async def close(self) -> None:
        """Close the WebSocket connection."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.websocket.close()
        except (OSError, websockets.exceptions.WebSocketException) as e:
            logger.warning("Error while closing connection: %s", e)
        logger.info("Disconnected from %s", self.url)

    async def __aiter__(self) -> AsyncIterator[str]:
        """
        Yield inbound frames until the connection closes.

        Binary frames are decoded as UTF-8.

        Raises:
            TransportError: If the connection is dropped abnormally
        """
        try:
            async for message in self.websocket:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                logger.debug("Received frame: %s", message)
                yield message
        except websockets.exceptions.ConnectionClosedOK:
            logger.info("Connection closed by server")
        except websockets.exceptions.ConnectionClosedError as e:
            logger.warning("Connection dropped: %s", e)
            raise TransportError(f"Connection dropped: {e}") from e
        except OSError as e:
            raise TransportError(f"Connection failed: {e}") from e
