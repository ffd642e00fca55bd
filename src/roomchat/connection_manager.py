"""
Connection Manager

This module owns the transport for a chat session and runs the effects the
SessionStateMachine asks for. It is the only place where network I/O meets
session state.

Architecture:
    - Every user intent and every transport event becomes one state machine
      event, dispatched from a single asyncio event loop
    - A background receive task per transport decodes inbound frames and
      feeds them to the state machine
    - The transport is closed on every path out of CONNECTING/CONNECTED:
      leave, transport error, remote close and shutdown
    - Provides a callback hook for UI integration

Usage:
    manager = ConnectionManager("wss://chat.example.com")
    manager.set_on_state_changed(render)
    await manager.join("alice", "AB12CD")
    await manager.send_message("hello")
    await manager.leave()
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from .codec import ProtocolCodec
from .errors import TransportError
from .schemas import BaseRequest
from .session import ConnectionStatus, RoomSessionState, SessionView
from .state_machine import (
    CloseTransport,
    Effect,
    Event,
    FrameReceived,
    JoinRequested,
    LeaveRequested,
    OpenTransport,
    SendFrame,
    SendRequested,
    SessionStateMachine,
    TransportClosed,
    TransportErrored,
    TransportFailed,
    TransportOpened,
)
from .transport import Transport, WebSocketTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str], Awaitable[Transport]]


class ConnectionManager:
    """
    Drives one chat session over one transport at a time.

    Attributes:
        server_url: URL of the room-coordination service
        session: The RoomSessionState being driven
    """

    def __init__(
        self,
        server_url: str,
        session: Optional[RoomSessionState] = None,
        transport_factory: Optional[TransportFactory] = None,
        codec: Optional[ProtocolCodec] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the connection manager.

        Args:
            server_url: URL of the room-coordination service
            session: Session to drive (a fresh one if omitted)
            transport_factory: Coroutine function opening a Transport for a
                URL (for dependency injection/testing); defaults to
                WebSocketTransport.open
            codec: Frame codec
            clock: Receipt-time source for chat messages
        """
        self.server_url = server_url
        self._machine = SessionStateMachine(session, clock=clock)
        self._codec = codec or ProtocolCodec()
        self._transport_factory = transport_factory or WebSocketTransport.open
        self._transport: Optional[Transport] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._on_state_changed: Optional[Callable[[SessionView], None]] = None

        logger.info("ConnectionManager initialized for %s", server_url)

    @property
    def session(self) -> RoomSessionState:
        """The session being driven."""
        return self._machine.session

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._machine.status

    @property
    def transport(self) -> Optional[Transport]:
        """The open transport, or None."""
        return self._transport

    def snapshot(self) -> SessionView:
        """Return an immutable view of the session."""
        return self.session.snapshot()

    def set_on_state_changed(
        self, callback: Callable[[SessionView], None]
    ) -> None:
        """
        Register callback for session state changes.

        Args:
            callback: Function that receives a SessionView after each event
        """
        self._on_state_changed = callback

    def record_error(self, message: str) -> None:
        """
        Surface a locally detected error (e.g. rejected join input).

        Args:
            message: Human-readable error message
        """
        self.session.set_error(message)
        self._notify()

    async def join(self, display_name: str, room_code: str) -> None:
        """
        Start joining a room. Input must already be validated.

        Returns once the join frame is sent or the attempt failed; the
        room_joined acknowledgment arrives later through the receive loop.
        """
        await self._handle(JoinRequested(display_name, room_code))

    async def send_message(self, text: str) -> None:
        """Send a chat message if the session is connected."""
        await self._handle(SendRequested(text))

    async def leave(self) -> None:
        """Leave the room and close the transport."""
        await self._handle(LeaveRequested())

    async def shutdown(self) -> None:
        """Leave any room and release the transport on teardown."""
        if not self.session.is_disconnected:
            await self.leave()
        await self._close_transport()

    async def _handle(self, event: Event) -> None:
        """Dispatch one event and perform the resulting effects."""
        effects = self._machine.dispatch(event)
        self._notify()
        for effect in effects:
            await self._perform(effect)

    async def _perform(self, effect: Effect) -> None:
        if isinstance(effect, OpenTransport):
            await self._open_transport(effect.attempt)
        elif isinstance(effect, SendFrame):
            await self._send_frame(effect.request)
        elif isinstance(effect, CloseTransport):
            await self._close_transport()
        else:
            logger.warning("Unknown effect ignored: %r", effect)

    async def _open_transport(self, attempt: int) -> None:
        """Open a transport for a join attempt and start receiving."""
        try:
            transport = await self._transport_factory(self.server_url)
        except Exception as e:
            logger.error("WebSocket connection error: %s", e)
            await self._handle(TransportFailed(attempt, str(e)))
            return

        if (
            attempt != self._machine.attempt
            or self.status is not ConnectionStatus.CONNECTING
        ):
            logger.info("Join attempt %d was cancelled while opening", attempt)
            await self._close_quietly(transport)
            return

        self._transport = transport
        self._receive_task = asyncio.create_task(
            self._receive_loop(transport)
        )
        await self._handle(TransportOpened(attempt))

    async def _send_frame(self, request: BaseRequest) -> None:
        transport = self._transport
        if transport is None:
            logger.debug("No transport, dropping %s", type(request).__name__)
            return

        try:
            await transport.send(self._codec.encode(request))
        except TransportError as e:
            logger.error(
                "Failed to send %s frame: %s", type(request).__name__, e
            )
            if transport is self._transport:
                await self._handle(TransportErrored(str(e)))

    async def _close_transport(self) -> None:
        """Stop the receive task and close the current transport."""
        transport, self._transport = self._transport, None
        task, self._receive_task = self._receive_task, None

        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if transport is not None:
            await self._close_quietly(transport)

    async def _close_quietly(self, transport: Transport) -> None:
        try:
            await transport.close()
        except Exception as e:
            logger.warning("Error while closing transport: %s", e)

    async def _receive_loop(self, transport: Transport) -> None:
        """
        Feed inbound frames to the state machine until the transport ends.

        Malformed frames are dropped by the codec. A clean close becomes
        TransportClosed, a dropped connection becomes TransportErrored.
        """
        logger.info("Starting frame receive loop")

        try:
            async for raw in transport:
                if transport is not self._transport:
                    return
                event = self._codec.try_decode(raw)
                if event is None:
                    continue
                await self._handle(FrameReceived(event))
        except asyncio.CancelledError:
            raise
        except TransportError as e:
            if transport is self._transport:
                await self._handle(TransportErrored(str(e)))
            return
        except Exception as e:
            logger.exception("Error in frame receive loop: %s", e)
            if transport is self._transport:
                await self._handle(TransportErrored(str(e)))
            return

        if transport is self._transport:
            await self._handle(TransportClosed("closed by server"))

    def _notify(self) -> None:
        if self._on_state_changed is None:
            return
        try:
            self._on_state_changed(self.session.snapshot())
        except Exception:
            logger.exception("State change callback failed")
