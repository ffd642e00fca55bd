"""
Session State Machine

Pure transition logic for a chat session. ``SessionStateMachine.dispatch``
takes one event, mutates the RoomSessionState it owns and returns the
effects the caller must perform against the transport. It never touches
the network itself, so it can be driven with synthetic event sequences in
tests.

States:
    DISCONNECTED -> CONNECTING   on JoinRequested
    CONNECTING   -> CONNECTED    on a room_joined frame
    CONNECTING   -> DISCONNECTED on TransportFailed/Closed/Errored
    CONNECTED    -> DISCONNECTED on LeaveRequested/TransportClosed/Errored
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from .schemas import (
    BaseEvent,
    BaseRequest,
    ChatMessageEvent,
    ChatMessageRequest,
    JoinRequest,
    LeaveRequest,
    RoomJoinedEvent,
    ServerErrorEvent,
    UserListEvent,
)
from .session import ChatMessage, ConnectionStatus, RoomSessionState
from .validation import normalize_message_text

logger = logging.getLogger(__name__)

# last_error texts for transport failures
CONNECT_FAILED = "Could not establish WebSocket connection"
TRANSPORT_FAILED = "Failed to connect to the room"
CLOSED_BEFORE_JOIN = "Connection closed before the room was joined"
CONNECTION_LOST = "Connection to the room was lost"


# Events


@dataclass(frozen=True)
class JoinRequested:
    """User asked to join a room; input is already validated."""

    display_name: str
    room_code: str


@dataclass(frozen=True)
class TransportOpened:
    """The transport for the given attempt finished opening."""

    attempt: int


@dataclass(frozen=True)
class TransportFailed:
    """The transport for the given attempt could not be opened."""

    attempt: int
    reason: str = ""


@dataclass(frozen=True)
class FrameReceived:
    """A decoded frame arrived on the current transport."""

    event: BaseEvent


@dataclass(frozen=True)
class TransportClosed:
    """The current transport was closed by the other side."""

    reason: str = ""


@dataclass(frozen=True)
class TransportErrored:
    """The current transport failed (abnormal close, send failure)."""

    reason: str = ""


@dataclass(frozen=True)
class SendRequested:
    """User asked to send a chat message."""

    text: str


@dataclass(frozen=True)
class LeaveRequested:
    """User asked to leave the room."""


Event = Union[
    JoinRequested,
    TransportOpened,
    TransportFailed,
    FrameReceived,
    TransportClosed,
    TransportErrored,
    SendRequested,
    LeaveRequested,
]


# Effects


@dataclass(frozen=True)
class OpenTransport:
    """Open a transport for the given attempt."""

    attempt: int


@dataclass(frozen=True)
class SendFrame:
    """Send one request frame on the current transport."""

    request: BaseRequest


@dataclass(frozen=True)
class CloseTransport:
    """Close the current transport, if any."""


Effect = Union[OpenTransport, SendFrame, CloseTransport]


class SessionStateMachine:
    """
    Explicit state machine for one chat session.

    Attributes:
        session: The RoomSessionState this machine owns
        attempt: Number of the current join attempt; transport events
            tagged with an older attempt are stale and ignored
        transport_open: Whether the current attempt's transport is open
    """

    def __init__(
        self,
        session: Optional[RoomSessionState] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the state machine.

        Args:
            session: Session to drive (a fresh one if omitted)
            clock: Returns the receipt time for chat messages
        """
        self.session = session or RoomSessionState()
        self.attempt = 0
        self.transport_open = False
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self.session.connection_status

    def dispatch(self, event: Event) -> List[Effect]:
        """
        Apply one event.

        Args:
            event: The event to apply

        Returns:
            Effects to perform, in order
        """
        if isinstance(event, JoinRequested):
            return self._on_join_requested(event)
        if isinstance(event, TransportOpened):
            return self._on_transport_opened(event)
        if isinstance(event, TransportFailed):
            return self._on_transport_failed(event)
        if isinstance(event, FrameReceived):
            return self._on_frame(event.event)
        if isinstance(event, TransportClosed):
            return self._on_transport_lost(event.reason, errored=False)
        if isinstance(event, TransportErrored):
            return self._on_transport_lost(event.reason, errored=True)
        if isinstance(event, SendRequested):
            return self._on_send_requested(event)
        if isinstance(event, LeaveRequested):
            return self._on_leave_requested()

        logger.warning("Unknown event ignored: %r", event)
        return []

    def _on_join_requested(self, event: JoinRequested) -> List[Effect]:
        if not self.session.is_disconnected:
            logger.warning(
                "Join for room %s ignored: already %s",
                event.room_code,
                self.status.value,
            )
            return []

        self.attempt += 1
        self.transport_open = False
        self.session.begin_attempt(event.display_name, event.room_code)
        logger.info(
            "Joining room %s as %s (attempt %d)",
            event.room_code,
            event.display_name,
            self.attempt,
        )
        return [OpenTransport(self.attempt)]

    def _on_transport_opened(self, event: TransportOpened) -> List[Effect]:
        if (
            event.attempt != self.attempt
            or self.status is not ConnectionStatus.CONNECTING
        ):
            # leave() landed while the transport was opening; the caller
            # owns that transport and must close it
            logger.info(
                "Transport of cancelled attempt %d ignored", event.attempt
            )
            return []

        self.transport_open = True
        return [
            SendFrame(
                JoinRequest(
                    room_id=self.session.room_code,
                    user_name=self.session.display_name,
                )
            )
        ]

    def _on_transport_failed(self, event: TransportFailed) -> List[Effect]:
        if (
            event.attempt != self.attempt
            or self.status is not ConnectionStatus.CONNECTING
        ):
            return []

        logger.error(
            "Connection attempt %d failed: %s", event.attempt, event.reason
        )
        self.transport_open = False
        self.session.reset()
        self.session.set_error(CONNECT_FAILED)
        return []

    def _on_frame(self, frame: BaseEvent) -> List[Effect]:
        if self.session.is_disconnected:
            logger.debug("Frame %r ignored while disconnected", frame)
            return []

        if isinstance(frame, RoomJoinedEvent):
            if self.status is ConnectionStatus.CONNECTING:
                self.session.mark_connected()
                logger.info(
                    "Successfully joined room %s", self.session.room_code
                )
        elif isinstance(frame, UserListEvent):
            self.session.replace_participants(frame.participants)
        elif isinstance(frame, ChatMessageEvent):
            self.session.append_message(
                ChatMessage(
                    sender=frame.sender,
                    text=frame.text,
                    received_at=self._clock(),
                )
            )
        elif isinstance(frame, ServerErrorEvent):
            error = frame.to_error()
            logger.warning("Server reported an error: %s", error)
            self.session.set_error(error.message)
        else:
            logger.debug("Unhandled frame: %r", frame)
        return []

    def _on_transport_lost(self, reason: str, errored: bool) -> List[Effect]:
        if self.session.is_disconnected:
            return []

        was_connecting = self.status is ConnectionStatus.CONNECTING
        if errored:
            logger.error("Transport error: %s", reason)
            message = TRANSPORT_FAILED
        else:
            logger.warning("Connection closed by server: %s", reason)
            message = CLOSED_BEFORE_JOIN if was_connecting else CONNECTION_LOST

        self.transport_open = False
        self.session.reset()
        self.session.set_error(message)
        return [CloseTransport()]

    def _on_send_requested(self, event: SendRequested) -> List[Effect]:
        text = normalize_message_text(event.text)
        if (
            text is None
            or not self.transport_open
            or not self.session.is_connected
        ):
            return []

        return [
            SendFrame(
                ChatMessageRequest(
                    room_id=self.session.room_code,
                    sender=self.session.display_name,
                    text=text,
                )
            )
        ]

    def _on_leave_requested(self) -> List[Effect]:
        if self.session.is_disconnected:
            return []

        effects: List[Effect] = []
        if self.transport_open:
            effects.append(
                SendFrame(
                    LeaveRequest(
                        room_id=self.session.room_code,
                        user_name=self.session.display_name,
                    )
                )
            )
        effects.append(CloseTransport())

        logger.info("Leaving room %s", self.session.room_code)
        self.transport_open = False
        self.session.reset()
        return effects
