"""
Tests for the Session State Machine

Drives the state machine with synthetic event sequences, with no network:
- CONNECTED is reached only on room_joined, never on transport open
- Exactly one join frame per attempt
- Participant snapshots replace, messages append
- Every path out of a room resets the session
- Sends are gated on CONNECTED and an open transport
- Events from a cancelled attempt are ignored
"""

from datetime import datetime, timezone

import pytest

from roomchat import (
    ChatMessageEvent,
    ChatMessageRequest,
    ConnectionStatus,
    JoinRequest,
    LeaveRequest,
    RoomJoinedEvent,
    ServerErrorEvent,
    SessionStateMachine,
    UserListEvent,
)
from roomchat.state_machine import (
    CLOSED_BEFORE_JOIN,
    CONNECT_FAILED,
    CONNECTION_LOST,
    TRANSPORT_FAILED,
    CloseTransport,
    FrameReceived,
    JoinRequested,
    LeaveRequested,
    OpenTransport,
    SendFrame,
    SendRequested,
    TransportClosed,
    TransportErrored,
    TransportFailed,
    TransportOpened,
)

NOW = datetime(2025, 11, 23, 12, 30, 0, tzinfo=timezone.utc)


def make_machine():
    return SessionStateMachine(clock=lambda: NOW)


def connecting_machine(name="alice", code="AB12CD"):
    """Machine with an open transport waiting for room_joined."""
    machine = make_machine()
    machine.dispatch(JoinRequested(name, code))
    machine.dispatch(TransportOpened(machine.attempt))
    return machine


def connected_machine(name="alice", code="AB12CD"):
    machine = connecting_machine(name, code)
    machine.dispatch(FrameReceived(RoomJoinedEvent()))
    return machine


class TestJoin:
    """Tests for the join handshake."""

    def test_join_requests_a_transport(self):
        """Test that joining opens a transport and enters CONNECTING."""
        machine = make_machine()

        effects = machine.dispatch(JoinRequested("alice", "AB12CD"))

        assert effects == [OpenTransport(attempt=1)]
        assert machine.status is ConnectionStatus.CONNECTING
        assert machine.session.room_code == "AB12CD"
        assert machine.session.display_name == "alice"

    def test_transport_open_sends_exactly_one_join_frame(self):
        """Test that the join frame is sent once the transport opens."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))

        effects = machine.dispatch(TransportOpened(machine.attempt))

        assert effects == [
            SendFrame(JoinRequest(room_id="AB12CD", user_name="alice"))
        ]

    def test_transport_open_is_not_connected(self):
        """Test that an open transport alone does not mean CONNECTED."""
        machine = connecting_machine()
        assert machine.status is ConnectionStatus.CONNECTING
        assert machine.transport_open

    def test_room_joined_connects(self):
        """Test that room_joined moves CONNECTING to CONNECTED."""
        machine = connecting_machine()

        effects = machine.dispatch(FrameReceived(RoomJoinedEvent()))

        assert effects == []
        assert machine.status is ConnectionStatus.CONNECTED

    def test_join_while_connecting_is_ignored(self):
        """Test that a second join does not start a second attempt."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))

        effects = machine.dispatch(JoinRequested("bob", "XYZ789"))

        assert effects == []
        assert machine.attempt == 1
        assert machine.session.room_code == "AB12CD"

    def test_join_while_connected_is_ignored(self):
        """Test that joining again while in a room does nothing."""
        machine = connected_machine()
        assert machine.dispatch(JoinRequested("bob", "XYZ789")) == []
        assert machine.status is ConnectionStatus.CONNECTED

    def test_new_attempt_clears_previous_error(self):
        """Test that last_error is cleared by a new join attempt."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))
        machine.dispatch(TransportFailed(machine.attempt, "refused"))
        assert machine.session.last_error == CONNECT_FAILED

        machine.dispatch(JoinRequested("alice", "AB12CD"))

        assert machine.session.last_error is None
        assert machine.attempt == 2

    def test_transport_failure_resets_with_error(self):
        """Test that a failed open returns to DISCONNECTED."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))

        effects = machine.dispatch(TransportFailed(machine.attempt, "dns"))

        assert effects == []
        assert machine.status is ConnectionStatus.DISCONNECTED
        assert machine.session.room_code is None
        assert machine.session.last_error == CONNECT_FAILED


class TestInboundFrames:
    """Tests for how decoded frames change the session."""

    def test_user_list_replaces_participants(self):
        """Test that each snapshot fully replaces the previous one."""
        machine = connected_machine()

        machine.dispatch(FrameReceived(UserListEvent(["alice", "bob"])))
        machine.dispatch(FrameReceived(UserListEvent(["alice"])))

        assert machine.session.participants == ["alice"]

    def test_user_list_accepted_while_connecting(self):
        """Test that a snapshot sent before room_joined is kept."""
        machine = connecting_machine()
        machine.dispatch(FrameReceived(UserListEvent(["alice"])))
        assert machine.session.participants == ["alice"]

    def test_chat_messages_append_in_order(self):
        """Test that messages keep arrival order and receipt time."""
        machine = connected_machine()

        machine.dispatch(FrameReceived(ChatMessageEvent("bob", "one")))
        machine.dispatch(FrameReceived(ChatMessageEvent("alice", "two")))
        machine.dispatch(FrameReceived(ChatMessageEvent("bob", "one")))

        messages = machine.session.messages
        assert [(m.sender, m.text) for m in messages] == [
            ("bob", "one"),
            ("alice", "two"),
            ("bob", "one"),
        ]
        assert all(m.received_at == NOW for m in messages)

    def test_server_error_sets_last_error_and_stays_connected(self):
        """Test that an error frame does not by itself disconnect."""
        machine = connected_machine()

        machine.dispatch(FrameReceived(ServerErrorEvent("Room is full")))

        assert machine.session.last_error == "Room is full"
        assert machine.status is ConnectionStatus.CONNECTED

    def test_server_error_while_connecting_keeps_waiting(self):
        """Test that an error before room_joined leaves CONNECTING."""
        machine = connecting_machine()
        machine.dispatch(FrameReceived(ServerErrorEvent("Room not found")))
        assert machine.status is ConnectionStatus.CONNECTING
        assert machine.session.last_error == "Room not found"

    @pytest.mark.parametrize(
        "frame",
        [
            RoomJoinedEvent(),
            UserListEvent(["mallory"]),
            ChatMessageEvent("mallory", "late"),
            ServerErrorEvent("late"),
        ],
    )
    def test_frames_ignored_while_disconnected(self, frame):
        """Test that nothing changes state after leaving."""
        machine = make_machine()

        assert machine.dispatch(FrameReceived(frame)) == []

        assert machine.status is ConnectionStatus.DISCONNECTED
        assert machine.session.participants == []
        assert machine.session.messages == []
        assert machine.session.last_error is None

    def test_room_joined_when_connected_is_harmless(self):
        """Test that a duplicate acknowledgment changes nothing."""
        machine = connected_machine()
        machine.dispatch(FrameReceived(ChatMessageEvent("bob", "hi")))

        machine.dispatch(FrameReceived(RoomJoinedEvent()))

        assert machine.status is ConnectionStatus.CONNECTED
        assert len(machine.session.messages) == 1


class TestSend:
    """Tests for chat message sends."""

    def test_send_when_connected(self):
        """Test that a connected send emits a trimmed chat_message."""
        machine = connected_machine()

        effects = machine.dispatch(SendRequested("  hello  "))

        assert effects == [
            SendFrame(
                ChatMessageRequest(
                    room_id="AB12CD", sender="alice", text="hello"
                )
            )
        ]

    def test_send_does_not_echo_locally(self):
        """Test that own messages only appear once the server relays them."""
        machine = connected_machine()
        machine.dispatch(SendRequested("hello"))
        assert machine.session.messages == []

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_send_is_noop(self, text):
        """Test that blank text never produces a frame."""
        machine = connected_machine()
        assert machine.dispatch(SendRequested(text)) == []

    def test_send_while_connecting_is_noop(self):
        """Test that nothing is sent before room_joined."""
        machine = connecting_machine()
        assert machine.dispatch(SendRequested("too early")) == []

    def test_send_while_disconnected_is_noop(self):
        """Test that nothing is sent or queued without a session."""
        machine = make_machine()
        assert machine.dispatch(SendRequested("hello")) == []


class TestLeaveAndDisconnect:
    """Tests for leaving the room and losing the connection."""

    def test_leave_sends_leave_then_closes(self):
        """Test that leave emits the leave frame before closing."""
        machine = connected_machine()
        machine.dispatch(FrameReceived(UserListEvent(["alice", "bob"])))
        machine.dispatch(FrameReceived(ChatMessageEvent("bob", "hi")))

        effects = machine.dispatch(LeaveRequested())

        assert effects == [
            SendFrame(LeaveRequest(room_id="AB12CD", user_name="alice")),
            CloseTransport(),
        ]
        session = machine.session
        assert session.connection_status is ConnectionStatus.DISCONNECTED
        assert session.room_code is None
        assert session.participants == []
        assert session.messages == []

    def test_leave_is_idempotent(self):
        """Test that a second leave does nothing."""
        machine = connected_machine()
        machine.dispatch(LeaveRequested())
        assert machine.dispatch(LeaveRequested()) == []

    def test_leave_when_disconnected_is_noop(self):
        """Test that leave without a room has no effects."""
        assert make_machine().dispatch(LeaveRequested()) == []

    def test_leave_before_transport_opens_cancels_attempt(self):
        """Test that leaving mid-open closes without a leave frame."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))

        effects = machine.dispatch(LeaveRequested())

        assert effects == [CloseTransport()]
        assert machine.status is ConnectionStatus.DISCONNECTED

    def test_remote_close_while_connected(self):
        """Test that a clean server close resets and reports the loss."""
        machine = connected_machine()
        machine.dispatch(FrameReceived(UserListEvent(["alice"])))

        effects = machine.dispatch(TransportClosed("going away"))

        assert effects == [CloseTransport()]
        assert machine.status is ConnectionStatus.DISCONNECTED
        assert machine.session.participants == []
        assert machine.session.last_error == CONNECTION_LOST

    def test_remote_close_while_connecting(self):
        """Test that a close before room_joined has its own message."""
        machine = connecting_machine()
        machine.dispatch(TransportClosed())
        assert machine.status is ConnectionStatus.DISCONNECTED
        assert machine.session.last_error == CLOSED_BEFORE_JOIN

    def test_transport_error_resets(self):
        """Test that an abnormal drop resets with the transport error."""
        machine = connected_machine()

        effects = machine.dispatch(TransportErrored("reset by peer"))

        assert effects == [CloseTransport()]
        assert machine.status is ConnectionStatus.DISCONNECTED
        assert machine.session.last_error == TRANSPORT_FAILED

    def test_transport_events_ignored_while_disconnected(self):
        """Test that a late close does not overwrite the state."""
        machine = connected_machine()
        machine.dispatch(LeaveRequested())

        assert machine.dispatch(TransportClosed()) == []
        assert machine.dispatch(TransportErrored()) == []
        assert machine.session.last_error is None

    def test_display_name_kept_after_reset(self):
        """Test that the own name survives leaving for the next join."""
        machine = connected_machine()
        machine.dispatch(LeaveRequested())
        assert machine.session.display_name == "alice"


class TestStaleAttempts:
    """Tests for events that belong to a cancelled join attempt."""

    def test_stale_transport_open_is_ignored(self):
        """Test that an old attempt's transport does not send a join."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))
        machine.dispatch(LeaveRequested())
        machine.dispatch(JoinRequested("alice", "XYZ789"))

        effects = machine.dispatch(TransportOpened(attempt=1))

        assert effects == []
        assert not machine.transport_open
        assert machine.session.room_code == "XYZ789"

    def test_transport_open_after_leave_is_ignored(self):
        """Test that an open landing after leave keeps DISCONNECTED."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))
        machine.dispatch(LeaveRequested())

        assert machine.dispatch(TransportOpened(machine.attempt)) == []
        assert machine.status is ConnectionStatus.DISCONNECTED

    def test_stale_transport_failure_is_ignored(self):
        """Test that an old attempt's failure does not reset a new one."""
        machine = make_machine()
        machine.dispatch(JoinRequested("alice", "AB12CD"))
        machine.dispatch(LeaveRequested())
        machine.dispatch(JoinRequested("alice", "XYZ789"))

        machine.dispatch(TransportFailed(attempt=1))

        assert machine.status is ConnectionStatus.CONNECTING
        assert machine.session.last_error is None
