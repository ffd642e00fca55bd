"""
Chat Application UI

Terminal UI for the chat room client, built using the Textual framework.
It renders SessionView snapshots and forwards user intents to the
IntentDispatcher; it holds no session logic of its own.
"""

import asyncio
import functools
import logging
from datetime import datetime
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import (
    Container,
    Horizontal,
    ScrollableContainer,
    Vertical,
)
from textual.css.query import NoMatches
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
)

from ..config import ClientSettings
from ..connection_manager import ConnectionManager
from ..dispatcher import IntentDispatcher
from ..room_code import ROOM_CODE_LENGTH
from ..session import ConnectionStatus, SessionView
from ..transport import WebSocketTransport

logger = logging.getLogger(__name__)


class MessageDisplay(Static):
    """Widget for displaying a single chat message."""

    def __init__(
        self,
        username: str,
        message_content: str,
        timestamp: datetime,
        is_own_message: bool = False,
    ) -> None:
        """Initialize message display."""
        super().__init__()
        self.msg_username = username
        self.msg_content = message_content
        self.msg_timestamp = timestamp
        self.is_own_message = is_own_message

    def compose(self) -> ComposeResult:
        """Compose the message display."""
        time_part = self.msg_timestamp.astimezone().strftime("%H:%M:%S")
        prefix = "You" if self.is_own_message else self.msg_username
        yield Static(
            f"{prefix}  {time_part}", classes="message-sender", markup=False
        )
        yield Static(
            self.msg_content, classes="message-content", markup=False
        )


class JoinScreen(Container):
    """Screen for creating or joining a room."""

    def compose(self) -> ComposeResult:
        """Compose the join screen."""
        yield Static(
            "[bold]💬 Real Time Chat[/]",
            id="title",
            classes="screen-title",
        )
        yield Static(
            "Temporary room that expires after all users exit",
            classes="subtitle",
        )
        yield Static(
            "", id="join-status", classes="status-message", markup=False
        )
        with Vertical(id="join-form"):
            yield Button(
                "Create New Room", id="create-room-btn", variant="primary"
            )
            yield Label("Name:")
            yield Input(placeholder="Enter your name", id="name-input")
            yield Label("Room Code:")
            with Horizontal(id="room-code-row"):
                yield Input(
                    placeholder="Enter Room Code",
                    id="room-code-input",
                    max_length=ROOM_CODE_LENGTH,
                )
                yield Button("Join Room", id="join-btn", variant="default")
            with Horizontal(id="room-code-box", classes="hidden"):
                yield Static("", id="room-code-display")
                yield Button("Copy", id="copy-code-btn", variant="default")


class ChatScreen(Container):
    """Screen for chatting in a room."""

    def compose(self) -> ComposeResult:
        """Compose the chat screen."""
        with Horizontal(id="chat-container"):
            with Vertical(id="sidebar"):
                yield Static(
                    "[bold]Participants[/]", classes="sidebar-header"
                )
                yield ListView(id="participant-list")
                yield Button(
                    "Leave Room", id="leave-room-btn", variant="error"
                )
            with Vertical(id="chat-main"):
                yield Static("", id="room-header", classes="room-header")
                yield ScrollableContainer(id="messages-container")
                with Horizontal(id="message-input-row"):
                    yield Input(
                        placeholder="Type a message...",
                        id="message-input",
                    )
                    yield Button("Send", id="send-btn", variant="primary")


class ChatApp(App):
    """Main chat application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    .screen-title {
        text-align: center;
        padding: 1 0;
        text-style: bold;
    }

    .subtitle {
        text-align: center;
        padding: 0 0 1 0;
    }

    .status-message {
        text-align: center;
        padding: 1;
    }

    .status-error {
        color: $error;
    }

    .status-pending {
        color: $warning;
    }

    JoinScreen {
        align: center middle;
    }

    #join-form {
        align: center middle;
        padding: 2;
        width: 70;
        height: auto;
    }

    #join-form Input {
        margin: 0 0 1 0;
    }

    #create-room-btn {
        width: 100%;
        margin: 0 0 1 0;
    }

    #room-code-row {
        height: auto;
    }

    #room-code-input {
        width: 1fr;
    }

    #join-btn {
        margin: 0 0 0 1;
    }

    #room-code-box {
        height: auto;
        margin: 1 0 0 0;
        padding: 1;
        background: $surface;
    }

    #room-code-display {
        width: 1fr;
        text-align: center;
        text-style: bold;
    }

    ChatScreen {
        height: 100%;
    }

    #chat-container {
        height: 100%;
    }

    #sidebar {
        width: 1fr;
        border-right: solid $primary;
        padding: 0 1;
    }

    .sidebar-header {
        padding: 1 0;
        text-align: center;
    }

    #participant-list {
        height: 1fr;
    }

    #leave-room-btn {
        margin: 1 0 0 0;
        width: 100%;
    }

    #chat-main {
        width: 3fr;
    }

    .room-header {
        padding: 1;
        background: $surface;
        text-align: center;
    }

    #messages-container {
        height: 1fr;
        padding: 1;
    }

    #message-input-row {
        height: 3;
        padding: 0 1;
    }

    #message-input {
        width: 1fr;
    }

    #send-btn {
        margin: 0 0 0 1;
    }

    MessageDisplay {
        padding: 0 0 1 0;
        height: auto;
    }

    .message-sender {
        padding: 0 1;
        text-style: bold;
        color: $accent;
    }

    .message-content {
        padding: 0 1;
    }

    .own-message {
        background: $primary-darken-2;
    }

    .own-message .message-sender,
    .own-message .message-content {
        text-align: right;
    }

    .hidden {
        display: none;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("escape", "leave_room", "Leave Room", show=True),
    ]

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        manager: Optional[ConnectionManager] = None,
    ) -> None:
        """
        Initialize the chat application.

        Args:
            settings: Client settings (defaults if omitted)
            manager: ConnectionManager to drive (built from settings if
                omitted)
        """
        super().__init__()
        self.settings = settings or ClientSettings()
        self.manager = manager or ConnectionManager(
            self.settings.server_url,
            transport_factory=functools.partial(
                WebSocketTransport.open,
                open_timeout=self.settings.open_timeout,
            ),
        )
        self.dispatcher = IntentDispatcher(self.manager)
        self.session_view: SessionView = self.manager.snapshot()
        self._current_screen = "join"
        self._rendered_message_count = 0
        self._join_task: Optional[asyncio.Task] = None
        self._leave_task: Optional[asyncio.Task] = None

        self.manager.set_on_state_changed(self._handle_state_changed)

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header()
        yield JoinScreen(id="join-screen")
        yield ChatScreen(id="chat-screen")
        yield Footer()

    def on_mount(self) -> None:
        """Handle application mount."""
        self.title = "Real Time Chat"
        self._show_screen("join")

    async def on_unmount(self) -> None:
        """Release the connection when the UI goes away."""
        await self.manager.shutdown()

    def _show_screen(self, screen_name: str) -> None:
        """Show a specific screen and hide the other."""
        screens = {
            "join": "join-screen",
            "chat": "chat-screen",
        }

        for name, screen_id in screens.items():
            try:
                screen = self.query_one(f"#{screen_id}")
                screen.display = name == screen_name
            except NoMatches:
                pass

        self._current_screen = screen_name

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        button_id = event.button.id

        if button_id == "create-room-btn":
            self._handle_create_room()
        elif button_id == "copy-code-btn":
            self._handle_copy_code()
        elif button_id == "join-btn":
            self._handle_join()
        elif button_id == "send-btn":
            await self._handle_send_message()
        elif button_id == "leave-room-btn":
            await self.dispatcher.leave()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle input submit events (Enter key)."""
        input_id = event.input.id

        if input_id == "message-input":
            await self._handle_send_message()
        elif input_id in ("name-input", "room-code-input"):
            self._handle_join()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Keep the room code upper-case and mirrored in the code box."""
        if event.input.id != "room-code-input":
            return

        upper = event.value.upper()
        if upper != event.value:
            event.input.value = upper
            return
        self._show_room_code(upper)

    def _handle_create_room(self) -> None:
        """Fill the room code input with a freshly generated code."""
        code = self.dispatcher.create_room_code()
        try:
            self.query_one("#room-code-input", Input).value = code
        except NoMatches:
            pass
        self._show_room_code(code)

    def _handle_copy_code(self) -> None:
        """Copy the current room code to the clipboard."""
        try:
            code = self.query_one("#room-code-input", Input).value
        except NoMatches:
            return
        if not code:
            return
        self.copy_to_clipboard(code)
        self.notify("Room code copied!")

    def _handle_join(self) -> None:
        """Start a join attempt without blocking the UI."""
        if self._join_task is not None and not self._join_task.done():
            return

        try:
            name = self.query_one("#name-input", Input).value
            code = self.query_one("#room-code-input", Input).value
        except NoMatches:
            return

        self._join_task = asyncio.create_task(
            self.dispatcher.join(name, code)
        )

    async def _handle_send_message(self) -> None:
        """Handle sending a message."""
        try:
            message_input = self.query_one("#message-input", Input)
        except NoMatches:
            return

        if await self.dispatcher.send(message_input.value):
            message_input.value = ""

    def action_leave_room(self) -> None:
        """Handle leave action."""
        if self._current_screen != "chat":
            return
        if self._leave_task is not None and not self._leave_task.done():
            return
        self._leave_task = asyncio.create_task(self.dispatcher.leave())

    def _handle_state_changed(self, view: SessionView) -> None:
        """Callback when the session state changes."""
        self.session_view = view
        self.call_later(self._render_view)

    def _show_room_code(self, code: str) -> None:
        try:
            box = self.query_one("#room-code-box")
            self.query_one("#room-code-display", Static).update(code)
        except NoMatches:
            return
        if code:
            box.remove_class("hidden")
        else:
            box.add_class("hidden")

    async def _render_view(self) -> None:
        """Bring every widget in line with the latest SessionView."""
        view = self.session_view

        if view.connection_status is ConnectionStatus.CONNECTED:
            self._show_screen("chat")
        else:
            self._show_screen("join")

        try:
            status = self.query_one("#join-status", Static)
            status.remove_class("status-error", "status-pending")
            if view.error:
                status.update(f"⚠ {view.error}")
                status.add_class("status-error")
            elif view.connection_status is ConnectionStatus.CONNECTING:
                status.update("Connecting...")
                status.add_class("status-pending")
            else:
                status.update("")

            header = self.query_one("#room-header", Static)
            header.update(
                f"Room: {view.room_code or ''} "
                f"| Participants: {len(view.participants)}"
            )

            participant_list = self.query_one("#participant-list", ListView)
            await participant_list.clear()
            for participant in view.participants:
                label = participant
                if participant == view.display_name:
                    label = f"{participant} (you)"
                participant_list.append(
                    ListItem(Label(label, markup=False))
                )

            await self._render_messages(view)
        except NoMatches:
            pass

    async def _render_messages(self, view: SessionView) -> None:
        """Mount widgets for messages not rendered yet."""
        messages = self.query_one("#messages-container", ScrollableContainer)

        if (
            len(view.messages) < self._rendered_message_count
            or view.connection_status is not ConnectionStatus.CONNECTED
        ):
            await messages.remove_children()
            self._rendered_message_count = 0

        for message in view.messages[self._rendered_message_count :]:
            is_own = message.sender == view.display_name
            msg_widget = MessageDisplay(
                username=message.sender,
                message_content=message.text,
                timestamp=message.received_at,
                is_own_message=is_own,
            )
            if is_own:
                msg_widget.add_class("own-message")
            messages.mount(msg_widget)

        if len(view.messages) != self._rendered_message_count:
            self._rendered_message_count = len(view.messages)
            messages.scroll_end()
