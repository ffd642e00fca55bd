"""
Intent Dispatcher

The narrow surface the presentation layer calls. Each intent checks its
preconditions and hands off to the ConnectionManager; nothing here raises
to the caller. Outcomes show up as later session state changes.
"""

import logging
import random
from typing import Optional

from .connection_manager import ConnectionManager
from .errors import ValidationError
from .room_code import generate_room_code
from .validation import normalize_message_text, validate_join_input

logger = logging.getLogger(__name__)


class IntentDispatcher:
    """
    Validates user intents and forwards them to a ConnectionManager.

    Attributes:
        manager: The ConnectionManager intents are forwarded to
    """

    def __init__(
        self,
        manager: ConnectionManager,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            manager: ConnectionManager owning the session
            rng: Optional random source for room code generation
        """
        self.manager = manager
        self._rng = rng

    async def join(self, name: str, code: str) -> bool:
        """
        Join a room.

        Args:
            name: Display name as typed by the user
            code: Room code as typed by the user

        Returns:
            bool: False if the input was rejected or a session is already
            active, True if a join attempt was started
        """
        if not self.manager.session.is_disconnected:
            logger.info(
                "Join ignored: session is %s",
                self.manager.session.connection_status.value,
            )
            return False

        try:
            display_name, room_code = validate_join_input(name, code)
        except ValidationError as e:
            logger.info("Join rejected: %s", e)
            self.manager.record_error(str(e))
            return False

        await self.manager.join(display_name, room_code)
        return True

    async def send(self, text: str) -> bool:
        """
        Send a chat message, best effort.

        Blank text, a missing transport or a session that is not connected
        make this a silent no-op; nothing is queued.

        Returns:
            bool: True if a frame was handed to the transport
        """
        if normalize_message_text(text) is None:
            return False
        if self.manager.transport is None:
            return False
        if not self.manager.session.is_connected:
            return False

        await self.manager.send_message(text)
        return True

    async def leave(self) -> None:
        """Leave the current room; no-op when already disconnected."""
        if self.manager.session.is_disconnected:
            return
        await self.manager.leave()

    def create_room_code(self) -> str:
        """Generate a code for a new room. Does not touch the session."""
        code = generate_room_code(self._rng)
        logger.debug("Generated room code %s", code)
        return code
