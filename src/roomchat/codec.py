"""
Protocol Codec

Turns outbound requests into text frames and inbound text frames into one
of the typed server events. Decoding is strict in ``decode`` and tolerant
in ``try_decode``: a malformed frame must never take down the session, so
the receive loop only ever uses the tolerant form.
"""

import json
import logging
from typing import Dict, Optional, Type, Union

from .errors import DecodeError
from .schemas import (
    BaseEvent,
    BaseRequest,
    ChatMessageEvent,
    RoomJoinedEvent,
    ServerErrorEvent,
    UserListEvent,
)

logger = logging.getLogger(__name__)

# Server-to-client frame types the client understands
EVENT_TYPES: Dict[str, Type[BaseEvent]] = {
    RoomJoinedEvent.message_type: RoomJoinedEvent,
    UserListEvent.message_type: UserListEvent,
    ChatMessageEvent.message_type: ChatMessageEvent,
    ServerErrorEvent.message_type: ServerErrorEvent,
}


class ProtocolCodec:
    """Encoder/decoder for the JSON-over-text-frame wire protocol."""

    def encode(self, request: BaseRequest) -> str:
        """
        Serialize an outbound request into a text frame.

        Args:
            request: Join, chat message or leave request

        Returns:
            JSON text frame
        """
        return request.to_json()

    def decode(self, raw: Union[str, bytes]) -> BaseEvent:
        """
        Parse a text frame into a typed server event.

        Args:
            raw: Frame as received from the transport

        Returns:
            RoomJoinedEvent, UserListEvent, ChatMessageEvent or
            ServerErrorEvent

        Raises:
            DecodeError: If the frame is not valid JSON, is not an object,
                has an unknown type or a payload of the wrong shape
        """
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            raise DecodeError(f"Frame is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError("Frame is not a JSON object")

        message_type = data.get("type")
        event_cls = (
            EVENT_TYPES.get(message_type)
            if isinstance(message_type, str)
            else None
        )
        if event_cls is None:
            raise DecodeError(f"Unrecognized frame type: {message_type!r}")

        try:
            return event_cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Malformed {message_type} payload: {e}"
            ) from e

    def try_decode(self, raw: Union[str, bytes]) -> Optional[BaseEvent]:
        """
        Decode a frame, logging and dropping it if it is malformed.

        Returns:
            The decoded event, or None if the frame was ignored
        """
        try:
            return self.decode(raw)
        except DecodeError as e:
            logger.warning("Ignoring inbound frame: %s", e)
            return None
