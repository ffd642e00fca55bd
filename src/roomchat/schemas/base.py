"""
Base Schema Classes

This module provides base classes for request and event schemas with the
common serialization and deserialization methods shared by every frame.

Frame Format:
    All frames are JSON objects with the following structure:
    {
        "type": "frame_type",
        "payload": ... frame-specific payload ...
    }
"""

import json
from dataclasses import fields
from typing import Any, Dict, TypeVar

T = TypeVar("T", bound="BaseEvent")


class BaseRequest:
    """
    Base class for client-to-server request schemas.

    Subclasses are dataclasses; their snake_case fields are written to the
    payload under the camelCase names listed in ``_wire_names``.
    """

    _wire_names: Dict[str, str] = {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with 'type' and 'payload' keys.
        """
        payload = {
            self._wire_names.get(f.name, f.name): getattr(self, f.name)
            for f in fields(self)
        }
        return {"type": self._message_type, "payload": payload}

    def to_json(self) -> str:
        """
        Convert to JSON string.

        Returns:
            JSON string representation of the request.
        """
        return json.dumps(self.to_dict())

    @property
    def _message_type(self) -> str:
        """
        Frame type identifier for the request.

        Should be overridden by subclasses to provide the specific type.
        """
        raise NotImplementedError("Subclasses must define _message_type")


class BaseEvent:
    """
    Base class for server-to-client event schemas.

    Provides common deserialization methods for creating event objects
    from an envelope dictionary or a raw JSON frame.
    """

    message_type: str = ""

    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from an envelope dictionary.

        Args:
            data: Dictionary with a 'payload' key.

        Returns:
            Instance of the event class.
        """
        return cls._from_payload(data.get("payload"))

    @classmethod
    def from_json(cls: type[T], json_str: str) -> T:
        """
        Create instance from JSON string.

        Args:
            json_str: JSON string containing the full frame.

        Returns:
            Instance of the event class.
        """
        data = json.loads(json_str)
        return cls.from_dict(data)

    @classmethod
    def _from_payload(cls: type[T], payload: Any) -> T:
        """
        Create instance from the frame payload.

        Should be overridden by subclasses that carry data. Implementations
        raise ValueError/TypeError/KeyError when the payload has the wrong
        shape.
        """
        return cls()
