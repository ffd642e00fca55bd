"""
Client Configuration

Settings are read from environment variables with defaults; command-line
flags given to the entry point override them.

Environment variables:
    CHAT_SERVER_URL: WebSocket URL of the room-coordination service
    CHAT_OPEN_TIMEOUT: Seconds to wait for the opening handshake
    CHAT_LOG_LEVEL: Logging level name
    CHAT_LOG_FILE: File the client logs to
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_SERVER_URL = "wss://real-time-chat-backend-rho.vercel.app"
DEFAULT_OPEN_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FILE = "chat_client.log"


@dataclass
class ClientSettings:
    """
    Runtime settings for the chat client.

    Attributes:
        server_url: WebSocket URL of the room-coordination service
        open_timeout: Seconds to wait for the opening handshake
        log_level: Logging level name (DEBUG, INFO, WARNING, ...)
        log_file: Path of the log file
    """

    server_url: str = DEFAULT_SERVER_URL
    open_timeout: float = DEFAULT_OPEN_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "ClientSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ValueError: If CHAT_OPEN_TIMEOUT is not a positive number
        """
        env = os.environ if environ is None else environ

        open_timeout = float(
            env.get("CHAT_OPEN_TIMEOUT", str(DEFAULT_OPEN_TIMEOUT))
        )
        if open_timeout <= 0:
            raise ValueError("CHAT_OPEN_TIMEOUT must be positive")

        return cls(
            server_url=env.get("CHAT_SERVER_URL", DEFAULT_SERVER_URL),
            open_timeout=open_timeout,
            log_level=env.get("CHAT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            log_file=env.get("CHAT_LOG_FILE", DEFAULT_LOG_FILE),
        )
