#!/usr/bin/env python3
"""
Chat Client Application

Entry point for the real-time chat room client. Provides a terminal-based
user interface using the Textual framework.

Usage:
    chat-client
    chat-client --server-url ws://localhost:8080 --log-level INFO
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import ClientSettings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Join an ephemeral chat room from the terminal"
    )
    parser.add_argument(
        "--server-url",
        help="WebSocket URL of the room service (env: CHAT_SERVER_URL)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (env: CHAT_LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-file",
        help="File to write logs to (env: CHAT_LOG_FILE)",
    )
    return parser.parse_args(argv)


def load_settings(argv: Optional[List[str]] = None) -> ClientSettings:
    """Build settings from the environment, overridden by flags."""
    args = parse_args(argv)
    settings = ClientSettings.from_env()

    if args.server_url:
        settings.server_url = args.server_url
    if args.log_level:
        settings.log_level = args.log_level
    if args.log_file:
        settings.log_file = args.log_file
    return settings


def configure_logging(settings: ClientSettings) -> None:
    """Log to a file so output does not interfere with the UI."""
    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(settings.log_file, mode="a")],
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the chat client."""
    try:
        settings = load_settings(argv)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}")
        sys.exit(2)

    configure_logging(settings)
    logger.info("Starting chat client for %s...", settings.server_url)

    from .ui import ChatApp

    try:
        app = ChatApp(settings)
        app.run()
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
