"""Custom errors."""
from __future__ import annotations

import asyncio

DEFAULT_MESSAGES = {
    asyncio.TimeoutError: "Request timed out",
    ConnectionError: "Connection error",
    BrokenPipeError: "Broken pipe",
    ConnectionAbortedError: "Connection aborted",
    ConnectionRefusedError: "Connection refused",
    ConnectionResetError: "Connection reset",
    OSError: "OS I/O error",
}


def format_error(err: Exception | asyncio.TimeoutError) -> str:
    """Formats error message based on a base error."""
    msg: str | None = str(err)
    if msg == "":
        msg = DEFAULT_MESSAGES.get(type(err))
    return msg if msg else type(err).__name__


class ZonePlayerError(Exception):
    """ZonePlayer errors."""


class UsageError(ZonePlayerError, ValueError):
    """Invalid command line input."""

    def __init__(self, message: str, usage: str = ""):
        self.usage = usage
        super().__init__(message)


class DeviceUnreachableError(ZonePlayerError, ConnectionError):
    """No response from the ZonePlayer."""


class ProtocolError(ZonePlayerError, ValueError):
    """Malformed or unexpected response from the ZonePlayer."""


class ListenerError(ZonePlayerError, RuntimeError):
    """Errors from the event listener."""


class CloseError(ZonePlayerError, RuntimeError):
    """Failure releasing the event subscription."""
