"""Exception types raised by tdsgrade."""

from __future__ import annotations


class TdsError(Exception):
    """Base class for tdsgrade errors."""


class InvalidTransition(TdsError):
    """A capture action was issued in a state that does not allow it."""

    def __init__(self, state: str, action: str) -> None:
        super().__init__(f"cannot {action} while capture is {state}")
        self.state = state
        self.action = action


class ConfigError(TdsError, ValueError):
    """Product configuration or settings failed validation."""
