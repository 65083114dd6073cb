"""
Exception types shared by the engine.

Only programmer errors and broken static data are exceptions. Ordinary
battle outcomes (a miss, a failed escape, an unaffordable skill picked from
a stale menu) are reported through result objects instead.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine exceptions."""


class InvalidInvocationError(EngineError, RuntimeError):
    """A method was called in a state where it is not allowed.

    Raised for caller bugs such as confirming a command before a selection
    was started, or acting after the battle has ended.
    """


class DataValidationError(EngineError, ValueError):
    """Static game data failed to parse or did not match its schema."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(f"{source}: {message}" if source else message)
        self.source = source
