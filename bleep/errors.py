"""Exceptions raised by the Bleep engine."""

from __future__ import annotations


class BleepError(Exception):
    """Base class for all engine errors."""


class InvalidProgramError(BleepError):
    """A program, block or library failed schema validation.

    The engine raises this before touching its context, so the library
    is left exactly as it was.
    """


class InvalidCommandError(BleepError):
    """A command referenced something that does not exist (index, id)."""


class InvalidSettingsError(BleepError):
    """A settings record failed schema validation."""
