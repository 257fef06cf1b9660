"""Timer package."""

from .engine import TimerEngine, TICK_INTERVAL_MS, CONTINUE_WORDS
from .states import Context, ProgramState, SettingsState, Snapshot, VoiceState
from .view import View, current_view

__all__ = [
    "TimerEngine",
    "TICK_INTERVAL_MS",
    "CONTINUE_WORDS",
    "Context",
    "ProgramState",
    "SettingsState",
    "Snapshot",
    "VoiceState",
    "View",
    "current_view",
]
