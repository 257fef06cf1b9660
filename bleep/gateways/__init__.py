"""Gateway interfaces and their in-memory implementations."""

from .base import (
    Persistence,
    Speech,
    Tone,
    VoiceListener,
    UnavailableVoiceListener,
)
from .memory import (
    MemoryPersistence,
    RecordingSpeech,
    RecordingTone,
    ScriptedVoiceListener,
)

__all__ = [
    "Persistence",
    "Speech",
    "Tone",
    "VoiceListener",
    "UnavailableVoiceListener",
    "MemoryPersistence",
    "RecordingSpeech",
    "RecordingTone",
    "ScriptedVoiceListener",
]
