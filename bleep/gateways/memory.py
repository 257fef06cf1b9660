"""In-memory gateways for tests and headless runs.

Nothing here touches disk, audio hardware or a speech engine.  Each class
records what the engine asked of it, and the asynchronous ones can hold
their callbacks until the caller releases them, so a test can observe the
transient states (``saving``, ``announcing_block``) in between.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Callable

from ..models import Completion
from .base import DoneCallback, LoadCallback, Persistence, Speech, Tone, VoiceListener


class MemoryPersistence(Persistence):
    """Dict-backed storage.

    With ``hold=True`` load/save callbacks queue up until :meth:`flush`.
    Values are round-tripped through JSON, like the real store.
    """

    def __init__(self, data: dict[str, Any] | None = None, *, hold: bool = False) -> None:
        self.data: dict[str, str] = {
            key: json.dumps(value) for key, value in (data or {}).items()
        }
        self.hold = hold
        self.saves: list[tuple[str, Any]] = []
        self._pending: deque[Callable[[], None]] = deque()
        self._completions: list[Completion] = []

    def load(self, key: str, callback: LoadCallback) -> None:
        raw = self.data.get(key)
        value = json.loads(raw) if raw is not None else None
        self._complete(lambda: callback(value))

    def save(self, key: str, value: Any, callback: DoneCallback | None = None) -> None:
        self.data[key] = json.dumps(value)
        self.saves.append((key, json.loads(self.data[key])))
        if callback is not None:
            self._complete(callback)

    def stored(self, key: str) -> Any:
        raw = self.data.get(key)
        return json.loads(raw) if raw is not None else None

    def record_completion(self, completion: Completion) -> None:
        self._completions.append(completion)

    def completions(self, program_id: str | None = None) -> list[Completion]:
        return [
            c for c in self._completions
            if program_id is None or c.program_id == program_id
        ]

    # ── held callbacks ────────────────────────────────────────────────

    @property
    def pending(self) -> int:
        return len(self._pending)

    def flush(self) -> None:
        """Run held callbacks, including any queued while flushing."""
        while self._pending:
            self._pending.popleft()()

    def _complete(self, callback: Callable[[], None]) -> None:
        if self.hold:
            self._pending.append(callback)
        else:
            callback()


class RecordingSpeech(Speech):
    """Remembers every utterance; completes them only when told to."""

    def __init__(self, *, voices: list[str] | None = None, auto_complete: bool = False) -> None:
        self.spoken: list[str] = []
        self.cancel_count = 0
        self.auto_complete = auto_complete
        self._voices = voices or ["default"]
        self._queue: deque[tuple[str, DoneCallback]] = deque()

    def say(self, text: str, voice_uri: str | None, callback: DoneCallback) -> None:
        self.spoken.append(text)
        if self.auto_complete:
            callback()
        else:
            self._queue.append((text, callback))

    def cancel_all(self) -> None:
        self.cancel_count += 1
        self._queue.clear()

    def voices(self) -> list[str]:
        return list(self._voices)

    def default_voice(self) -> str | None:
        return self._voices[0] if self._voices else None

    @property
    def queued(self) -> list[str]:
        return [text for text, _ in self._queue]

    def finish(self) -> str:
        """Complete the oldest queued utterance and return its text."""
        text, callback = self._queue.popleft()
        callback()
        return text

    def finish_all(self) -> None:
        while self._queue:
            self.finish()


class RecordingTone(Tone):
    def __init__(self) -> None:
        self.played: list[tuple[float, float]] = []

    def play(self, frequency: float, duration: float) -> None:
        self.played.append((frequency, duration))


class ScriptedVoiceListener(VoiceListener):
    """A listener driven by the test: :meth:`hear` and :meth:`end`."""

    def __init__(self, *, available: bool = True) -> None:
        self._available = available
        self.listening = False
        self.start_count = 0
        self._on_phrase: Callable[[str], None] | None = None
        self._on_end: DoneCallback | None = None

    @property
    def available(self) -> bool:
        return self._available

    def start(self, on_phrase: Callable[[str], None], on_end: DoneCallback) -> None:
        self.listening = True
        self.start_count += 1
        self._on_phrase = on_phrase
        self._on_end = on_end

    def stop(self) -> None:
        self.listening = False

    def hear(self, phrase: str) -> None:
        if self.listening and self._on_phrase is not None:
            self._on_phrase(phrase)

    def end(self) -> None:
        if self.listening and self._on_end is not None:
            self._on_end()
