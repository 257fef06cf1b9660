"""Capabilities the engine drives but does not implement.

Every long-running call takes a callback instead of returning a result.
Implementations may invoke it synchronously or later from the Qt event
loop; the engine queues the completion either way and discards it if the
state that started the call has been left in the meantime.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from ..models import Completion

LoadCallback = Callable[[Any], None]   # receives the stored value or None
DoneCallback = Callable[[], None]


class Persistence(ABC):
    """Durable key-value storage for the library and settings."""

    @abstractmethod
    def load(self, key: str, callback: LoadCallback) -> None:
        """Read *key*; call back with the decoded JSON value, or ``None``."""

    @abstractmethod
    def save(self, key: str, value: Any, callback: DoneCallback | None = None) -> None:
        """Store JSON-serializable *value* under *key*."""

    @abstractmethod
    def record_completion(self, completion: Completion) -> None:
        ...

    @abstractmethod
    def completions(self, program_id: str | None = None) -> list[Completion]:
        """Recorded completions, oldest first, optionally for one program."""


class Speech(ABC):
    """Text-to-speech with a queue that can be flushed."""

    @abstractmethod
    def say(self, text: str, voice_uri: str | None, callback: DoneCallback) -> None:
        """Queue *text*; *callback* fires once it has been spoken."""

    @abstractmethod
    def cancel_all(self) -> None:
        """Stop talking and drop everything queued.  Pending callbacks never fire."""

    def voices(self) -> list[str]:
        return []

    def default_voice(self) -> str | None:
        return None


class Tone(ABC):
    @abstractmethod
    def play(self, frequency: float, duration: float) -> None:
        """Play a sine beep.  Fire and forget."""


class VoiceListener(ABC):
    """Speech-to-text stream used for hands-free "continue"."""

    @property
    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    def start(
        self,
        on_phrase: Callable[[str], None],
        on_end: DoneCallback,
    ) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...


class UnavailableVoiceListener(VoiceListener):
    """Used when no recognizer is installed.  The voice region stays idle."""

    @property
    def available(self) -> bool:
        return False

    def start(self, on_phrase: Callable[[str], None], on_end: DoneCallback) -> None:
        raise RuntimeError("voice recognition is not available")

    def stop(self) -> None:
        pass
