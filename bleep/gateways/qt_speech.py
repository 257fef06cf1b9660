"""Speech gateway on top of QtTextToSpeech."""

from __future__ import annotations

import logging
from collections import deque

from PyQt6.QtCore import QObject
from PyQt6.QtTextToSpeech import QTextToSpeech

from .base import DoneCallback, Speech

logger = logging.getLogger(__name__)


class QtSpeech(Speech):
    """Speaks one utterance at a time from an internal queue.

    QTextToSpeech interrupts whatever it is saying when ``say()`` is called
    again, so utterances are held here and handed over one by one as the
    backend returns to ``Ready``.  Voices are identified by their display
    name, which is what gets stored in the settings.

    ``stop()`` may report ``Ready`` only after the next utterance has been
    handed over.  A ``Ready`` therefore completes the current utterance
    only once the backend has reported ``Speaking`` for it.
    """

    def __init__(self, parent: QObject | None = None, *, tts: QTextToSpeech | None = None) -> None:
        self._tts = tts if tts is not None else QTextToSpeech(parent)
        self._tts.stateChanged.connect(self._on_state_changed)
        self._queue: deque[tuple[str, str | None, DoneCallback]] = deque()
        self._current: DoneCallback | None = None
        self._started = False

    def say(self, text: str, voice_uri: str | None, callback: DoneCallback) -> None:
        self._queue.append((text, voice_uri, callback))
        if self._current is None:
            self._speak_next()

    def cancel_all(self) -> None:
        self._queue.clear()
        self._current = None
        self._started = False
        self._tts.stop()

    def voices(self) -> list[str]:
        return [voice.name() for voice in self._tts.availableVoices()]

    def default_voice(self) -> str | None:
        return self._tts.voice().name() or None

    # ── internal ──────────────────────────────────────────────────────

    def _use_voice(self, voice_uri: str | None) -> None:
        if not voice_uri or self._tts.voice().name() == voice_uri:
            return
        for voice in self._tts.availableVoices():
            if voice.name() == voice_uri:
                self._tts.setVoice(voice)
                return
        logger.warning("voice %r not available, using %r", voice_uri, self._tts.voice().name())

    def _speak_next(self) -> None:
        if not self._queue:
            return
        text, voice_uri, callback = self._queue.popleft()
        self._use_voice(voice_uri)
        self._current = callback
        self._started = False
        logger.debug("say %r", text)
        self._tts.say(text)

    def _on_state_changed(self, state: QTextToSpeech.State) -> None:
        if state == QTextToSpeech.State.Speaking:
            self._started = self._current is not None
            return
        if state == QTextToSpeech.State.Error:
            logger.warning("speech failed: %s", self._tts.errorString())
        elif state != QTextToSpeech.State.Ready:
            return
        elif not self._started:
            logger.debug("ignored Ready left over from a stopped utterance")
            return
        callback, self._current = self._current, None
        self._started = False
        if callback is not None:
            callback()
        if self._current is None:
            self._speak_next()
