"""Tests for the QtTextToSpeech gateway, driven by a scripted backend."""

import pytest

pytest.importorskip("PyQt6.QtTextToSpeech")

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtTextToSpeech import QTextToSpeech

from bleep.gateways.qt_speech import QtSpeech

State = QTextToSpeech.State


class FakeBackend(QObject):
    """Stands in for QTextToSpeech; the test emits its state changes."""

    stateChanged = pyqtSignal(object)

    def __init__(self):
        super().__init__()
        self.spoken = []
        self.stops = 0

    def say(self, text):
        self.spoken.append(text)

    def stop(self):
        self.stops += 1

    def errorString(self):
        return "no audio device"


@pytest.fixture
def backend(qapp):
    return FakeBackend()


@pytest.fixture
def qt_speech(backend):
    return QtSpeech(tts=backend)


def _speak(backend):
    backend.stateChanged.emit(State.Speaking)
    backend.stateChanged.emit(State.Ready)


# ═══════════════════════════════════════════════════════════════════════════
#  QUEUE
# ═══════════════════════════════════════════════════════════════════════════


class TestQueue:

    def test_callback_fires_when_spoken(self, qt_speech, backend):
        done = []
        qt_speech.say("Plank, 30 seconds", None, lambda: done.append("plank"))
        assert backend.spoken == ["Plank, 30 seconds"]
        assert done == []

        _speak(backend)
        assert done == ["plank"]

    def test_utterances_are_handed_over_one_by_one(self, qt_speech, backend):
        done = []
        qt_speech.say("Starting in", None, lambda: done.append(1))
        qt_speech.say("3", None, lambda: done.append(2))
        assert backend.spoken == ["Starting in"]

        _speak(backend)
        assert backend.spoken == ["Starting in", "3"]
        _speak(backend)
        assert done == [1, 2]

    def test_error_completes_the_utterance(self, qt_speech, backend):
        done = []
        qt_speech.say("Hello", None, lambda: done.append(True))
        backend.stateChanged.emit(State.Error)
        assert done == [True]


class TestCancel:

    def test_cancel_drops_queue_and_callback(self, qt_speech, backend):
        done = []
        qt_speech.say("a", None, lambda: done.append("a"))
        qt_speech.say("b", None, lambda: done.append("b"))
        backend.stateChanged.emit(State.Speaking)

        qt_speech.cancel_all()
        backend.stateChanged.emit(State.Ready)
        assert backend.stops == 1
        assert done == []
        assert backend.spoken == ["a"]

    def test_late_ready_after_cancel_does_not_finish_next_utterance(self, qt_speech, backend):
        done = []
        qt_speech.say("Squats, 25 reps", None, lambda: done.append("squats"))
        backend.stateChanged.emit(State.Speaking)

        qt_speech.cancel_all()
        qt_speech.say("Rest", None, lambda: done.append("rest"))
        backend.stateChanged.emit(State.Ready)  # from stop()
        assert done == []

        _speak(backend)
        assert done == ["rest"]
        assert backend.spoken == ["Squats, 25 reps", "Rest"]
