"""Shared pytest fixtures for Bleep tests."""

import os
import sys
import pytest

# Run Qt headless so the suite works without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from bleep.database.db import configure_engine, init_db
from bleep.defaults import DEFAULT_PROGRAMS, PROGRAMS_KEY
from bleep.gateways import (
    MemoryPersistence,
    RecordingSpeech,
    RecordingTone,
    ScriptedVoiceListener,
)
from bleep.models import dump_library
from bleep.settings import SETTINGS_KEY
from bleep.timer.engine import TimerEngine


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


# ── gateways ─────────────────────────────────────────────────────────────


@pytest.fixture
def store():
    """Persistence pre-seeded with the default library and settings."""
    return MemoryPersistence({
        PROGRAMS_KEY: dump_library(DEFAULT_PROGRAMS),
        SETTINGS_KEY: {"voiceURI": "default", "soundEnabled": True},
    })


@pytest.fixture
def speech():
    """Speech that holds every utterance until the test finishes it."""
    return RecordingSpeech()


@pytest.fixture
def tone():
    return RecordingTone()


@pytest.fixture
def listener():
    return ScriptedVoiceListener()


# ── engines ──────────────────────────────────────────────────────────────


@pytest.fixture
def engine(qapp, store, speech, tone, listener):
    """Booted engine on the default library, nothing selected."""
    eng = TimerEngine(
        parent=None,
        persistence=store,
        speech=speech,
        tone=tone,
        voice_listener=listener,
    )
    eng.boot()
    return eng


@pytest.fixture
def engine_auto(qapp, store, tone, listener):
    """Booted engine whose utterances complete as soon as they are queued."""
    eng = TimerEngine(
        parent=None,
        persistence=store,
        speech=RecordingSpeech(auto_complete=True),
        tone=tone,
        voice_listener=listener,
    )
    eng.boot()
    return eng


@pytest.fixture
def make_engine(qapp, tone, listener):
    """Factory: booted engine over a custom library.

    Returns ``(engine, store, speech)``.  Pass ``hold=True`` to keep
    persistence callbacks pending until ``store.flush()``.
    """
    def _make(*programs, settings=None, speech=None, voice_listener=None, hold=False):
        store = MemoryPersistence(
            {
                PROGRAMS_KEY: dump_library(programs),
                SETTINGS_KEY: settings or {"voiceURI": "default", "soundEnabled": True},
            },
            hold=hold,
        )
        speech = speech or RecordingSpeech()
        eng = TimerEngine(
            parent=None,
            persistence=store,
            speech=speech,
            tone=tone,
            voice_listener=voice_listener or listener,
        )
        eng.boot()
        store.flush()
        return eng, store, speech
    return _make


@pytest.fixture
def fresh_engine(qapp, speech, tone):
    """Unbooted engine over empty storage (first launch)."""
    return TimerEngine(
        parent=None,
        persistence=MemoryPersistence(),
        speech=speech,
        tone=tone,
    )
