"""Tests for the SQLite persistence gateway."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bleep.database.db import get_session
from bleep.database.models import CompletionRecord, StoredValue
from bleep.database.store import SqlPersistence
from bleep.defaults import DEFAULT_PROGRAMS, PROGRAMS_KEY
from bleep.gateways import RecordingSpeech, RecordingTone
from bleep.models import Completion, dump_library
from bleep.settings import SETTINGS_KEY
from bleep.timer.commands import SelectProgram, SetVoice
from bleep.timer.engine import TimerEngine
from bleep.timer.states import ProgramState, SettingsState

from helpers import SignalCollector


@pytest.fixture
def sql():
    return SqlPersistence(defer=False)


def _load(store, key):
    result = []
    store.load(key, result.append)
    assert len(result) == 1
    return result[0]


# ═══════════════════════════════════════════════════════════════════════════
#  KEY-VALUE DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════


class TestStoredValues:

    def test_missing_key_loads_none(self, sql):
        assert _load(sql, PROGRAMS_KEY) is None

    def test_save_then_load(self, sql):
        done = []
        sql.save(SETTINGS_KEY, {"soundEnabled": False}, lambda: done.append(True))
        assert done == [True]
        assert _load(sql, SETTINGS_KEY) == {"soundEnabled": False}

    def test_save_overwrites(self, sql):
        sql.save(SETTINGS_KEY, {"soundEnabled": False})
        sql.save(SETTINGS_KEY, {"soundEnabled": True})
        assert _load(sql, SETTINGS_KEY) == {"soundEnabled": True}
        with get_session() as db:
            assert db.query(StoredValue).count() == 1

    def test_updated_at_is_naive_utc(self, sql):
        sql.save(SETTINGS_KEY, {"soundEnabled": False})
        with get_session() as db:
            created = db.get(StoredValue, SETTINGS_KEY).updated_at
        sql.save(SETTINGS_KEY, {"soundEnabled": True})
        with get_session() as db:
            updated = db.get(StoredValue, SETTINGS_KEY).updated_at

        now = datetime.now(timezone.utc).replace(tzinfo=None)
        assert created.tzinfo is None and updated.tzinfo is None
        assert created <= updated <= now
        assert now - created < timedelta(minutes=1)

    def test_unparseable_value_is_passed_through(self, sql):
        with get_session() as db:
            db.add(StoredValue(key=PROGRAMS_KEY, value="{not json"))
        assert _load(sql, PROGRAMS_KEY) == "{not json"

    @pytest.mark.usefixtures("qapp")
    def test_deferred_callback_waits_for_event_loop(self):
        from PyQt6.QtCore import QCoreApplication

        store = SqlPersistence()
        result = []
        store.load(PROGRAMS_KEY, result.append)
        assert result == []
        QCoreApplication.processEvents()
        assert result == [None]


# ═══════════════════════════════════════════════════════════════════════════
#  COMPLETIONS
# ═══════════════════════════════════════════════════════════════════════════


class TestCompletions:

    def test_record_and_list(self, sql):
        sql.record_completion(Completion(program_id="foo"))
        sql.record_completion(Completion(program_id="kaz"))
        assert [c.program_id for c in sql.completions()] == ["foo", "kaz"]
        assert [c.program_id for c in sql.completions("kaz")] == ["kaz"]

    def test_oldest_first_and_utc(self, sql):
        now = datetime.now(timezone.utc)
        sql.record_completion(Completion(id="late", program_id="foo", completed_at=now))
        sql.record_completion(
            Completion(id="early", program_id="foo", completed_at=now - timedelta(days=1))
        )
        completions = sql.completions("foo")
        assert [c.id for c in completions] == ["early", "late"]
        assert completions[1].completed_at == now
        assert completions[1].completed_at.tzinfo is not None

    def test_stored_naive_utc(self, sql):
        local = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        sql.record_completion(Completion(id="c1", program_id="foo", completed_at=local))
        with get_session() as db:
            record = db.get(CompletionRecord, "c1")
            assert record.completed_at == datetime(2024, 5, 1, 10, 0)


# ═══════════════════════════════════════════════════════════════════════════
#  ENGINE ON SQLITE
# ═══════════════════════════════════════════════════════════════════════════


@pytest.mark.usefixtures("qapp")
class TestEngineOnSqlite:

    def _engine(self, store):
        eng = TimerEngine(persistence=store, speech=RecordingSpeech(), tone=RecordingTone())
        eng.boot()
        return eng

    def test_first_launch_bootstraps_database(self, sql):
        eng = self._engine(sql)
        assert eng.state == ProgramState.NOT_SELECTED_IDLE
        assert eng.settings_state == SettingsState.LOADED
        assert _load(sql, PROGRAMS_KEY) == dump_library(DEFAULT_PROGRAMS)

    def test_changes_survive_restart(self, sql):
        eng = self._engine(sql)
        eng.send(SetVoice("Alex"))
        eng.send(SelectProgram("foo"))

        again = self._engine(SqlPersistence(defer=False))
        assert again.context.settings.voice_uri == "Alex"
        assert again.context.selected_program_id is None

    def test_corrupt_row_is_backed_up(self, sql):
        with get_session() as db:
            db.add(StoredValue(key=PROGRAMS_KEY, value="{not json"))
        failures = SignalCollector()
        eng = TimerEngine(persistence=sql, speech=RecordingSpeech(), tone=RecordingTone())
        eng.load_failed.connect(failures)
        eng.boot()

        assert [f[0] for f in failures.items] == [PROGRAMS_KEY]
        assert _load(sql, f"{PROGRAMS_KEY}.corrupt") == "{not json"
        assert eng.context.all_programs == DEFAULT_PROGRAMS
