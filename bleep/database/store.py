"""Persistence gateway backed by the SQLite database."""

from __future__ import annotations

import json
import logging
from datetime import timezone
from typing import Any, Callable

from PyQt6.QtCore import QTimer

from ..gateways.base import DoneCallback, LoadCallback, Persistence
from ..models import Completion
from .db import get_session
from .models import CompletionRecord, StoredValue, utcnow

logger = logging.getLogger(__name__)


class SqlPersistence(Persistence):
    """Key-value documents and completion history in SQLite.

    Reads and writes happen immediately.  With ``defer=True`` (the
    default) the callback is posted to the Qt event loop, so the engine
    sees the write complete on a later turn just like any other async
    service; tests pass ``defer=False``.
    """

    def __init__(self, *, defer: bool = True) -> None:
        self._defer = defer

    def load(self, key: str, callback: LoadCallback) -> None:
        with get_session() as db:
            record = db.get(StoredValue, key)
            raw = record.value if record is not None else None
        try:
            value = json.loads(raw) if raw is not None else None
        except json.JSONDecodeError:
            # unparseable is corrupt, not missing
            logger.warning("stored %r is not valid JSON", key)
            value = raw
        self._complete(lambda: callback(value))

    def save(self, key: str, value: Any, callback: DoneCallback | None = None) -> None:
        encoded = json.dumps(value)
        with get_session() as db:
            record = db.get(StoredValue, key)
            if record is None:
                db.add(StoredValue(key=key, value=encoded))
            else:
                record.value = encoded
                record.updated_at = utcnow()
        logger.debug("saved %s (%d bytes)", key, len(encoded))
        if callback is not None:
            self._complete(callback)

    def record_completion(self, completion: Completion) -> None:
        completed_at = completion.completed_at.astimezone(timezone.utc)
        with get_session() as db:
            db.add(CompletionRecord(
                id=completion.id,
                program_id=completion.program_id,
                completed_at=completed_at.replace(tzinfo=None),
            ))

    def completions(self, program_id: str | None = None) -> list[Completion]:
        with get_session() as db:
            query = db.query(CompletionRecord)
            if program_id is not None:
                query = query.filter(CompletionRecord.program_id == program_id)
            records = query.order_by(CompletionRecord.completed_at).all()
            return [
                Completion(
                    id=record.id,
                    program_id=record.program_id,
                    completed_at=record.completed_at.replace(tzinfo=timezone.utc),
                )
                for record in records
            ]

    def _complete(self, callback: Callable[[], None]) -> None:
        if self._defer:
            QTimer.singleShot(0, callback)
        else:
            callback()
