"""
On-device history for Heart Mirror.

``JsonFileStore`` is a tiny string key/value store backed by one JSON file.
``HistoryStore`` keeps the newest-first log of past reports under one key per
journal in that store. Appends re-read the stored log under the file's lock,
so sessions writing the same journal never drop each other's entries.
"""

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from mirror_models import AssessmentResult, HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_KEY = "heartMirrorHistory"
HISTORY_LIMIT = 30
SNIPPET_LENGTH = 50
ELLIPSIS = "..."

_LOG_ADAPTER = TypeAdapter(List[HistoryEntry])

# one lock per store file, shared by every Streamlit session thread
_FILE_LOCKS = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path):
    key = str(path.resolve())
    with _FILE_LOCKS_GUARD:
        return _FILE_LOCKS.setdefault(key, threading.RLock())


def journal_key(journal_id: str) -> str:
    return f"{HISTORY_KEY}:{journal_id}"


class PersistenceReadError(Exception):
    """Stored history exists but cannot be read back."""


class JsonFileStore:
    def __init__(self, path):
        self.path = Path(path)
        self.lock = _lock_for(self.path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self.lock:
            value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"value for {key!r} is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        with self.lock:
            try:
                data = self._read_all()
            except (OSError, ValueError):
                logger.warning("Store file %s unreadable, starting a fresh one", self.path)
                data = {}
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)


def make_snippet(rant: str) -> str:
    if len(rant) <= SNIPPET_LENGTH:
        return rant
    return rant[:SNIPPET_LENGTH] + ELLIPSIS


def make_entry(rant: str, result: AssessmentResult, now=None, taken_ids: Iterable[str] = ()) -> HistoryEntry:
    """Build a history entry with a millisecond-timestamp id that is unique among ``taken_ids``."""
    now = now or datetime.now()
    taken = set(taken_ids)
    stamp = int(now.timestamp() * 1000)
    while str(stamp) in taken:
        stamp += 1
    return HistoryEntry(
        id=str(stamp),
        date=now.strftime("%b %d, %H:%M"),
        rant_snippet=make_snippet(rant),
        full_result=result,
    )


class HistoryStore:
    def __init__(self, store, key=HISTORY_KEY, limit=HISTORY_LIMIT):
        self.store = store
        self.key = key
        self.limit = limit

    def _decode(self, raw: str) -> List[HistoryEntry]:
        try:
            return _LOG_ADAPTER.validate_json(raw)
        except PydanticValidationError as exc:
            raise PersistenceReadError(f"stored history does not match the entry schema: {exc}") from exc

    def load(self) -> List[HistoryEntry]:
        try:
            raw = self.store.get(self.key)
            if raw is None:
                return []
            entries = self._decode(raw)
        except (PersistenceReadError, OSError, ValueError):
            logger.exception("Failed to load history, starting with an empty log")
            return []
        logger.info("Loaded %d history entries", len(entries))
        return entries[: self.limit]

    def save(self, entries: List[HistoryEntry]) -> None:
        payload = _LOG_ADAPTER.dump_json(list(entries), by_alias=True, exclude_none=True)
        try:
            self.store.set(self.key, payload.decode("utf-8"))
        except OSError:
            logger.exception("Failed to write history")

    def append(self, entry: HistoryEntry) -> List[HistoryEntry]:
        """Prepend ``entry`` to the stored log and return the log as saved."""
        with self.store.lock:
            current = self.load()
            taken = {e.id for e in current}
            if entry.id in taken:
                stamp = int(entry.id)
                while str(stamp) in taken:
                    stamp += 1
                entry = entry.model_copy(update={"id": str(stamp)})
            updated = ([entry] + current)[: self.limit]
            self.save(updated)
        return updated
