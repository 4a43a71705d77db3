"""Local history of fetched profiles, doubling as a lightweight CRM list.

The store keeps the full list in memory and rewrites the whole slot on
every mutation. Storage is injected so the same store runs against a JSON
file on disk or a plain dict in tests.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .schema import apply_crm_defaults, crm_changes, profile_key

logger = logging.getLogger(__name__)

HISTORY_KEY = "hap_audit_history"
HISTORY_LIMIT = 20


class Storage(Protocol):
    def read(self, key: str) -> str | None: ...

    def write(self, key: str, data: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self.slots: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.slots.get(key)

    def write(self, key: str, data: str) -> None:
        self.slots[key] = data


class FileStorage:
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, data: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp, self._path(key))
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class HistoryStore:
    def __init__(self, storage: Storage, key: str = HISTORY_KEY, limit: int = HISTORY_LIMIT):
        self.storage = storage
        self.key = key
        self.limit = limit
        self._entries: list[dict] = []

    def load(self) -> "HistoryStore":
        """Read the persisted list. Missing or corrupt content means an empty history."""
        raw = self.storage.read(self.key)
        entries: list[dict] = []
        if raw:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning("Discarding unreadable history in %r: %s", self.key, e)
                data = []
            if isinstance(data, list):
                entries = [apply_crm_defaults(p) for p in data if isinstance(p, dict)]
            else:
                logger.warning("Discarding history in %r: expected a list, got %s", self.key, type(data).__name__)
        self._entries = entries[: self.limit]
        return self

    def _save(self) -> None:
        self.storage.write(self.key, json.dumps(self._entries, ensure_ascii=False))

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, index: int) -> dict:
        return dict(self._entries[self._check(index)])

    def _check(self, index: int) -> int:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No history entry at index {index}")
        return index

    def upsert(self, profile: dict) -> dict:
        """Insert `profile` at the top, replacing any entry with the same name and city."""
        entry = apply_crm_defaults(profile)
        key = profile_key(entry)
        kept = [p for p in self._entries if profile_key(p) != key]
        self._entries = [entry, *kept][: self.limit]
        self._save()
        return dict(entry)

    def update(self, index: int, fields: dict) -> dict:
        """Merge CRM fields into an entry.

        Only crmStatus, nextAction, notes and outreachStatus can change, so
        the (businessName, city) key of a stored entry never moves. Raises
        ValueError for other keys or an unknown crmStatus.
        """
        self._check(index)
        entry = {**self._entries[index], **crm_changes(fields)}
        self._entries[index] = entry
        self._save()
        return dict(entry)

    def delete(self, index: int) -> dict:
        removed = self._entries.pop(self._check(index))
        self._save()
        return removed

    def indexed(self, status: str | None = None, city: str | None = None) -> list[tuple[int, dict]]:
        """Entries matching the filters, paired with their position in the store."""
        needle = city.strip().lower() if city else ""
        out = []
        for i, entry in enumerate(self._entries):
            if status and entry.get("crmStatus") != status:
                continue
            if needle and needle not in (entry.get("city") or "").lower():
                continue
            out.append((i, dict(entry)))
        return out

    def list(self, status: str | None = None, city: str | None = None) -> list[dict]:
        return [entry for _, entry in self.indexed(status=status, city=city)]
