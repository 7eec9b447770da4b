"""cache.py
Persistent identifier -> metadata store backed by a JSON file.

Once an identifier has been cached its record is authoritative: lookups never
trigger a fetch, and callers decide when to populate the store.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator

from arxiv_shelf.entities import MetadataRecord

logger = logging.getLogger(__name__)

# Hand-edited records may lack these; arxiv_id falls back to the key, the rest to "".
_OPTIONAL_TEXT_FIELDS = ("arxiv_id", "authors", "published", "link")


class CacheError(RuntimeError):
    """Raised when the cache file exists but cannot be used."""


class MetadataCache:
    """JSON-backed metadata store with an explicit load/flush lifecycle.

    Used as a context manager the cache is backed up and loaded on entry and
    flushed on exit::

        with MetadataCache(path) as cache:
            record = cache.get("2103.12345")
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._records: dict[str, MetadataRecord] = {}
        self._dirty = False

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".bak")

    def __enter__(self) -> MetadataCache:
        self.backup()
        self.load()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._dirty:
            self.flush()

    def __contains__(self, arxiv_id: object) -> bool:
        return arxiv_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def backup(self) -> Path | None:
        """Copy the current cache file to ``<name>.bak`` if it exists."""
        if not self.path.is_file():
            return None
        shutil.copy2(self.path, self.backup_path)
        logger.debug("Backed up cache to %s", self.backup_path)
        return self.backup_path

    def load(self) -> dict[str, MetadataRecord]:
        """Read the persisted mapping, or start empty if there is none."""
        if not self.path.exists():
            self._records = {}
            return self._records

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise CacheError(f"Corrupt cache file {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise CacheError(f"Cache file {self.path} does not hold a JSON object")

        self._records = {
            arxiv_id: self._check_record(arxiv_id, record)
            for arxiv_id, record in data.items()
        }
        self._dirty = False
        logger.debug("Loaded %d cached records from %s", len(data), self.path)
        return self._records

    def _check_record(self, arxiv_id: str, record: object) -> MetadataRecord:
        """Validate one cached record; the mapping key stands in for ``arxiv_id``."""
        if not isinstance(record, dict):
            raise CacheError(f"Cache entry {arxiv_id!r} in {self.path} is not an object")
        if not isinstance(record.get("title"), str):
            raise CacheError(f"Cache entry {arxiv_id!r} in {self.path} has no title")

        record.setdefault("arxiv_id", arxiv_id)
        for key in _OPTIONAL_TEXT_FIELDS:
            value = record.setdefault(key, "")
            if not isinstance(value, str):
                raise CacheError(
                    f"Cache entry {arxiv_id!r} in {self.path}: {key} is not a string"
                )
        return record  # type: ignore[return-value]

    def get(self, arxiv_id: str) -> MetadataRecord | None:
        return self._records.get(arxiv_id)

    def put(self, arxiv_id: str, record: MetadataRecord) -> None:
        self._records[arxiv_id] = record
        self._dirty = True

    def flush(self) -> None:
        """Persist the mapping atomically with stable key ordering."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._records, f, indent=2, sort_keys=True, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._dirty = False
