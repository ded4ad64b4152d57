# fileexp/storage/translation_db.py
"""
JSON translation database written by the bulk generator.

File format (stable, other tools read it):
    {
      "generatedAt": "2026-01-01T00:00:00.000Z",
      "entries": [
        {"file_path": ..., "file_name": ..., "translated_name": ...,
         "status": "translated", "error_message": null, "updated_at": ...},
        ...
      ]
    }

Entries are keyed by file_path and written sorted by file_path so that
reruns produce small diffs.
"""

import dataclasses
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, Optional

from fileexp.models.types import TranslationDatabaseEntry, TranslationStatus, utc_now_iso

# Module logger
logger = logging.getLogger(__name__)


class TranslationDatabase:
    """
    In-memory map of file_path -> entry, loaded from and saved to one JSON file.
    """

    def __init__(self, path: Path, entries: Optional[Iterable[TranslationDatabaseEntry]] = None):
        self.path = Path(path)
        self._entries: dict[str, TranslationDatabaseEntry] = {}
        for entry in entries or ():
            self._entries[entry.file_path] = entry

    @classmethod
    def load(cls, path: Path) -> "TranslationDatabase":
        """Load a database file.

        A missing, unreadable or malformed file is not an error: the result is
        an empty database bound to path. Both the current shape
        ({"entries": [...]}) and a bare top-level array are accepted.
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8-sig') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("No existing translation database at %s", path)
            return cls(path)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable translation database %s: %s", path, e)
            return cls(path)

        if isinstance(data, list):
            raw_entries = data
        elif isinstance(data, dict) and isinstance(data.get("entries"), list):
            raw_entries = data["entries"]
        else:
            raw_entries = []

        entries = []
        for raw in raw_entries:
            entry = TranslationDatabaseEntry.from_dict(raw)
            if entry is not None:
                entries.append(entry)
        db = cls(path, entries)
        logger.debug("Loaded %d entries from %s", len(db), path)
        return db

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_path: str) -> bool:
        return file_path in self._entries

    def __iter__(self) -> Iterator[TranslationDatabaseEntry]:
        return iter(self.entries())

    def get(self, file_path: str) -> Optional[TranslationDatabaseEntry]:
        return self._entries.get(file_path)

    def entries(self) -> list[TranslationDatabaseEntry]:
        """All entries in stable (file_path) order."""
        return [self._entries[key] for key in sorted(self._entries)]

    def is_up_to_date(self, file_path: str, file_name: str) -> bool:
        """True if file_path was already translated under the same file name."""
        existing = self._entries.get(file_path)
        return (
            existing is not None
            and existing.file_name == file_name
            and existing.status == TranslationStatus.TRANSLATED
        )

    def update(self, file_path: str, **changes) -> TranslationDatabaseEntry:
        """Create or merge an entry. Given fields overwrite existing ones.

        updated_at is refreshed unless given explicitly.
        """
        changes.setdefault("updated_at", utc_now_iso())
        changes.pop("file_path", None)
        existing = self._entries.get(file_path)
        if existing is None:
            changes.setdefault("file_name", os.path.basename(file_path))
            entry = TranslationDatabaseEntry(file_path=file_path, **changes)
        else:
            entry = dataclasses.replace(existing, **changes)
        self._entries[file_path] = entry
        return entry

    def prune(self, keep: Iterable[str]) -> int:
        """Remove entries whose file_path is not in keep.

        Returns:
            Number of removed entries
        """
        keep_set = set(keep)
        stale = [key for key in self._entries if key not in keep_set]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info("Pruned %d entries for files no longer present", len(stale))
        return len(stale)

    def to_dict(self, generated_at: Optional[str] = None) -> dict:
        return {
            "generatedAt": generated_at or utc_now_iso(),
            "entries": [entry.to_dict() for entry in self.entries()],
        }

    def save(self) -> Path:
        """Write the whole database, replacing the file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug("Saved %d entries to %s", len(self), self.path)
        return self.path
