# fileexp/models/types.py
"""
Core data types for FileExp.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class TranslationStatus(Enum):
    """Status of a translation database entry"""
    PENDING = "pending"
    TRANSLATED = "translated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ProviderOutcome:
    """
    Tagged result of one provider attempt.

    Exactly one of these shapes applies:
        translated="..."                    -> success
        translated=None                     -> not applicable
        translated=None, rate_limited=True  -> HTTP 429, retry later
        translated=None, error="..."        -> terminal failure
    """
    translated: Optional[str] = None
    rate_limited: bool = False
    error: Optional[str] = None

    @classmethod
    def success(cls, translated: str) -> "ProviderOutcome":
        return cls(translated=translated)

    @classmethod
    def not_applicable(cls) -> "ProviderOutcome":
        return cls()

    @classmethod
    def limited(cls) -> "ProviderOutcome":
        return cls(rate_limited=True)

    @classmethod
    def failure(cls, error: str) -> "ProviderOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.translated is not None


@dataclass
class FilenameTranslation:
    """Result handed back to the browsing UI for one file name."""
    original: str
    translated: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict = {"original": self.original, "translated": self.translated}
        if self.error is not None:
            data["error"] = self.error
        return data


def utc_now_iso() -> str:
    """ISO-8601 timestamp in UTC with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass
class TranslationDatabaseEntry:
    """
    One row of the translation database, keyed by file_path.
    """
    file_path: str
    file_name: str
    translated_name: Optional[str] = None
    status: TranslationStatus = TranslationStatus.PENDING
    error_message: Optional[str] = None
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Optional["TranslationDatabaseEntry"]:
        """Build an entry from persisted JSON. Returns None for unusable records."""
        if not isinstance(data, dict):
            return None
        file_path = data.get("file_path")
        if not isinstance(file_path, str) or not file_path:
            return None
        try:
            status = TranslationStatus(data.get("status", TranslationStatus.PENDING.value))
        except ValueError:
            status = TranslationStatus.PENDING
        file_name = data.get("file_name")
        translated_name = data.get("translated_name")
        error_message = data.get("error_message")
        updated_at = data.get("updated_at")
        return cls(
            file_path=file_path,
            file_name=file_name if isinstance(file_name, str) else "",
            translated_name=translated_name if isinstance(translated_name, str) else None,
            status=status,
            error_message=error_message if isinstance(error_message, str) else None,
            updated_at=updated_at if isinstance(updated_at, str) else utc_now_iso(),
        )


@dataclass(frozen=True)
class DirectoryEntry:
    """One item of a directory listing"""
    name: str
    is_directory: bool
    full_path: str

    def to_dict(self) -> dict:
        return {"name": self.name, "isDirectory": self.is_directory, "fullPath": self.full_path}


@dataclass
class DirectoryListing:
    directory: str
    entries: list[DirectoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class OpenFileResult:
    ok: bool
    message: Optional[str] = None


@dataclass
class GenerationSummary:
    """Counts reported at the end of a bulk generator run"""
    translated: int = 0
    skipped: int = 0
    failed: int = 0
    unchanged: int = 0
    pruned: int = 0

    @property
    def processed(self) -> int:
        return self.translated + self.skipped + self.failed
