# fileexp/models/__init__.py
"""
Data models for FileExp.
"""

from .types import (
    TranslationStatus,
    ProviderOutcome,
    FilenameTranslation,
    TranslationDatabaseEntry,
    DirectoryEntry,
    DirectoryListing,
    OpenFileResult,
    GenerationSummary,
    utc_now_iso,
)

__all__ = [
    'TranslationStatus',
    'ProviderOutcome',
    'FilenameTranslation',
    'TranslationDatabaseEntry',
    'DirectoryEntry',
    'DirectoryListing',
    'OpenFileResult',
    'GenerationSummary',
    'utc_now_iso',
]
