# fileexp/storage/__init__.py
"""
Storage module for FileExp.
Handles the persisted translation database.
"""

from fileexp.storage.translation_db import TranslationDatabase

__all__ = ['TranslationDatabase']
