# fileexp/services/substitutions.py
"""
Literal text normalization applied to file names before they reach the model.

The table is a JSON object of literal -> replacement. Keys are applied longest
first, each one replacing every occurrence in the text produced so far, so a
longer key always wins over a shorter key contained in it.
"""

import json
import logging
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def apply_substitutions(text: str, substitutions: Optional[Mapping[str, str]]) -> str:
    """Apply a substitution table to text.

    Args:
        text: Input string
        substitutions: literal key -> replacement. None or empty returns text unchanged.

    Returns:
        The substituted string
    """
    if not substitutions:
        return text
    updated = text
    # sorted() is stable, so equal-length keys keep table order
    for key in sorted(substitutions, key=len, reverse=True):
        if not key:
            continue
        updated = updated.replace(key, str(substitutions[key]))
    return updated


def load_substitutions(path: Optional[Path]) -> dict[str, str]:
    """Load a substitution table from a JSON file.

    A missing path yields an empty table. An unreadable file or anything other
    than a JSON object is logged and also yields an empty table.
    """
    if path is None:
        return {}
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Failed to load substitutions from %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Substitutions file %s is not a JSON object, ignoring", path)
        return {}

    table = {str(k): str(v) for k, v in data.items() if isinstance(k, str) and v is not None}
    if table:
        logger.info("Loaded substitutions (count=%d)", len(table))
    return table
