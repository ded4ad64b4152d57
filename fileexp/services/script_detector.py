# fileexp/services/script_detector.py
"""
Decides whether a file name needs translation at all.

A base name needs translation iff it contains at least one Japanese code point.
There is no threshold or sampling: one Kana or Kanji character is enough.
"""


class ScriptDetector:
    """
    Japanese script detection for file names.

    Example:
        from fileexp.services.script_detector import script_detector
        if script_detector.needs_translation("写真_001"):
            ...
    """

    # (start, end) inclusive code point ranges treated as Japanese
    JAPANESE_RANGES = (
        (0x3040, 0x30FF),  # Hiragana + Katakana
        (0x3400, 0x4DBF),  # CJK Unified Ideographs Extension A
        (0x4E00, 0x9FAF),  # CJK Unified Ideographs (Kanji)
    )

    @classmethod
    def is_japanese_char(cls, code: int) -> bool:
        """Check if a Unicode code point is in one of the Japanese ranges."""
        for start, end in cls.JAPANESE_RANGES:
            if start <= code <= end:
                return True
        return False

    def needs_translation(self, text: str) -> bool:
        """Return True if text contains at least one Japanese character."""
        if not text:
            return False
        return any(self.is_japanese_char(ord(ch)) for ch in text)


# Shared instance
script_detector = ScriptDetector()


def is_japanese(text: str) -> bool:
    """Convenience function using the shared detector."""
    return script_detector.needs_translation(text)
