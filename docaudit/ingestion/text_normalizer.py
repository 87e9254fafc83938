"""Whitespace and punctuation canonicalization applied before pattern matching."""

from __future__ import annotations

import re
from typing import Dict, List

DEFAULT_DASH_REPLACEMENTS: Dict[str, str] = {
    "–": "-",  # en dash
    "—": "-",  # em dash
    "−": "-",  # minus sign
    "‑": "-",  # non-breaking hyphen
}

# Marks stripped from both ends of every extracted fragment.
DEFAULT_STRIP_CHARACTERS = ".,;:-\"'«»“”‘’ \t"


class TextNormalizer:
    """Canonicalize OCR text for regex matching.

    ``normalize`` flattens the whole document into a single line, so line-aware
    extractors must work on ``split_lines`` of the original text instead.

    Example:
        >>> normalizer = TextNormalizer()
        >>> normalizer.normalize("  Expediente \\u2013  2024/15 \\n")
        'Expediente - 2024/15'
    """

    def __init__(
        self,
        dash_replacements: Dict[str, str] | None = None,
        strip_characters: str = DEFAULT_STRIP_CHARACTERS,
    ) -> None:
        replacements = dash_replacements or DEFAULT_DASH_REPLACEMENTS
        self._translation = {ord(src): dest for src, dest in replacements.items()}
        self._strip_characters = strip_characters
        self._whitespace_re = re.compile(r"\s+")
        self._line_break_re = re.compile(r"\r\n|\r|\n")

    def normalize(self, text: str | None) -> str:
        """Replace dash variants, collapse whitespace runs and trim."""
        if not text:
            return ""
        text = text.translate(self._translation)
        return self._whitespace_re.sub(" ", text).strip()

    def split_lines(self, text: str | None) -> List[str]:
        """Split the original text on line breaks, normalizing each non-empty line."""
        if not text:
            return []
        lines = (self.normalize(line) for line in self._line_break_re.split(text))
        return [line for line in lines if line]

    def clean_value(self, value: str | None) -> str:
        """Trim an extracted fragment and strip stray punctuation from its ends."""
        if not value:
            return ""
        return self.normalize(value).strip(self._strip_characters)
