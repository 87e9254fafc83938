"""Byte-to-text decoding for documents that are already plain text."""

from __future__ import annotations

from loguru import logger

REPLACEMENT_CHARACTER = "\ufffd"


def decode_text(content: bytes, fallback_encoding: str = "latin-1") -> str:
    """Decode ``content`` as UTF-8, falling back to a single-byte encoding.

    The fallback is used whenever UTF-8 decoding produces replacement characters,
    which is how Windows-1252/Latin-1 exports of Spanish text usually show up.
    A UTF-8 byte order mark is dropped.
    """
    if not content:
        return ""

    text = content.decode("utf-8", errors="replace")
    if REPLACEMENT_CHARACTER not in text:
        return text.removeprefix("\ufeff")

    logger.debug(f"UTF-8 decoding produced replacement characters; using {fallback_encoding}")
    return content.decode(fallback_encoding, errors="replace")
