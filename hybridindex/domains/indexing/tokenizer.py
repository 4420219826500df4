"""
Tokenizer - Shared normalization for indexing and querying.

The same function tokenizes item content at write time and query text at
search time; the sparse scorer only finds matches because both sides go
through identical normalization.
"""

from __future__ import annotations

import hashlib
import re

__all__ = ["tokenize", "hash_content", "MIN_TOKEN_LENGTH"]

MIN_TOKEN_LENGTH = 2

# Anything that is not an ASCII word character, whitespace or a Hangul
# syllable. Accented and other non-Hangul letters act as separators.
_NON_TOKEN_PATTERN = re.compile(r"[^\w\s가-힣]", re.ASCII)
_WHITESPACE_PATTERN = re.compile(r"\s+")


def tokenize(text: str) -> list[str]:
    """
    Normalize text into an ordered token sequence.

    Lowercases, replaces punctuation/symbols with spaces, splits on
    whitespace runs and drops tokens shorter than two characters.
    No stemming and no stop-word removal.

    Example:
        >>> tokenize("Find inactive users!")
        ['find', 'inactive', 'users']
    """
    if not text:
        return []

    normalized = _NON_TOKEN_PATTERN.sub(" ", text.lower())
    return [
        token
        for token in _WHITESPACE_PATTERN.split(normalized)
        if len(token) >= MIN_TOKEN_LENGTH
    ]


def hash_content(text: str) -> str:
    """Fingerprint content for change detection (not for security)."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()
