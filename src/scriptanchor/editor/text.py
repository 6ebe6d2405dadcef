"""Text normalization used for every selection-text comparison."""

from __future__ import annotations

import re

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Canonicalize text for comparison.

    Lowercases, collapses every whitespace run to a single space and trims
    both ends. ``None`` normalizes to the empty string.

    Args:
        text: Raw text from a block or a stored shot record

    Returns:
        Normalized text
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", text.lower()).strip()


def texts_match(left: str | None, right: str | None) -> bool:
    """Return True when both texts are equal after normalization."""
    return normalize_text(left) == normalize_text(right)
