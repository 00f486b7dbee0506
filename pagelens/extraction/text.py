"""Text normalisation shared by every extractor."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
# digit, currency symbol, percent sign, plus/minus sign
_VALUE_LIKE_RE = re.compile(r"[\d$€£¥%±+\-−]")


def normalize(text: str | None) -> str:
    """Collapse whitespace runs to one space and trim."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_value_like(text: str) -> bool:
    return bool(_VALUE_LIKE_RE.search(text))


def word_count(text: str) -> int:
    return len(text.split(" ")) if text else 0
