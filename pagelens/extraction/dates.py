"""Date range parsing for the "Dates" label.

Normalisation is best-effort per side: a side that does not parse as a
calendar date keeps its trimmed original text, and text that does not
match the ``from: A to: B`` shape is returned raw.
"""

from __future__ import annotations

import re
from datetime import datetime

from pagelens.config.settings import ExtractionConfig
from pagelens.extraction.record import DateRange
from pagelens.extraction.text import normalize

_RANGE_RE = re.compile(r"from:\s*(.+?)\s*to:\s*(.+)", re.IGNORECASE)
_ORDINAL_RE = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE)

_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%a %b %d %Y",
    "%a, %b %d, %Y",
    "%A, %B %d, %Y",
    "%A %B %d %Y",
    "%Y-%m-%dT%H:%M:%S",
)


def normalize_date(text: str) -> str | None:
    """Return ``YYYY-MM-DD`` for a recognised rendering, else None."""
    cleaned = _ORDINAL_RE.sub(r"\1", normalize(text)).rstrip(".,;")
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def parse_date_range(raw: str) -> DateRange | None:
    text = normalize(raw)
    if not text:
        return None
    match = _RANGE_RE.search(text)
    if not match:
        return DateRange(raw_text=text)
    start = normalize(match.group(1))
    end = normalize(match.group(2))
    return DateRange(
        from_=normalize_date(start) or start,
        to=normalize_date(end) or end,
        raw_text=text,
    )


def extract_date_range(
    pairs: dict[str, str], config: ExtractionConfig | None = None
) -> DateRange | None:
    config = config or ExtractionConfig()
    for label in config.date_labels:
        if pairs.get(label):
            return parse_date_range(pairs[label])
    return None
