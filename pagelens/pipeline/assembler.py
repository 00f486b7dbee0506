"""Payload Assembler: merge extractor fragments into one StructuredRecord.

Merge policy for the generic label/value namespace:

1. definition-list pairs, then heading pairs, then two-child pairs; a later
   source only adds labels that are not present yet
2. drop combined-metric labels, keys over the word limit and values over
   the word limit, so paragraph-like content never lands as a scalar
3. synthesise Entry/Exit/Misc summaries from list vocabulary, each written
   at most once

The assembler only reads the document. Every call returns a new record.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from pagelens.config.settings import ExtractionConfig
from pagelens.document.nodes import Document
from pagelens.extraction.dates import extract_date_range
from pagelens.extraction.derived import infer_derived_fields
from pagelens.extraction.header import extract_header
from pagelens.extraction.legs import extract_legs
from pagelens.extraction.lists import extract_lists
from pagelens.extraction.pairs import (
    extract_definition_pairs,
    extract_heading_pairs,
    extract_labeled_values,
)
from pagelens.extraction.record import StructuredRecord
from pagelens.extraction.text import word_count

logger = logging.getLogger(__name__)

SUMMARY_BUCKETS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Entry", re.compile(r"open trades|daily|dte|portfolio|contract|ema", re.IGNORECASE)),
    ("Exit", re.compile(r"stop loss|exit", re.IGNORECASE)),
    ("Misc", re.compile(r"fee|slippage|cap", re.IGNORECASE)),
)


def merge_first_wins(*sources: dict[str, str]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for source in sources:
        for key, value in source.items():
            merged.setdefault(key, value)
    return merged


def filter_scalar_pairs(pairs: dict[str, str], config: ExtractionConfig) -> dict[str, str]:
    combined_metric = re.compile(
        "|".join(re.escape(label) for label in config.combined_metric_labels), re.IGNORECASE
    )
    kept: dict[str, str] = {}
    for key, value in pairs.items():
        if config.combined_metric_labels and combined_metric.search(key):
            continue
        if word_count(key) > config.key_max_words or word_count(value) > config.value_max_words:
            continue
        kept[key] = value
    return kept


def synthesize_summaries(metrics: dict[str, str], lists: list[list[str]]) -> None:
    """Fill Entry/Exit/Misc from the first list whose vocabulary matches each bucket."""
    for items in lists:
        text = "; ".join(items)
        for bucket, pattern in SUMMARY_BUCKETS:
            if pattern.search(text):
                metrics.setdefault(bucket, text)
                break


def build_record(
    document: Document,
    *,
    config: ExtractionConfig | None = None,
    captured_at: datetime | None = None,
) -> StructuredRecord:
    """Run every extractor over the document and assemble the record.

    ``capturedAt`` defaults to the current UTC time, so two passes over an
    unchanged document only serialise byte-identically when the same
    ``captured_at`` is passed to both.
    """
    config = config or ExtractionConfig()

    header = extract_header(document)
    definition_pairs = extract_definition_pairs(document)
    heading_pairs = extract_heading_pairs(document, config)
    two_child_pairs = extract_labeled_values(document, config)
    lists = extract_lists(document)
    legs = extract_legs(document, config)

    merged = merge_first_wins(definition_pairs, heading_pairs, two_child_pairs)
    date_range = extract_date_range(merged, config)

    metrics = dict(definition_pairs)
    synthesize_summaries(metrics, lists)

    derived = infer_derived_fields(lists)

    record = StructuredRecord(
        url=document.url,
        title=document.title,
        captured_at=captured_at or datetime.now(timezone.utc),
        header=header,
        metrics=metrics,
        date_range=date_range,
        labeled_values=filter_scalar_pairs(merged, config),
        lists=lists,
        legs=legs,
        **derived,
    )
    logger.debug(
        "Assembled record",
        extra={
            "url": document.url,
            "labeled_values": len(record.labeled_values),
            "lists": len(lists),
            "legs": len(legs),
            "derived": sorted(derived),
        },
    )
    return record
