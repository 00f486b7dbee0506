"""Label/value pair extractors.

Three independent sources, each returning a first-occurrence-wins mapping:

- definition lists (`dt`/`dd` siblings), trusted unconditionally
- headings followed by a short or value-like sibling
- generic two-child containers (stat tiles, metric cards), gated by the
  label length and value shape so icon+text buttons do not leak in
"""

from __future__ import annotations

from pagelens.config.settings import ExtractionConfig
from pagelens.document.nodes import Document
from pagelens.extraction.text import is_value_like, normalize, word_count
from pagelens.extraction.visibility import is_perceivable, perceivable_children

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def extract_definition_pairs(document: Document) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for dt in document.root.find_all("dt"):
        if not is_perceivable(dt):
            continue
        dd = dt.next_element_sibling
        if dd is None or dd.tag != "dd" or not is_perceivable(dd):
            continue
        label = normalize(dt.text_content)
        value = normalize(dd.text_content)
        if not label or not value:
            continue
        pairs.setdefault(label, value)
    return pairs


def extract_labeled_values(
    document: Document, config: ExtractionConfig | None = None
) -> dict[str, str]:
    config = config or ExtractionConfig()
    results: dict[str, str] = {}
    for node in document.body.iter_descendants():
        if not is_perceivable(node):
            continue
        children = perceivable_children(node)
        if len(children) != 2:
            continue
        label_el, value_el = children
        label = normalize(label_el.text_content)
        value = normalize(value_el.text_content)
        if not label or len(label) > config.label_max_chars:
            continue
        if not is_value_like(value):
            continue
        results.setdefault(label, value)
    return results


def extract_heading_pairs(
    document: Document, config: ExtractionConfig | None = None
) -> dict[str, str]:
    config = config or ExtractionConfig()
    pairs: dict[str, str] = {}
    for heading in document.root.find_all(_HEADING_TAGS):
        if not is_perceivable(heading):
            continue
        label = normalize(heading.text_content)
        if not label:
            continue
        sibling = heading.next_element_sibling
        if not is_perceivable(sibling):
            continue
        value = normalize(sibling.text_content)
        if not value or len(value) > config.heading_value_max_chars:
            continue
        if not (is_value_like(value) or word_count(value) <= config.heading_value_max_words):
            continue
        pairs.setdefault(label, value)
    return pairs
