"""Bulleted/numbered list harvesting."""

from __future__ import annotations

from pagelens.document.nodes import Document
from pagelens.extraction.text import normalize
from pagelens.extraction.visibility import is_perceivable


def extract_lists(document: Document) -> list[list[str]]:
    """Direct, perceivable, non-empty items of every perceivable list, in document order."""
    lists: list[list[str]] = []
    for list_el in document.root.find_all(("ul", "ol")):
        if not is_perceivable(list_el):
            continue
        items = [
            normalize(li.text_content)
            for li in list_el.element_children
            if li.tag == "li" and is_perceivable(li)
        ]
        items = [item for item in items if item]
        if items:
            lists.append(items)
    return lists
