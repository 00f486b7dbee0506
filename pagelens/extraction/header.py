"""Page heading block: title, tag chips, and the link line under it."""

from __future__ import annotations

from pagelens.document.nodes import Document, Element
from pagelens.extraction.record import Header
from pagelens.extraction.text import normalize

HEADING_ID = "message-heading"


def _is_tag_chip(element: Element) -> bool:
    return element.has_classes("bg-ooGold") or element.has_classes("rounded-full", "text-xs")


def extract_header(document: Document) -> Header:
    heading = document.get_element_by_id(HEADING_ID)
    if heading is None:
        return Header()

    title_el = heading.find("span")
    tags = [normalize(el.text_content) for el in heading.find_all(predicate=_is_tag_chip)]
    link_el = heading.parent.find("p") if heading.parent is not None else None

    return Header(
        title=normalize(title_el.text_content) if title_el else "",
        tags=[tag for tag in tags if tag],
        link=normalize(link_el.text_content) if link_el else "",
    )
