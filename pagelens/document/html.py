"""Build an in-memory Document from static HTML.

There is no layout engine here, so rendered size and resolved style are
approximated the way a browser would resolve them for the common cases:
inline `style` declarations, the `hidden` attribute, tags that never
render, inherited `visibility`, and `display: none` collapsing the whole
subtree. An element with no text and no replaced/control content gets a
zero box, as an empty span would in a browser.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction

from pagelens.document.nodes import Document, Element, Node, Rect, Style, TextNode

logger = logging.getLogger(__name__)

_NON_RENDERED_TAGS = frozenset(
    {"head", "script", "style", "template", "noscript", "title", "meta", "link", "base"}
)
_REPLACED_TAGS = frozenset(
    {"input", "button", "select", "textarea", "img", "svg", "video", "canvas", "iframe", "hr"}
)
_SKIPPED_STRINGS = (Comment, Doctype, Declaration, ProcessingInstruction, CData)
_NOMINAL_RECT = Rect(width=100.0, height=20.0)
_PX_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)(?:px)?\s*$", re.IGNORECASE)


def parse_inline_style(style: str | None) -> dict[str, str]:
    """Parse a `style` attribute into lower-cased property -> value."""
    declarations: dict[str, str] = {}
    for chunk in (style or "").split(";"):
        if ":" not in chunk:
            continue
        prop, _, value = chunk.partition(":")
        prop = prop.strip().lower()
        value = value.replace("!important", "").strip().lower()
        if prop and value:
            declarations[prop] = value
    return declarations


def _px(value: str | None) -> float | None:
    if value is None:
        return None
    match = _PX_RE.match(value)
    return float(match.group(1)) if match else None


def _attr_text(value: object) -> str:
    # bs4 returns multi-valued attributes (class, rel, ...) as lists
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return "" if value is None else str(value)


def _has_rendered_content(element: Element) -> bool:
    if element.tag in _REPLACED_TAGS:
        return True
    for child in element.children:
        if isinstance(child, TextNode) and child.text.strip():
            return True
        if isinstance(child, Element) and child.rect.width > 0 and child.rect.height > 0:
            return True
    return False


def _element_for(
    tag: Tag, inherited_visibility: str, collapsed: bool
) -> tuple[Element, dict[str, str], bool]:
    declarations = parse_inline_style(tag.get("style"))
    hidden_input = tag.name == "input" and _attr_text(tag.get("type")).lower() == "hidden"
    if tag.name in _NON_RENDERED_TAGS or tag.has_attr("hidden") or hidden_input:
        display = "none"
    else:
        display = declarations.get("display", "block")
    visibility = declarations.get("visibility", inherited_visibility)

    attrs = {name: _attr_text(value) for name, value in tag.attrs.items()}
    element = Element(tag.name, attrs, style=Style(visibility=visibility, display=display))
    return element, declarations, collapsed or display == "none"


def _size(element: Element, declarations: dict[str, str], collapsed: bool) -> None:
    if collapsed or not _has_rendered_content(element):
        element.rect = Rect()
        return
    width = _px(declarations.get("width"))
    height = _px(declarations.get("height"))
    element.rect = Rect(
        width=_NOMINAL_RECT.width if width is None else width,
        height=_NOMINAL_RECT.height if height is None else height,
    )


def _build(root_tag: Tag, inherited_visibility: str, collapsed: bool) -> Element:
    """Convert a bs4 subtree with an explicit stack, so nesting depth is unbounded."""
    root, declarations, root_collapsed = _element_for(root_tag, inherited_visibility, collapsed)
    pending: list[tuple[Tag, Element, bool]] = [(root_tag, root, root_collapsed)]
    created: list[tuple[Element, dict[str, str], bool]] = [(root, declarations, root_collapsed)]

    while pending:
        tag, element, is_collapsed = pending.pop()
        for child in tag.children:
            node: Node | None = None
            if isinstance(child, Tag):
                node, child_declarations, child_collapsed = _element_for(
                    child, element.style.visibility, is_collapsed
                )
                pending.append((child, node, child_collapsed))
                created.append((node, child_declarations, child_collapsed))
            elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
                node = TextNode(str(child))
            if node is not None:
                element.append(node)

    # Every element is created after its ancestors, so sizing in reverse
    # order sees each child's box before its parent's.
    for element, element_declarations, is_collapsed in reversed(created):
        _size(element, element_declarations, is_collapsed)
    return root


def parse_html(html: str, url: str = "") -> Document:
    """Parse raw HTML into a Document with approximated visibility."""
    clean_html = (html or "").replace("\ufeff", "").strip()
    soup = BeautifulSoup(clean_html, "html.parser")

    root_tag = soup.find("html")
    if isinstance(root_tag, Tag):
        root = _build(root_tag, "visible", False)
    else:
        # Fragment without an <html> wrapper: hang it off a synthetic body
        root = Element("body", style=Style())
        for child in soup.children:
            if isinstance(child, Tag):
                root.append(_build(child, "visible", False))
            elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
                root.append(TextNode(str(child)))
        root.rect = _NOMINAL_RECT if _has_rendered_content(root) else Rect()

    title_tag = soup.find("title")
    title = " ".join(title_tag.get_text().split()) if isinstance(title_tag, Tag) else ""
    document = Document(root, url=url, title=title)
    logger.debug("Parsed HTML document", extra={"url": url, "html_size": len(clean_html)})
    return document
