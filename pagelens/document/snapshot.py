"""Build an in-memory Document from a live-page snapshot.

The browser layer serialises the rendered page in a single evaluate call.
Each element node looks like::

    {"id": "12", "tag": "div", "attrs": {...}, "rect": [w, h],
     "visibility": "visible", "display": "block",
     "value": "...", "checked": false, "children": [...]}

and text nodes are ``{"text": "..."}``. Node ids index a page-side
registry, so mutations recorded against this tree can be replayed on the
page they came from.
"""

from __future__ import annotations

from typing import Any

from pagelens.document.nodes import Document, Element, Node, Rect, Style, TextNode


def _element_from(payload: dict[str, Any]) -> Element | None:
    tag = payload.get("tag")
    if not tag:
        return None

    rect_raw = payload.get("rect") or (0, 0)
    try:
        rect = Rect(width=float(rect_raw[0]), height=float(rect_raw[1]))
    except (TypeError, ValueError, IndexError):
        rect = Rect()

    value = payload.get("value")
    return Element(
        str(tag),
        {str(k): str(v) for k, v in (payload.get("attrs") or {}).items()},
        rect=rect,
        style=Style(
            visibility=str(payload.get("visibility") or "visible"),
            display=str(payload.get("display") or "block"),
        ),
        value=value if isinstance(value, str) else None,
        checked=bool(payload.get("checked", False)),
        node_id=str(payload.get("id", "")),
    )


def _build_node(payload: dict[str, Any]) -> Node | None:
    if "text" in payload and "tag" not in payload:
        return TextNode(str(payload.get("text") or ""))
    root = _element_from(payload)
    if root is None:
        return None

    pending: list[tuple[dict[str, Any], Element]] = [(payload, root)]
    while pending:
        element_payload, element = pending.pop()
        for child_payload in element_payload.get("children") or []:
            if not isinstance(child_payload, dict):
                continue
            if "text" in child_payload and "tag" not in child_payload:
                element.append(TextNode(str(child_payload.get("text") or "")))
                continue
            child = _element_from(child_payload)
            if child is not None:
                element.append(child)
                pending.append((child_payload, child))
    return root


def document_from_snapshot(snapshot: dict[str, Any]) -> Document:
    """Convert a serialised page snapshot into a Document."""
    root = _build_node(snapshot.get("root") or {})
    if not isinstance(root, Element):
        root = Element("html")
    return Document(
        root,
        url=str(snapshot.get("url") or ""),
        title=" ".join(str(snapshot.get("title") or "").split()),
    )
