"""Visibility filter: only perceivable nodes feed the extractors.

Closed modals, unmounted tabs and template placeholders stay in the tree
with a zero box or a hidden style; skipping them is what keeps stale UI
state out of the record.
"""

from __future__ import annotations

from pagelens.document.nodes import Element, Node


def is_perceivable(node: Node | None) -> bool:
    if not isinstance(node, Element):
        return False
    if node.rect.width == 0 or node.rect.height == 0:
        return False
    if node.style.visibility == "hidden" or node.style.display == "none":
        return False
    return True


def perceivable_children(element: Element) -> list[Element]:
    return [child for child in element.element_children if is_perceivable(child)]
