"""In-memory document tree: the surface extraction reads and apply writes.

A Document is borrowed for one extraction or apply pass. It never talks
to a browser itself: writes are recorded as ControlMutations so a live
adapter can replay them on the real page afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator


class MutationKind(str, Enum):
    VALUE = "value"
    TEXT = "text"
    CLICK = "click"
    EVENT = "event"


@dataclass(frozen=True)
class ControlMutation:
    """One write performed against a control during apply."""

    node_id: str
    kind: MutationKind
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"node_id": self.node_id, "kind": self.kind.value, "value": self.value}


@dataclass(frozen=True)
class Rect:
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class Style:
    visibility: str = "visible"
    display: str = "block"


Listener = Callable[["Element", str], None]

_TOGGLE_INPUT_TYPES = {"checkbox", "radio"}


class Node:
    """Base tree node."""

    def __init__(self) -> None:
        self.parent: Element | None = None

    @property
    def text_content(self) -> str:
        raise NotImplementedError


class TextNode(Node):
    def __init__(self, text: str) -> None:
        super().__init__()
        self.text = text

    @property
    def text_content(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"TextNode({self.text!r})"


class Element(Node):
    """An element with attributes, rendered box, resolved style and live control state."""

    def __init__(
        self,
        tag: str,
        attrs: dict[str, str] | None = None,
        children: list[Node] | None = None,
        *,
        rect: Rect | None = None,
        style: Style | None = None,
        value: str | None = None,
        checked: bool | None = None,
        node_id: str = "",
    ) -> None:
        super().__init__()
        self.tag = tag.lower()
        self.attrs: dict[str, str] = dict(attrs or {})
        self.children: list[Node] = []
        self.rect = rect or Rect()
        self.style = style or Style()
        self.value = value
        self.checked = checked if checked is not None else "checked" in self.attrs
        self.node_id = node_id
        self.document: Document | None = None
        self._listeners: dict[str, list[Listener]] = {}
        for child in children or []:
            self.append(child)

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, id={self.node_id!r})"

    # --- Structure ---

    def append(self, child: Node) -> Node:
        child.parent = self
        self.children.append(child)
        if isinstance(child, Element) and self.document is not None:
            self.document.adopt(child)
        return child

    @property
    def element_children(self) -> list[Element]:
        return [c for c in self.children if isinstance(c, Element)]

    @property
    def text_content(self) -> str:
        parts: list[str] = []
        stack: list[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if isinstance(node, Element):
                stack.extend(reversed(node.children))
            else:
                parts.append(node.text_content)
        return "".join(parts)

    @property
    def class_name(self) -> str:
        return self.attrs.get("class", "")

    @property
    def classes(self) -> list[str]:
        return self.class_name.split()

    @property
    def html_id(self) -> str:
        return self.attrs.get("id", "")

    def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    def has_classes(self, *names: str) -> bool:
        own = set(self.classes)
        return all(name in own for name in names)

    def _siblings(self) -> list[Node]:
        return self.parent.children if self.parent is not None else []

    @property
    def next_element_sibling(self) -> Element | None:
        siblings = self._siblings()
        index = next((i for i, s in enumerate(siblings) if s is self), None)
        if index is None:
            return None
        for sibling in siblings[index + 1 :]:
            if isinstance(sibling, Element):
                return sibling
        return None

    @property
    def previous_element_sibling(self) -> Element | None:
        siblings = self._siblings()
        index = next((i for i, s in enumerate(siblings) if s is self), None)
        if index is None:
            return None
        for sibling in reversed(siblings[:index]):
            if isinstance(sibling, Element):
                return sibling
        return None

    def closest(self, tag: str) -> Element | None:
        """Nearest inclusive ancestor with the given tag."""
        node: Element | None = self
        while node is not None:
            if node.tag == tag:
                return node
            node = node.parent
        return None

    def iter_descendants(self) -> Iterator[Element]:
        """Pre-order walk over descendant elements (self excluded)."""
        stack = list(reversed(self.element_children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.element_children))

    def find_all(
        self,
        tag: str | tuple[str, ...] | None = None,
        *,
        classes: tuple[str, ...] = (),
        predicate: Callable[[Element], bool] | None = None,
    ) -> list[Element]:
        tags = (tag,) if isinstance(tag, str) else tag
        matches = []
        for node in self.iter_descendants():
            if tags and node.tag not in tags:
                continue
            if classes and not node.has_classes(*classes):
                continue
            if predicate is not None and not predicate(node):
                continue
            matches.append(node)
        return matches

    def find(
        self,
        tag: str | tuple[str, ...] | None = None,
        *,
        classes: tuple[str, ...] = (),
        predicate: Callable[[Element], bool] | None = None,
    ) -> Element | None:
        tags = (tag,) if isinstance(tag, str) else tag
        for node in self.iter_descendants():
            if tags and node.tag not in tags:
                continue
            if classes and not node.has_classes(*classes):
                continue
            if predicate is not None and not predicate(node):
                continue
            return node
        return None

    # --- Control state ---

    @property
    def input_type(self) -> str:
        return self.attrs.get("type", "text").lower() if self.tag == "input" else ""

    def effective_value(self) -> str:
        """Live value, falling back to the declared value attribute."""
        return self.value or self.attrs.get("value") or ""

    # --- Writes ---

    def add_event_listener(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def _record(self, kind: MutationKind, value: str | None = None) -> None:
        if self.document is not None:
            self.document.record(ControlMutation(node_id=self.node_id, kind=kind, value=value))

    def _notify(self, event: str) -> None:
        # Events bubble to every ancestor.
        node: Element | None = self
        while node is not None:
            for listener in list(node._listeners.get(event, [])):
                listener(self, event)
            node = node.parent

    def set_value(self, value: str) -> None:
        self.value = value
        self._record(MutationKind.VALUE, value)

    def set_text(self, text: str) -> None:
        for child in self.children:
            child.parent = None
        self.children = []
        self.append(TextNode(text))
        self._record(MutationKind.TEXT, text)

    def dispatch_event(self, event: str) -> None:
        self._record(MutationKind.EVENT, event)
        self._notify(event)

    def click(self) -> None:
        """Click with the browser's default action for checkable inputs."""
        self._record(MutationKind.CLICK)
        if self.input_type == "checkbox":
            self.checked = not self.checked
        elif self.input_type == "radio":
            self.checked = True
        self._notify("click")
        if self.input_type in _TOGGLE_INPUT_TYPES:
            self._notify("input")
            self._notify("change")


@dataclass
class Document:
    """Root of one document tree plus its page-level metadata and write log."""

    root: Element
    url: str = ""
    title: str = ""
    _mutations: list[ControlMutation] = field(default_factory=list, init=False, repr=False)
    _index: dict[str, Element] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.adopt(self.root)

    def adopt(self, element: Element) -> None:
        """Attach an element subtree, assigning node ids where missing."""
        for node in (element, *element.iter_descendants()):
            node.document = self
            if not node.node_id or self._index.get(node.node_id, node) is not node:
                candidate = len(self._index)
                while str(candidate) in self._index:
                    candidate += 1
                node.node_id = str(candidate)
            self._index[node.node_id] = node

    @property
    def body(self) -> Element:
        if self.root.tag == "body":
            return self.root
        return self.root.find("body") or self.root

    @property
    def mutations(self) -> list[ControlMutation]:
        return list(self._mutations)

    def record(self, mutation: ControlMutation) -> None:
        self._mutations.append(mutation)

    def clear_mutations(self) -> None:
        self._mutations.clear()

    def get_node(self, node_id: str) -> Element | None:
        return self._index.get(node_id)

    def get_element_by_id(self, html_id: str) -> Element | None:
        if self.root.html_id == html_id:
            return self.root
        return self.root.find(predicate=lambda el: el.html_id == html_id)

    def iter_elements(self) -> Iterator[Element]:
        yield self.root
        yield from self.root.iter_descendants()
