"""Control locators and writers used by the form applier.

Locators return None when nothing matches; callers record the field as
skipped. Writers go through the Element write API so each change is
logged as a ControlMutation and the host's listeners observe it.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable

from pagelens.document.nodes import Document, Element
from pagelens.extraction.text import normalize

_QTY_RE = re.compile(r"QTY", re.IGNORECASE)
_DTE_RE = re.compile(r"DTE", re.IGNORECASE)

_TEXT_CONTROLS = ("input", "textarea")


def _label_text(element: Element) -> str:
    return normalize(element.text_content).lower()


def _labels(document: Document) -> list[Element]:
    return document.root.find_all(predicate=lambda el: el.tag == "label" or el.has_classes("label"))


def find_label(document: Document, label_text: str) -> Element | None:
    """Label element whose text equals ``label_text``, else the first that contains it.

    The fallback only matches whole words, so "Use VIX" never resolves to
    a "Use VIX9D" label.
    """
    needle = normalize(label_text).lower()
    if not needle:
        return None
    labels = _labels(document)
    exact = next((el for el in labels if _label_text(el) == needle), None)
    if exact is not None:
        return exact
    pattern = re.compile(rf"(?<!\w){re.escape(needle)}(?!\w)")
    return next((el for el in labels if pattern.search(_label_text(el))), None)


def label_container(label: Element) -> Element | None:
    return label.closest("div") or label.parent


def _control_for(
    document: Document, label_text: str, matches: Callable[[Element], bool]
) -> Element | None:
    label = find_label(document, label_text)
    if label is None:
        return None
    target_id = label.get_attribute("for")
    if target_id:
        target = document.get_element_by_id(target_id)
        if target is not None and matches(target):
            return target
    container = label_container(label)
    if container is None:
        return None
    return container.find(predicate=matches)


def find_labeled_input(document: Document, label_text: str) -> Element | None:
    return _control_for(
        document,
        label_text,
        lambda el: el.tag in _TEXT_CONTROLS and el.input_type not in {"checkbox", "radio"},
    )


def is_toggle_control(element: Element) -> bool:
    return (
        element.input_type == "checkbox"
        or element.get_attribute("role") == "switch"
        or element.get_attribute("aria-checked") is not None
        or element.get_attribute("aria-pressed") is not None
    )


def find_toggle(document: Document, label_text: str) -> Element | None:
    return _control_for(document, label_text, is_toggle_control)


def toggle_state(element: Element, active_markers: Iterable[str] = ()) -> bool:
    """Current on/off state of a checkbox, ARIA switch or class-marked button."""
    if element.input_type in {"checkbox", "radio"}:
        return element.checked
    for attr in ("aria-checked", "aria-pressed"):
        state = element.get_attribute(attr)
        if state is not None:
            return state.lower() == "true"
    class_name = element.class_name.lower()
    return any(marker.lower() in class_name for marker in active_markers)


def set_toggle(element: Element, desired: bool, active_markers: Iterable[str] = ()) -> bool:
    """Click only when the state differs. Returns True when a click happened."""
    if toggle_state(element, active_markers) == desired:
        return False
    element.click()
    return True


def set_input_value(element: Element, value: str) -> None:
    element.set_value(value)
    element.dispatch_event("input")
    element.dispatch_event("change")


def find_button_by_text(root: Element, *texts: str) -> Element | None:
    wanted = [normalize(text).lower() for text in texts if text]
    for candidate in wanted:
        for button in root.find_all("button"):
            if _label_text(button) == candidate:
                return button
    return None


def click_button_by_text(
    root: Element, *texts: str, active_markers: Iterable[str] = ()
) -> Element | None:
    """Activate the button labelled with one of ``texts``.

    Buttons already in the active state are left alone. Returns the button,
    or None when no button matches.
    """
    button = find_button_by_text(root, *texts)
    if button is not None:
        set_toggle(button, True, active_markers)
    return button


def find_ticker_control(document: Document, ticker_label: str) -> Element | None:
    needle = ticker_label.lower()
    for button in document.root.find_all("button", classes=("selectInput",)):
        container = button.closest("div")
        previous = container.previous_element_sibling if container is not None else None
        if previous is not None and needle in previous.text_content.lower():
            return button
    return None


def set_select_text(button: Element, text: str) -> bool:
    """Overwrite a select button's displayed text and signal it as changed."""
    span = button.find("span", classes=("block", "truncate"))
    if span is None:
        return False
    span.set_text(text)
    button.dispatch_event("click")
    button.dispatch_event("change")
    return True


def find_leg_groups(document: Document, group_classes: Iterable[str]) -> list[Element]:
    return document.root.find_all(classes=tuple(group_classes))


def _caption(element: Element) -> str:
    sibling = element.next_element_sibling
    return sibling.text_content if sibling is not None else ""


def leg_inputs(group: Element) -> tuple[Element | None, Element | None, Element | None]:
    """(quantity, days-to-expiry, greek) inputs of one leg group.

    Quantity and DTE inputs are identified by the caption that follows
    them; the greek input is the first one without such a caption.
    """
    inputs = group.find_all("input")
    qty = next((el for el in inputs if _QTY_RE.search(_caption(el))), None)
    dte = next((el for el in inputs if _DTE_RE.search(_caption(el))), None)
    greek = next(
        (el for el in inputs if not (_QTY_RE.search(_caption(el)) or _DTE_RE.search(_caption(el)))),
        None,
    )
    return qty, dte, greek


def weekday_button(root: Element, day: str) -> Element | None:
    return find_button_by_text(root, day, day[:3])
