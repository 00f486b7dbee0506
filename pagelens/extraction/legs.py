"""Legs table extraction.

The table lives in the description paired with the "Legs" term. Each body
row carries single-letter toggle buttons (S/B for side, C/P for option
type); an active button is marked by a colour class. A row without an
active side and an active option type is not a leg and is dropped.
"""

from __future__ import annotations

import logging
import re

from pagelens.config.settings import ExtractionConfig
from pagelens.document.nodes import Document, Element
from pagelens.extraction.record import LegEntry, OptionType, Side
from pagelens.extraction.text import normalize
from pagelens.extraction.visibility import is_perceivable

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"[-+]?\d+")
_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?")


def coerce_number(raw: str) -> int | float | str:
    """Numeric when the whole text is a number, otherwise the raw text."""
    if _INT_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        return float(raw)
    return raw


def _find_letter_button(buttons: list[Element], letter: str) -> Element | None:
    pattern = re.compile(rf"\b{letter}\b")
    return next((b for b in buttons if pattern.search(b.text_content)), None)


def _is_active(button: Element | None, markers: list[str]) -> bool:
    if button is None:
        return False
    class_name = button.class_name.lower()
    return any(marker.lower() in class_name for marker in markers)


def _control_value(control: Element | None) -> str:
    return normalize(control.effective_value()) if control is not None else ""


def _find_legs_table(document: Document, config: ExtractionConfig) -> Element | None:
    needle = config.legs_label.lower()
    legs_dt = next(
        (dt for dt in document.root.find_all("dt") if needle in dt.text_content.lower()),
        None,
    )
    if legs_dt is None:
        return None
    container = legs_dt.next_element_sibling
    return container.find("table") if container is not None else None


def _body_rows(table: Element) -> list[Element]:
    bodies = table.find_all("tbody")
    if not bodies:
        # html.parser does not insert the implicit tbody a browser would
        return [row for row in table.find_all("tr") if not row.find("th")]
    return [row for body in bodies for row in body.find_all("tr")]


def parse_leg_row(row: Element, config: ExtractionConfig) -> LegEntry | None:
    markers = config.active_class_markers
    buttons = row.find_all("button")

    if _is_active(_find_letter_button(buttons, "S"), markers):
        side = Side.SELL
    elif _is_active(_find_letter_button(buttons, "B"), markers):
        side = Side.BUY
    else:
        return None

    if _is_active(_find_letter_button(buttons, "C"), markers):
        option_type = OptionType.CALL
    elif _is_active(_find_letter_button(buttons, "P"), markers):
        option_type = OptionType.PUT
    else:
        return None

    variant_button = row.find("button", classes=("selectInput--nested",)) or row.find(
        "button", classes=("selectInput",)
    )
    variant_label = normalize(variant_button.text_content) if variant_button else ""

    inputs = row.find_all("input")
    qty_raw = _control_value(inputs[0] if len(inputs) > 0 else None)
    dte_raw = _control_value(inputs[2] if len(inputs) > 2 else None)

    parts = [side.value, option_type.value]
    if qty_raw:
        parts.append(f"qty {qty_raw}")
    if dte_raw:
        parts.append(f"dte {dte_raw}")

    return LegEntry(
        side=side,
        option_type=option_type,
        quantity=coerce_number(qty_raw) if qty_raw else None,
        days_to_expiry=coerce_number(dte_raw) if dte_raw else None,
        variant_label=variant_label or None,
        display_text=" ".join(parts),
    )


def extract_legs(document: Document, config: ExtractionConfig | None = None) -> list[LegEntry]:
    config = config or ExtractionConfig()
    table = _find_legs_table(document, config)
    if table is None:
        return []

    legs: list[LegEntry] = []
    for row in _body_rows(table):
        if not is_perceivable(row):
            continue
        leg = parse_leg_row(row, config)
        if leg is None:
            logger.debug("Dropped legs row without active side/type", extra={"node_id": row.node_id})
            continue
        legs.append(leg)
    return legs
