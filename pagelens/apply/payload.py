"""Apply payload parsing.

Two JSON shapes are accepted and normalised into one ApplyPlan:

- result shape: a record as produced by extraction (``dateRange``,
  ``header.title``, ``legs``, ``metrics``, top-level derived fields)
- input shape: a hand-written form description, recognised by having both
  ``dates`` and ``ticker``

Only fields that are present end up in the plan; the applier treats every
absent field as "leave the control alone".
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from pagelens.config.settings import ApplyConfig
from pagelens.telemetry.errors import ApplyParseError

NOTHING_TO_APPLY = "Nothing to apply"
INVALID_JSON = "Invalid JSON"

_NON_NUMERIC_RE = re.compile(r"[^\d.]")

# Plan input field -> metric labels that carry it in the result shape.
_MISC_METRIC_LABELS: dict[str, tuple[str, ...]] = {
    "startingFunds": ("Starting Capital",),
    "entrySlippage": ("Entry Slippage",),
    "exitSlippage": ("Exit Slippage",),
    "openingFees": ("Opening Fees", "Opening Fees:"),
    "closingFees": ("Closing Fees", "Closing Fees:"),
}

_DERIVED_INPUT_FIELDS: tuple[str, ...] = (
    "entryTime",
    "exitTime",
    "profitTarget",
    "vixMax",
    "maxContracts",
    "allocationPct",
)


class PayloadShape(str, Enum):
    RESULT = "result"
    INPUT = "input"


class LegPlan(BaseModel):
    """One leg to write into the leg group at the same position."""

    side: str | None = None
    option_type: str | None = None
    quantity: str | None = None
    days_to_expiry: str | None = None
    greek: str | None = None


class ApplyPlan(BaseModel):
    """Everything an apply pass will try to write, keyed by field name."""

    shape: PayloadShape = PayloadShape.RESULT
    start_date: str | None = None
    end_date: str | None = None
    ticker: str | None = None
    legs: list[LegPlan] = Field(default_factory=list)
    inputs: dict[str, str] = Field(default_factory=dict)
    toggles: dict[str, bool] = Field(default_factory=dict)
    entry_days: list[str] | None = None
    profit_target_mode: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.start_date
            or self.end_date
            or self.ticker
            or self.legs
            or self.inputs
            or self.toggles
            or self.entry_days
            or self.profit_target_mode
        )


def detect_shape(data: dict[str, Any]) -> PayloadShape:
    if "dates" in data and "ticker" in data:
        return PayloadShape.INPUT
    return PayloadShape.RESULT


def as_text(value: Any) -> str | None:
    """Render a JSON scalar as control text; None and booleans have no text form."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def numeric_text(value: Any) -> str | None:
    text = as_text(value)
    if text is None:
        return None
    return _NON_NUMERIC_RE.sub("", text) or None


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


def _parse_legs(raw: Any) -> list[LegPlan]:
    if not isinstance(raw, list):
        return []
    legs = []
    for item in raw:
        if not isinstance(item, dict):
            legs.append(LegPlan())
            continue
        legs.append(
            LegPlan(
                side=as_text(item.get("side")),
                option_type=as_text(_first(item, "optionType", "type")),
                quantity=as_text(_first(item, "quantity", "qty")),
                days_to_expiry=as_text(_first(item, "daysToExpiry", "dte")),
                greek=as_text(item.get("greek")),
            )
        )
    return legs


def _common_fields(data: dict[str, Any], plan: ApplyPlan, config: ApplyConfig) -> None:
    for name in _DERIVED_INPUT_FIELDS:
        text = as_text(data.get(name))
        if text is not None:
            plan.inputs[name] = text

    for name in config.toggle_labels:
        value = data.get(name)
        if isinstance(value, bool):
            plan.toggles[name] = value

    days = data.get("entryDays")
    if isinstance(days, list):
        plan.entry_days = [str(day) for day in days if isinstance(day, str) and day.strip()]

    mode = as_text(data.get("profitTargetMode"))
    if mode in {"%", "$"}:
        plan.profit_target_mode = mode


def _plan_from_result(data: dict[str, Any], config: ApplyConfig) -> ApplyPlan:
    plan = ApplyPlan(shape=PayloadShape.RESULT)

    date_range = data.get("dateRange")
    if isinstance(date_range, dict):
        plan.start_date = as_text(date_range.get("from"))
        plan.end_date = as_text(date_range.get("to"))

    header = data.get("header")
    if isinstance(header, dict):
        plan.ticker = as_text(header.get("title"))

    plan.legs = _parse_legs(data.get("legs"))
    _common_fields(data, plan, config)

    metrics = data.get("metrics")
    if isinstance(metrics, dict):
        for name, labels in _MISC_METRIC_LABELS.items():
            text = numeric_text(_first(metrics, *labels))
            if text is not None:
                plan.inputs[name] = text
    return plan


def _plan_from_input(data: dict[str, Any], config: ApplyConfig) -> ApplyPlan:
    plan = ApplyPlan(shape=PayloadShape.INPUT)

    dates = data.get("dates")
    if isinstance(dates, dict):
        plan.start_date = as_text(_first(dates, "from", "start"))
        plan.end_date = as_text(_first(dates, "to", "end"))

    plan.ticker = as_text(data.get("ticker"))
    plan.legs = _parse_legs(data.get("legs"))
    _common_fields(data, plan, config)

    for name in _MISC_METRIC_LABELS:
        text = numeric_text(data.get(name))
        if text is not None:
            plan.inputs[name] = text
    return plan


def plan_from_data(data: dict[str, Any], config: ApplyConfig | None = None) -> ApplyPlan:
    config = config or ApplyConfig()
    if detect_shape(data) is PayloadShape.INPUT:
        return _plan_from_input(data, config)
    return _plan_from_result(data, config)


def parse_payload(text: str | None, config: ApplyConfig | None = None) -> ApplyPlan:
    """Parse apply text into a plan.

    Raises:
        ApplyParseError: for empty text, invalid or too deeply nested JSON,
            or JSON that is not an object. The message is the status string
            shown to the user.
    """
    if text is None or not text.strip():
        raise ApplyParseError(NOTHING_TO_APPLY)
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise ApplyParseError(INVALID_JSON) from exc
    if not isinstance(data, dict):
        raise ApplyParseError(INVALID_JSON)
    return plan_from_data(data, config)
