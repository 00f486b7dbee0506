"""Derived scalar/boolean inference from list text.

Each recognizer is a pure ``(text) -> dict | None`` function registered
with the `recognizer` decorator. Item-scoped recognizers see one list item
at a time; list-scoped recognizers see the whole list joined with "; ".
Unrecognised text yields no field at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Literal

WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

Scope = Literal["item", "list"]
ParseFn = Callable[[str], dict[str, Any] | None]


@dataclass(frozen=True)
class Recognizer:
    name: str
    scope: Scope
    fields: tuple[str, ...]
    parse: ParseFn


RECOGNIZERS: list[Recognizer] = []


def recognizer(name: str, *, fields: tuple[str, ...], scope: Scope = "item"):
    """Register a parse function as a derived-field recognizer."""

    def decorator(func: ParseFn) -> ParseFn:
        RECOGNIZERS.append(Recognizer(name=name, scope=scope, fields=fields, parse=func))
        return func

    return decorator


_TIME = r"(\d{1,2}):(\d{2})(?:\s*([ap])\.?\s*m\.?)?"
_OPEN_AT_RE = re.compile(r"open trades at\s*" + _TIME, re.IGNORECASE)
_EXIT_AT_RE = re.compile(r"exit trades at\s*" + _TIME, re.IGNORECASE)
_PROFIT_TARGET_RE = re.compile(r"profit target:\s*([-+]?\d+(?:\.\d+)?)", re.IGNORECASE)
_VIX_MAX_RE = re.compile(r"vix:\s*max\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_EVERY_RE = re.compile(r"\bevery\b(.*)", re.IGNORECASE)
_MAX_CONTRACTS_RE = re.compile(r"up to\s+(\d+)\s+contracts?\b", re.IGNORECASE)
_ALLOCATE_RE = re.compile(r"allocate\s+(\d+(?:\.\d+)?)\s*%", re.IGNORECASE)


def to_24h(hour: int, minute: int, meridiem: str | None) -> str:
    """12 AM -> 00, 12 PM stays 12, other PM hours add 12."""
    if meridiem:
        meridiem = meridiem.lower()
        if meridiem == "a" and hour == 12:
            hour = 0
        elif meridiem == "p" and hour != 12:
            hour += 12
    return f"{hour:02d}:{minute:02d}"


def to_number(raw: str) -> int | float:
    value = float(raw)
    return int(value) if value.is_integer() and "." not in raw else value


def _time_from(match: re.Match[str]) -> str:
    return to_24h(int(match.group(1)), int(match.group(2)), match.group(3))


@recognizer("entry_time", fields=("entry_time",))
def _entry_time(text: str) -> dict[str, Any] | None:
    match = _OPEN_AT_RE.search(text)
    return {"entry_time": _time_from(match)} if match else None


@recognizer("exit_time", fields=("exit_time",))
def _exit_time(text: str) -> dict[str, Any] | None:
    match = _EXIT_AT_RE.search(text)
    return {"exit_time": _time_from(match)} if match else None


@recognizer("profit_target", fields=("profit_target", "profit_target_mode"))
def _profit_target(text: str) -> dict[str, Any] | None:
    match = _PROFIT_TARGET_RE.search(text)
    if not match:
        return None
    return {"profit_target": to_number(match.group(1)), "profit_target_mode": "%"}


@recognizer("use_exact_dte", fields=("use_exact_dte",))
def _use_exact_dte(text: str) -> dict[str, Any] | None:
    return {"use_exact_dte": True} if "use exact dte" in text.lower() else None


@recognizer("vix_max", fields=("vix_max", "use_vix"))
def _vix_max(text: str) -> dict[str, Any] | None:
    match = _VIX_MAX_RE.search(text)
    return {"vix_max": to_number(match.group(1)), "use_vix": True} if match else None


@recognizer("cap_profits", fields=("cap_profits",))
def _cap_profits(text: str) -> dict[str, Any] | None:
    return {"cap_profits": True} if "cap profits" in text.lower() else None


@recognizer("entry_days", fields=("entry_days",))
def _entry_days(text: str) -> dict[str, Any] | None:
    match = _EVERY_RE.search(text)
    if not match:
        return None
    rest = match.group(1)
    days = [day for day in WEEKDAYS if re.search(rf"\b{day}s?\b", rest, re.IGNORECASE)]
    return {"entry_days": days} if days else None


@recognizer("max_contracts", fields=("max_contracts",), scope="list")
def _max_contracts(text: str) -> dict[str, Any] | None:
    match = _MAX_CONTRACTS_RE.search(text)
    return {"max_contracts": int(match.group(1))} if match else None


@recognizer("allocation_pct", fields=("allocation_pct",), scope="list")
def _allocation_pct(text: str) -> dict[str, Any] | None:
    match = _ALLOCATE_RE.search(text)
    return {"allocation_pct": int(float(match.group(1)))} if match else None


def infer_derived_fields(
    lists: Iterable[list[str]],
    recognizers: Iterable[Recognizer] | None = None,
) -> dict[str, Any]:
    """Run every recognizer over the lists; the first list to yield a field wins."""
    active = list(RECOGNIZERS if recognizers is None else recognizers)
    found: dict[str, Any] = {}
    for items in lists:
        joined = "; ".join(items)
        for rec in active:
            if all(name in found for name in rec.fields):
                continue
            texts = items if rec.scope == "item" else [joined]
            for text in texts:
                result = rec.parse(text)
                if result:
                    for name, value in result.items():
                        found.setdefault(name, value)
                    break
    return found
