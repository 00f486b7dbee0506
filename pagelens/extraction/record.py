"""Structured record models: the output of one extraction pass."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _RecordModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Side(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class OptionType(str, Enum):
    CALL = "Call"
    PUT = "Put"


class Header(_RecordModel):
    """Page heading block: title, tag chips and the line below it."""

    title: str = ""
    tags: list[str] = Field(default_factory=list)
    link: str = ""


class DateRange(_RecordModel):
    """Backtest date range.

    `from_`/`to` hold ISO dates when parseable, the trimmed original text
    otherwise, and stay unset when the raw text did not match at all.
    """

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    raw_text: str


class LegEntry(_RecordModel):
    """One row of the legs table. Side and option type are always resolved."""

    side: Side
    option_type: OptionType
    quantity: int | float | str | None = None
    days_to_expiry: int | float | str | None = None
    variant_label: str | None = None
    display_text: str


class StructuredRecord(_RecordModel):
    """Snapshot of what a page currently shows.

    Built fresh on every extraction pass and never mutated afterwards.
    Absent derived fields mean "not recognised", which is why
    serialisation drops None values instead of emitting nulls.
    """

    url: str = ""
    title: str = ""
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    header: Header = Field(default_factory=Header)
    metrics: dict[str, str] = Field(default_factory=dict)
    date_range: DateRange | None = None
    labeled_values: dict[str, str] = Field(default_factory=dict)
    lists: list[list[str]] = Field(default_factory=list)
    legs: list[LegEntry] = Field(default_factory=list)

    entry_time: str | None = None
    exit_time: str | None = None
    profit_target: int | float | None = None
    profit_target_mode: str | None = None
    use_exact_dte: bool | None = None
    vix_max: int | float | None = None
    use_vix: bool | None = None
    cap_profits: bool | None = None
    entry_days: list[str] | None = None
    max_contracts: int | None = None
    allocation_pct: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_payload(), indent=indent, ensure_ascii=False)
