"""Pagelens configuration settings."""

from __future__ import annotations

import os
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


def _int_env(var_name: str, default: int) -> int:
    raw = os.getenv(var_name, "").strip()
    return int(raw) if raw else default


class ExtractionConfig(BaseModel):
    """Heuristic thresholds and textual markers used by the extractors.

    The numeric limits were tuned against observed layouts, so they are
    kept here rather than inlined in the extractors.
    """

    label_max_chars: int = Field(default=32, ge=1)
    heading_value_max_chars: int = Field(default=64, ge=1)
    heading_value_max_words: int = Field(default=6, ge=1)
    key_max_words: int = Field(default=4, ge=1)
    value_max_words: int = Field(default=8, ge=1)
    combined_metric_labels: list[str] = Field(
        default_factory=lambda: [
            "Total Premium",
            "Starting Capital",
            "Ending Capital",
            "Trades",
            "Winners",
        ]
    )
    active_class_markers: list[str] = Field(default_factory=lambda: ["ooRed", "ooGreen"])
    legs_label: str = "Legs"
    date_labels: list[str] = Field(default_factory=lambda: ["Dates:", "Dates"])

    @field_validator("active_class_markers")
    @classmethod
    def _validate_markers(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("active_class_markers cannot be empty")
        return value


# Record field -> label text of the toggle that controls it.
DEFAULT_TOGGLE_LABELS: dict[str, str] = {
    "useExactDte": "Use Exact DTE",
    "useVix": "Use VIX",
    "capProfits": "Cap Profits",
    "capLosses": "Cap Losses",
    "useFloatingEntryTime": "Floating Entry Time",
    "useVix9d": "Use VIX9D",
    "useOvernightGap": "Overnight Gap",
    "useEntryGap": "Entry Gap",
    "useIntradayMovement": "Intraday Movement",
    "useOpeningRangeBreakout": "Opening Range Breakout",
    "useSma": "Use SMA",
    "useEma": "Use EMA",
    "useRsi": "Use RSI",
    "useBlackoutDays": "Blackout Days",
    "useMinEntryPremium": "Min Entry Premium",
    "useMaxEntryPremium": "Max Entry Premium",
    "useShortLongRatio": "Short/Long Ratio",
    "ignoreMarginRequirements": "Ignore Margin Requirements",
    "useEarlyExit": "Early Exit",
    "useProfitActions": "Profit Actions",
    "useTrailingStop": "Trailing Stop",
    "reEnterAfterStopLoss": "Re-Enter After Stop Loss",
}

# Plan field -> label text of the numeric input it fills.
DEFAULT_INPUT_LABELS: dict[str, str] = {
    "entryTime": "Entry Time",
    "exitTime": "Exit Time",
    "profitTarget": "Profit Target",
    "vixMax": "Max VIX",
    "maxContracts": "Max Contracts",
    "allocationPct": "Allocation",
    "startingFunds": "Starting Funds",
    "entrySlippage": "Entry Slippage",
    "exitSlippage": "Exit Slippage",
    "openingFees": "Opening",
    "closingFees": "Closing",
}


class ApplyConfig(BaseModel):
    """Locator vocabulary for writing a record back into a form."""

    leg_group_classes: list[str] = Field(
        default_factory=lambda: ["flex", "flex-wrap", "gap-2", "items-center", "text-white"]
    )
    ticker_label: str = "ticker"
    start_date_label: str = "Start Date"
    end_date_label: str = "End Date"
    toggle_labels: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TOGGLE_LABELS))
    input_labels: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_INPUT_LABELS))
    active_class_markers: list[str] = Field(default_factory=lambda: ["ooRed", "ooGreen"])

    @field_validator("leg_group_classes")
    @classmethod
    def _validate_leg_group(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("leg_group_classes cannot be empty")
        return value


class RefreshConfig(BaseModel):
    """Debounce and status timing for the overlay session."""

    debounce_ms: int = Field(default_factory=lambda: _int_env("PAGELENS_DEBOUNCE_MS", 200))
    status_ttl_ms: int = Field(default_factory=lambda: _int_env("PAGELENS_STATUS_TTL_MS", 1500))

    @field_validator("debounce_ms", "status_ttl_ms")
    @classmethod
    def _validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("timing values must be >= 0")
        return value


class BrowserConfig(BaseModel):
    """Browser layer configuration."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str | None = None
    locale: str = "en-US"


class APIConfig(BaseModel):
    """API security controls from environment."""

    allowed_origins: list[str] = Field(
        default_factory=lambda: APIConfig.parse_allowed_origins(
            os.getenv("PAGELENS_ALLOWED_ORIGINS", "")
        )
    )

    @staticmethod
    def parse_allowed_origins(value: str) -> list[str]:
        if not value.strip():
            return ["http://localhost", "http://127.0.0.1"]
        origins = [origin.strip() for origin in value.split(",") if origin.strip()]
        if "*" in origins:
            raise ValueError("PAGELENS_ALLOWED_ORIGINS cannot include '*'")
        return origins

    @field_validator("allowed_origins")
    @classmethod
    def _validate_allowed_origins(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("allowed_origins cannot be empty")
        for origin in value:
            parsed = urlparse(origin)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(f"Invalid CORS origin: {origin}")
        return value


class PagelensConfig(BaseModel):
    """Root configuration."""

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    log_level: str = Field(default_factory=lambda: os.getenv("PAGELENS_LOG_LEVEL", "INFO"))
