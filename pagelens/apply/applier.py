"""Form Applier: write a structured record back into a document's controls.

Contract:
- Unparseable input, or input with no applicable field, aborts before
  any write (status ParseError).
- A field whose control cannot be located is skipped; the rest still apply.
- Toggles are only clicked when their state differs from the desired one,
  so applying the same record twice clicks nothing the second time.
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, Field

from pagelens.apply.controls import (
    click_button_by_text,
    find_button_by_text,
    find_label,
    find_labeled_input,
    find_leg_groups,
    find_ticker_control,
    find_toggle,
    label_container,
    leg_inputs,
    set_input_value,
    set_select_text,
    set_toggle,
    weekday_button,
)
from pagelens.apply.payload import NOTHING_TO_APPLY, ApplyPlan, LegPlan, parse_payload
from pagelens.config.settings import ApplyConfig
from pagelens.document.nodes import Document, Element
from pagelens.extraction.derived import WEEKDAYS
from pagelens.telemetry.errors import ApplyParseError, ErrorCode, emit_structured_error

logger = logging.getLogger(__name__)


class ApplyStatus(str, Enum):
    APPLIED = "Applied"
    APPLIED_PARTIAL = "AppliedPartial"
    PARSE_ERROR = "ParseError"


class ApplyResult(BaseModel):
    """Outcome of one apply call, with the field names written and skipped."""

    status: ApplyStatus
    applied: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not ApplyStatus.PARSE_ERROR


class _Outcome:
    def __init__(self) -> None:
        self.applied: list[str] = []
        self.skipped: list[str] = []

    def mark(self, field: str, found: bool) -> None:
        (self.applied if found else self.skipped).append(field)


class FormApplier:
    """Maps an ApplyPlan onto the controls of one document."""

    def __init__(self, config: ApplyConfig | None = None, *, session_id: str | None = None) -> None:
        self._config = config or ApplyConfig()
        self._session_id = session_id

    @property
    def config(self) -> ApplyConfig:
        return self._config

    def apply(self, document: Document, text: str | None) -> ApplyResult:
        try:
            plan = parse_payload(text, self._config)
            if plan.is_empty:
                raise ApplyParseError(NOTHING_TO_APPLY)
        except ApplyParseError as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.APPLY_PARSE_FAILED,
                message=str(exc),
                suppressed=True,
                session_id=self._session_id,
                operation="apply",
            )
            return ApplyResult(status=ApplyStatus.PARSE_ERROR, message=str(exc))
        return self.apply_plan(document, plan)

    def apply_plan(self, document: Document, plan: ApplyPlan) -> ApplyResult:
        outcome = _Outcome()
        self._apply_dates(document, plan, outcome)
        self._apply_ticker(document, plan, outcome)
        self._apply_legs(document, plan.legs, outcome)
        self._apply_inputs(document, plan, outcome)
        self._apply_toggles(document, plan, outcome)
        self._apply_entry_days(document, plan, outcome)
        self._apply_profit_target_mode(document, plan, outcome)

        if outcome.skipped:
            emit_structured_error(
                logger,
                code=ErrorCode.APPLY_TARGET_NOT_FOUND,
                message="Some fields had no matching control",
                suppressed=True,
                session_id=self._session_id,
                operation="apply",
                details={"skipped": outcome.skipped},
            )
            status, message = ApplyStatus.APPLIED_PARTIAL, "Applied (partial)"
        else:
            status, message = ApplyStatus.APPLIED, "Applied"

        logger.info(
            "Apply finished",
            extra={
                "session_id": self._session_id,
                "shape": plan.shape.value,
                "applied": len(outcome.applied),
                "skipped": len(outcome.skipped),
            },
        )
        return ApplyResult(
            status=status, applied=outcome.applied, skipped=outcome.skipped, message=message
        )

    # --- Field groups ---

    def _write_labeled(self, document: Document, label: str, value: str) -> bool:
        control = find_labeled_input(document, label)
        if control is None:
            return False
        set_input_value(control, value)
        return True

    def _apply_dates(self, document: Document, plan: ApplyPlan, outcome: _Outcome) -> None:
        if plan.start_date:
            found = self._write_labeled(document, self._config.start_date_label, plan.start_date)
            outcome.mark("startDate", found)
        if plan.end_date:
            found = self._write_labeled(document, self._config.end_date_label, plan.end_date)
            outcome.mark("endDate", found)

    def _apply_ticker(self, document: Document, plan: ApplyPlan, outcome: _Outcome) -> None:
        if not plan.ticker:
            return
        control = find_ticker_control(document, self._config.ticker_label)
        outcome.mark("ticker", control is not None and set_select_text(control, plan.ticker))

    def _apply_legs(self, document: Document, legs: list[LegPlan], outcome: _Outcome) -> None:
        if not legs:
            return
        groups = find_leg_groups(document, self._config.leg_group_classes)
        markers = self._config.active_class_markers
        for index, leg in enumerate(legs):
            prefix = f"legs[{index}]"
            if index >= len(groups):
                outcome.mark(prefix, False)
                continue
            group = groups[index]

            for name, text in (("side", leg.side), ("optionType", leg.option_type)):
                if text:
                    button = click_button_by_text(group, text, text[:1], active_markers=markers)
                    outcome.mark(f"{prefix}.{name}", button is not None)

            qty_input, dte_input, greek_input = leg_inputs(group)
            for name, value, control in (
                ("quantity", leg.quantity, qty_input),
                ("greek", leg.greek, greek_input),
                ("daysToExpiry", leg.days_to_expiry, dte_input),
            ):
                if not value:
                    continue
                if control is not None:
                    set_input_value(control, value)
                outcome.mark(f"{prefix}.{name}", control is not None)

    def _apply_inputs(self, document: Document, plan: ApplyPlan, outcome: _Outcome) -> None:
        for name, value in plan.inputs.items():
            label = self._config.input_labels.get(name)
            outcome.mark(name, label is not None and self._write_labeled(document, label, value))

    def _apply_toggles(self, document: Document, plan: ApplyPlan, outcome: _Outcome) -> None:
        markers = self._config.active_class_markers
        for name, desired in plan.toggles.items():
            label = self._config.toggle_labels.get(name)
            control = find_toggle(document, label) if label else None
            if control is not None:
                set_toggle(control, desired, markers)
            outcome.mark(name, control is not None)

    def _apply_entry_days(self, document: Document, plan: ApplyPlan, outcome: _Outcome) -> None:
        if plan.entry_days is None:
            return
        wanted = {day.lower() for day in plan.entry_days}
        markers = self._config.active_class_markers
        found_any = False
        for day in WEEKDAYS:
            button = weekday_button(document.root, day)
            if button is None:
                continue
            found_any = True
            desired = day.lower() in wanted or day[:3].lower() in wanted
            set_toggle(button, desired, markers)
        outcome.mark("entryDays", found_any)

    def _apply_profit_target_mode(
        self, document: Document, plan: ApplyPlan, outcome: _Outcome
    ) -> None:
        if not plan.profit_target_mode:
            return
        scope = self._profit_target_scope(document)
        button = find_button_by_text(scope, plan.profit_target_mode)
        if button is not None:
            set_toggle(button, True, self._config.active_class_markers)
        outcome.mark("profitTargetMode", button is not None)

    def _profit_target_scope(self, document: Document) -> Element:
        label_text = self._config.input_labels.get("profitTarget", "Profit Target")
        label = find_label(document, label_text)
        container = label_container(label) if label is not None else None
        return container or document.root


def apply_payload(
    document: Document, text: str | None, config: ApplyConfig | None = None
) -> ApplyResult:
    """Parse ``text`` and apply it to ``document`` in one call."""
    return FormApplier(config).apply(document, text)
