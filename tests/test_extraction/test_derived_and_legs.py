"""Tests for derived-field recognizers and the legs table."""

import pytest

from pagelens.config.settings import ExtractionConfig
from pagelens.document.html import parse_html
from pagelens.extraction.derived import (
    RECOGNIZERS,
    Recognizer,
    infer_derived_fields,
    to_24h,
)
from pagelens.extraction.legs import coerce_number, extract_legs
from pagelens.extraction.record import OptionType, Side


class TestTimeConversion:
    @pytest.mark.parametrize(
        "hour,minute,meridiem,expected",
        [
            (9, 35, "a", "09:35"),
            (12, 5, "a", "00:05"),
            (12, 0, "p", "12:00"),
            (3, 15, "p", "15:15"),
            (15, 45, None, "15:45"),
        ],
    )
    def test_to_24h(self, hour, minute, meridiem, expected):
        assert to_24h(hour, minute, meridiem) == expected


class TestDerivedFields:
    def test_entry_and_exit_times(self):
        fields = infer_derived_fields([["Open trades at 9:35 AM", "Exit trades at 3:15 PM"]])
        assert fields["entry_time"] == "09:35"
        assert fields["exit_time"] == "15:15"

    def test_profit_target_with_mode(self):
        fields = infer_derived_fields([["Profit Target: 50"]])
        assert fields == {"profit_target": 50, "profit_target_mode": "%"}

    def test_flags(self):
        fields = infer_derived_fields([["Use Exact DTE", "VIX: Max 30", "Cap Profits"]])
        assert fields["use_exact_dte"] is True
        assert fields["vix_max"] == 30
        assert fields["use_vix"] is True
        assert fields["cap_profits"] is True

    def test_entry_days_in_canonical_order(self):
        fields = infer_derived_fields([["Enter every Friday and Monday"]])
        assert fields["entry_days"] == ["Monday", "Friday"]

    def test_every_without_weekday_yields_nothing(self):
        assert "entry_days" not in infer_derived_fields([["every day"]])

    def test_list_scoped_fields(self):
        fields = infer_derived_fields([["Open up to 2", "contracts per day", "Allocate 10% per trade"]])
        assert "max_contracts" not in fields
        fields = infer_derived_fields([["Open up to 2 contracts", "Allocate 10% per trade"]])
        assert fields["max_contracts"] == 2
        assert fields["allocation_pct"] == 10

    def test_first_list_wins(self):
        fields = infer_derived_fields(
            [["Open trades at 9:35 AM"], ["Open trades at 10:00 AM", "Profit Target: 25"]]
        )
        assert fields["entry_time"] == "09:35"
        assert fields["profit_target"] == 25

    def test_unrecognised_text_yields_no_fields(self):
        assert infer_derived_fields([["nothing to see"]]) == {}

    def test_custom_recognizer_set(self):
        only_caps = [rec for rec in RECOGNIZERS if rec.name == "cap_profits"]
        assert infer_derived_fields([["Cap Profits", "VIX: max 20"]], only_caps) == {
            "cap_profits": True
        }

    def test_recognizer_is_pure_function(self):
        rec = Recognizer(name="x", scope="item", fields=("x",), parse=lambda text: {"x": text})
        assert infer_derived_fields([["a", "b"]], [rec]) == {"x": "a"}


LEGS_HTML = """
<dl>
  <dt>Legs</dt>
  <dd>
    <table>
      <thead><tr><th>Side</th><th>Type</th><th>Strike</th><th>Qty / Delta / DTE</th></tr></thead>
      <tbody>
        <tr>
          <td><button class="bg-ooRed">S</button><button class="bg-gray-700">B</button></td>
          <td><button class="bg-ooGreen">C</button><button class="bg-gray-700">P</button></td>
          <td><button class="selectInput"><span class="block truncate">Delta</span></button></td>
          <td><input value="1"><input value="10"><input value="45"></td>
        </tr>
        <tr>
          <td><button class="bg-gray-700">S</button><button class="bg-ooGreen">B</button></td>
          <td><button class="bg-gray-700">C</button><button class="bg-ooRed">P</button></td>
          <td><button class="selectInput selectInput--nested">-5 pts</button></td>
          <td><input value="2"><input value="5"><input value="abc"></td>
        </tr>
        <tr>
          <td><button class="bg-gray-700">S</button><button class="bg-gray-700">B</button></td>
          <td><button class="bg-ooGreen">C</button><button>P</button></td>
          <td></td>
          <td><input value="3"></td>
        </tr>
        <tr style="display:none">
          <td><button class="bg-ooRed">S</button></td>
          <td><button class="bg-ooRed">C</button></td>
        </tr>
      </tbody>
    </table>
  </dd>
</dl>
"""


class TestLegs:
    def test_coerce_number(self):
        assert coerce_number("45") == 45
        assert coerce_number("1.5") == 1.5
        assert coerce_number("45d") == "45d"

    def test_extracts_valid_rows_only(self):
        legs = extract_legs(parse_html(LEGS_HTML))
        assert len(legs) == 2
        assert all(leg.side in (Side.BUY, Side.SELL) for leg in legs)
        assert all(leg.option_type in (OptionType.CALL, OptionType.PUT) for leg in legs)

    def test_first_row(self):
        leg = extract_legs(parse_html(LEGS_HTML))[0]
        assert leg.side is Side.SELL
        assert leg.option_type is OptionType.CALL
        assert leg.quantity == 1
        assert leg.days_to_expiry == 45
        assert leg.variant_label == "Delta"
        assert leg.display_text == "Sell Call qty 1 dte 45"

    def test_nested_selector_and_raw_dte(self):
        leg = extract_legs(parse_html(LEGS_HTML))[1]
        assert leg.side is Side.BUY
        assert leg.option_type is OptionType.PUT
        assert leg.variant_label == "-5 pts"
        assert leg.days_to_expiry == "abc"

    def test_live_value_beats_default(self):
        doc = parse_html(LEGS_HTML)
        first_input = doc.root.find("tbody").find("input")
        first_input.value = "4"
        assert extract_legs(doc)[0].quantity == 4

    def test_no_legs_term(self):
        assert extract_legs(parse_html("<dl><dt>Other</dt><dd>1</dd></dl>")) == []

    def test_active_markers_configurable(self):
        config = ExtractionConfig(active_class_markers=["is-active"])
        assert extract_legs(parse_html(LEGS_HTML), config) == []

    def test_serialised_leg_uses_camel_case(self):
        payload = extract_legs(parse_html(LEGS_HTML))[0].model_dump(by_alias=True, mode="json")
        assert payload["optionType"] == "Call"
        assert payload["daysToExpiry"] == 45
        assert payload["displayText"] == "Sell Call qty 1 dte 45"
