"""Tests for the primitive extractors."""

import pytest

from pagelens.config.settings import ExtractionConfig
from pagelens.document.html import parse_html
from pagelens.extraction.dates import extract_date_range, normalize_date, parse_date_range
from pagelens.extraction.header import extract_header
from pagelens.extraction.lists import extract_lists
from pagelens.extraction.pairs import (
    extract_definition_pairs,
    extract_heading_pairs,
    extract_labeled_values,
)
from pagelens.extraction.text import is_value_like, normalize, word_count
from pagelens.extraction.visibility import is_perceivable


class TestTextNormalizer:
    def test_collapses_whitespace(self):
        assert normalize("  a \n\t b  ") == "a b"

    def test_total_on_empty(self):
        assert normalize("") == ""
        assert normalize(None) == ""

    @pytest.mark.parametrize("text", ["42", "$ more", "10%", "+x", "-", "±3"])
    def test_value_like(self, text):
        assert is_value_like(text)

    def test_not_value_like(self):
        assert not is_value_like("Sell Call")

    def test_word_count(self):
        assert word_count("") == 0
        assert word_count("one two three") == 3


class TestVisibility:
    def test_text_node_is_not_perceivable(self):
        doc = parse_html("<p>hello</p>")
        text_node = doc.root.find("p").children[0]
        assert not is_perceivable(text_node)

    def test_visible_and_hidden(self):
        doc = parse_html(
            '<p id="v">shown</p><p id="h" style="visibility: hidden">no</p>'
            '<p id="z" style="width: 0">zero</p>'
        )
        assert is_perceivable(doc.get_element_by_id("v"))
        assert not is_perceivable(doc.get_element_by_id("h"))
        assert not is_perceivable(doc.get_element_by_id("z"))


class TestDefinitionPairs:
    def test_pairs_and_first_wins(self):
        doc = parse_html(
            "<dl><dt>CAGR</dt><dd>12.5%</dd><dt>Note</dt><dd>free text</dd>"
            "<dt>CAGR</dt><dd>99%</dd></dl>"
        )
        assert extract_definition_pairs(doc) == {"CAGR": "12.5%", "Note": "free text"}

    def test_hidden_or_empty_pairs_skipped(self):
        doc = parse_html(
            '<dl><dt style="display:none">Hidden</dt><dd>1</dd>'
            "<dt>Empty</dt><dd></dd></dl>"
        )
        assert extract_definition_pairs(doc) == {}


class TestLabeledValues:
    def test_two_child_tile(self):
        doc = parse_html('<div><span>Win Rate</span><span>64%</span></div>')
        assert extract_labeled_values(doc) == {"Win Rate": "64%"}

    def test_value_must_be_value_like(self):
        doc = parse_html("<div><span>Icon</span><span>Settings</span></div>")
        assert extract_labeled_values(doc) == {}

    def test_long_label_rejected(self):
        label = "A label that is far longer than thirty-two characters"
        doc = parse_html(f"<div><span>{label}</span><span>5</span></div>")
        assert label not in extract_labeled_values(doc)

    def test_three_children_rejected(self):
        doc = parse_html("<div><span>A</span><span>1</span><span>2</span></div>")
        assert "A" not in extract_labeled_values(doc)

    def test_hidden_child_does_not_count(self):
        doc = parse_html(
            '<div><span>MAR</span><span style="display:none">x</span><span>0.9</span></div>'
        )
        assert extract_labeled_values(doc) == {"MAR": "0.9"}

    def test_threshold_is_configurable(self):
        doc = parse_html("<div><span>Max Drawdown</span><span>-8%</span></div>")
        config = ExtractionConfig(label_max_chars=5)
        assert extract_labeled_values(doc, config) == {}


class TestHeadingPairs:
    def test_short_value_accepted(self):
        doc = parse_html("<h3>Strategy</h3><p>Iron Condor</p>")
        assert extract_heading_pairs(doc) == {"Strategy": "Iron Condor"}

    def test_long_wordy_value_rejected(self):
        doc = parse_html("<h3>About</h3><p>this is a long sentence with many words in it</p>")
        assert extract_heading_pairs(doc) == {}

    def test_long_value_like_accepted(self):
        doc = parse_html("<h2>P/L</h2><p>total of 1,234 over seven different weeks of trading</p>")
        assert extract_heading_pairs(doc)["P/L"].startswith("total of 1,234")

    def test_over_64_chars_rejected(self):
        doc = parse_html(f"<h2>Big</h2><p>{'9' * 65}</p>")
        assert extract_heading_pairs(doc) == {}


class TestLists:
    def test_direct_items_only(self):
        doc = parse_html(
            "<ul><li>one</li><li>two<ul><li>nested</li></ul></li><li></li></ul>"
        )
        lists = extract_lists(doc)
        assert lists[0] == ["one", "twonested"]
        assert lists[1] == ["nested"]

    def test_hidden_list_skipped(self):
        doc = parse_html('<ol style="display:none"><li>x</li></ol><ol><li>y</li></ol>')
        assert extract_lists(doc) == [["y"]]


class TestDates:
    def test_iso_range(self):
        result = parse_date_range("from: 2024-01-05 to: 2024-02-10")
        assert result.from_ == "2024-01-05"
        assert result.to == "2024-02-10"
        assert result.raw_text == "from: 2024-01-05 to: 2024-02-10"

    def test_textual_range(self):
        result = parse_date_range("From: Jan 5, 2024 To: February 10th, 2024")
        assert (result.from_, result.to) == ("2024-01-05", "2024-02-10")

    def test_unparseable_side_kept(self):
        result = parse_date_range("from: 2024-01-05 to: next week")
        assert result.from_ == "2024-01-05"
        assert result.to == "next week"

    def test_no_pattern_returns_raw(self):
        result = parse_date_range("  all   time ")
        assert result.from_ is None
        assert result.to is None
        assert result.raw_text == "all time"

    def test_normalize_date_formats(self):
        assert normalize_date("01/05/2024") == "2024-01-05"
        assert normalize_date("5 January 2024") == "2024-01-05"
        assert normalize_date("soon") is None

    def test_label_lookup_order(self):
        pairs = {"Dates": "from: 2024-03-01 to: 2024-03-02", "Dates:": "from: 2023-01-01 to: 2023-01-02"}
        assert extract_date_range(pairs).from_ == "2023-01-01"
        assert extract_date_range({}) is None


class TestHeader:
    def test_header_block(self):
        doc = parse_html(
            '<div><div id="message-heading"><span>SPX 0DTE Condor</span>'
            '<span class="bg-ooGold">Public</span>'
            '<span class="rounded-full text-xs">Tested</span></div>'
            "<p>https://example.com/test/abc</p></div>"
        )
        header = extract_header(doc)
        assert header.title == "SPX 0DTE Condor"
        assert header.tags == ["Public", "Tested"]
        assert header.link == "https://example.com/test/abc"

    def test_missing_heading(self):
        header = extract_header(parse_html("<p>nothing</p>"))
        assert header.title == "" and header.tags == [] and header.link == ""
