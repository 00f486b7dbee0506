"""Tests for the in-memory document tree and its builders."""

from pagelens.document.html import parse_html, parse_inline_style
from pagelens.document.nodes import ControlMutation, Document, Element, MutationKind, Rect, TextNode
from pagelens.document.snapshot import document_from_snapshot


class TestElement:
    def test_text_content_concatenates_descendants(self):
        el = Element("div", children=[TextNode("a "), Element("span", children=[TextNode("b")])])
        assert el.text_content == "a b"

    def test_sibling_navigation_skips_text(self):
        first = Element("dt")
        second = Element("dd")
        Element("dl", children=[first, TextNode("\n"), second])
        assert first.next_element_sibling is second
        assert second.previous_element_sibling is first
        assert second.next_element_sibling is None

    def test_closest_is_inclusive(self):
        inner = Element("div")
        outer = Element("section", children=[inner])
        assert inner.closest("div") is inner
        assert inner.closest("section") is outer
        assert inner.closest("table") is None

    def test_find_all_preorder_with_classes(self):
        doc = parse_html(
            '<div class="a b" id="x"><p class="a b">1</p></div><div class="a">2</div>'
        )
        found = doc.root.find_all(classes=("a", "b"))
        assert [el.tag for el in found] == ["div", "p"]

    def test_effective_value_falls_back_to_attribute(self):
        el = Element("input", {"value": "7"})
        assert el.effective_value() == "7"
        el.value = "9"
        assert el.effective_value() == "9"


class TestMutations:
    def test_writes_are_recorded(self):
        doc = parse_html('<div><input id="q"><span class="label">x</span></div>')
        control = doc.get_element_by_id("q")
        control.set_value("5")
        control.dispatch_event("change")

        kinds = [m.kind for m in doc.mutations]
        assert kinds == [MutationKind.VALUE, MutationKind.EVENT]
        assert doc.mutations[0] == ControlMutation(control.node_id, MutationKind.VALUE, "5")

    def test_checkbox_click_flips_state_and_notifies(self):
        doc = parse_html('<label>On <input type="checkbox" id="c"></label>')
        box = doc.get_element_by_id("c")
        events = []
        doc.root.add_event_listener("change", lambda target, event: events.append(target))

        box.click()

        assert box.checked is True
        assert events == [box]
        box.click()
        assert box.checked is False

    def test_set_text_replaces_children(self):
        doc = parse_html('<span id="s">old <b>bold</b></span>')
        span = doc.get_element_by_id("s")
        span.set_text("new")
        assert span.text_content == "new"
        assert doc.mutations[-1].kind is MutationKind.TEXT

    def test_clear_mutations(self):
        doc = parse_html('<input id="q">')
        doc.get_element_by_id("q").set_value("1")
        doc.clear_mutations()
        assert doc.mutations == []

    def test_node_ids_are_unique(self):
        doc = parse_html("<div><p>a</p><p>b</p><ul><li>c</li></ul></div>")
        ids = [el.node_id for el in doc.iter_elements()]
        assert len(ids) == len(set(ids))
        assert all(doc.get_node(node_id) is not None for node_id in ids)


class TestParseHtml:
    def test_inline_style_parsing(self):
        assert parse_inline_style("display: None !important; width:10px") == {
            "display": "none",
            "width": "10px",
        }

    def test_display_none_collapses_subtree(self):
        doc = parse_html('<div style="display:none"><p id="p">hidden</p></div>')
        assert doc.get_element_by_id("p").rect == Rect()

    def test_visibility_inherits(self):
        doc = parse_html('<div style="visibility:hidden"><p id="p">x</p></div>')
        assert doc.get_element_by_id("p").style.visibility == "hidden"

    def test_empty_element_has_zero_box(self):
        doc = parse_html('<div><span id="e"></span><span id="t">text</span></div>')
        assert doc.get_element_by_id("e").rect == Rect()
        assert doc.get_element_by_id("t").rect.width > 0

    def test_hidden_attribute_and_hidden_input(self):
        doc = parse_html('<p id="a" hidden>x</p><input id="b" type="hidden" value="1">')
        assert doc.get_element_by_id("a").style.display == "none"
        assert doc.get_element_by_id("b").style.display == "none"

    def test_title_and_url(self):
        doc = parse_html(
            "<html><head><title> My\n Page </title></head><body>x</body></html>",
            url="https://example.com/a",
        )
        assert doc.title == "My Page"
        assert doc.url == "https://example.com/a"
        assert doc.body.tag == "body"

    def test_fragment_gets_synthetic_body(self):
        doc = parse_html("<p>one</p><p>two</p>")
        assert doc.root.tag == "body"
        assert len(doc.root.find_all("p")) == 2


class TestSnapshot:
    def test_builds_tree_with_ids_and_state(self):
        snapshot = {
            "url": "https://example.com",
            "title": "  Live\npage ",
            "root": {
                "id": "0",
                "tag": "html",
                "rect": [800, 600],
                "children": [
                    {
                        "id": "1",
                        "tag": "input",
                        "attrs": {"type": "checkbox"},
                        "rect": [10, 10],
                        "checked": True,
                        "children": [],
                    },
                    {
                        "id": "2",
                        "tag": "p",
                        "rect": [0, 0],
                        "display": "none",
                        "children": [{"text": "gone"}],
                    },
                ],
            },
        }
        doc = document_from_snapshot(snapshot)

        assert isinstance(doc, Document)
        assert doc.title == "Live page"
        assert doc.get_node("1").checked is True
        assert doc.get_node("2").style.display == "none"
        assert doc.get_node("2").text_content == "gone"

    def test_missing_root_yields_empty_document(self):
        doc = document_from_snapshot({})
        assert doc.root.tag == "html"
        assert list(doc.root.iter_descendants()) == []


class TestDeepNesting:
    DEPTH = 3000

    def test_parse_html_and_text_content(self):
        html = "<div>" * self.DEPTH + "<span>deep</span>" + "</div>" * self.DEPTH
        doc = parse_html(html)

        span = doc.root.find("span")
        assert span is not None
        assert span.rect.width > 0
        assert doc.root.text_content == "deep"

    def test_snapshot(self):
        node = {"id": "leaf", "tag": "span", "rect": [10, 10], "children": [{"text": "deep"}]}
        for depth in range(self.DEPTH):
            node = {"id": str(depth), "tag": "div", "rect": [10, 10], "children": [node]}
        doc = document_from_snapshot({"root": node})

        assert doc.get_node("leaf").text_content == "deep"
        assert doc.root.text_content == "deep"

    def test_child_order_is_preserved(self):
        doc = parse_html("<div><p>a</p>x<p>b</p><p>c</p></div>")
        assert doc.root.find("div").text_content == "axbc"
