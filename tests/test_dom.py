"""Tests for the BeautifulSoup-backed document view."""

from __future__ import annotations

from emailqa.dom import DocumentView, HtmlDocument


class TestHtmlDocument:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(HtmlDocument("<p>x</p>"), DocumentView)

    def test_select_in_document_order(self) -> None:
        doc = HtmlDocument("<div><p>1</p><span><p>2</p></span></div>")
        assert [doc.text(p) for p in doc.select("p")] == ["1", "2"]

    def test_attr_joins_multi_valued(self) -> None:
        doc = HtmlDocument('<p class="a b" id="x">t</p>')
        p = doc.first("p")
        assert doc.attr(p, "class") == "a b"
        assert doc.attr(p, "id") == "x"
        assert doc.attr(p, "title") is None

    def test_parents_nearest_first(self) -> None:
        doc = HtmlDocument("<html><body><div><p>x</p></div></body></html>")
        names = [el.name for el in doc.parents(doc.first("p"))]
        assert names == ["div", "body", "html"]

    def test_own_text_excludes_children(self) -> None:
        doc = HtmlDocument("<td>  Hello <b>bold</b>   world </td>")
        assert doc.own_text(doc.first("td")) == "Hello world"

    def test_max_depth(self) -> None:
        doc = HtmlDocument("<html><body><div><p>x</p></div></body></html>")
        assert doc.max_depth() == 3

    def test_max_depth_empty(self) -> None:
        assert HtmlDocument("").max_depth() == 0

    def test_bom_is_ignored(self) -> None:
        doc = HtmlDocument("\ufeff<html><body><p>x</p></body></html>")
        assert doc.first("html") is not None

    def test_path_indexes_siblings(self) -> None:
        doc = HtmlDocument("<html><body><table></table><table></table></body></html>")
        second = doc.select("table")[1]
        assert doc.path(second) == "/html/body/table[2]"

    def test_path_identical_siblings(self) -> None:
        doc = HtmlDocument("<table><tr><td></td><td></td></tr></table>")
        first, second = doc.select("td")
        assert doc.path(first) == "/table/tr/td[1]"
        assert doc.path(second) == "/table/tr/td[2]"

    def test_tag_name_and_children(self) -> None:
        doc = HtmlDocument("<ul><li>a</li><li><ul><li>b</li></ul></li></ul>")
        outer = doc.first("ul")
        assert doc.tag_name(outer) == "ul"
        assert len(doc.children(outer, "li")) == 2
        assert len(doc.select_in(outer, "li")) == 3

    def test_nearest(self) -> None:
        doc = HtmlDocument("<table id='a'><tr><td><table id='b'><tr><td>x</td></tr></table></td></tr></table>")
        inner_cell = doc.select("td")[1]
        assert doc.attr(doc.nearest(inner_cell, "table"), "id") == "b"
        assert doc.nearest(doc.first("table"), "table") is None

    def test_describe(self) -> None:
        doc = HtmlDocument('<img src="logo.png">')
        assert doc.describe(doc.first("img")) == '<img src="logo.png">'
