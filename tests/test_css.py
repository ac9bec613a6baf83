"""Tests for CSS declaration parsing and size helpers."""

from __future__ import annotations

import pytest

from emailqa.dom import HtmlDocument
from emailqa.utils.css import (
    collect_declarations,
    has_media_query,
    is_bold,
    parse_declarations,
    parse_px,
    parse_stylesheet,
    style_map,
)
from emailqa.utils.size import byte_length, compression_potential, estimate_image_bytes, leading_int


class TestDeclarations:
    def test_basic(self) -> None:
        assert parse_declarations("color: red; FONT-SIZE: 12px !important") == [
            ("color", "red"),
            ("font-size", "12px"),
        ]

    def test_garbage_fragments_ignored(self) -> None:
        assert parse_declarations("bad; :x; ; color:blue") == [("color", "blue")]

    def test_url_value_keeps_colon(self) -> None:
        assert parse_declarations("background: url(https://x.test/a.png)") == [
            ("background", "url(https://x.test/a.png)"),
        ]

    def test_empty(self) -> None:
        assert parse_declarations(None) == []
        assert parse_declarations("") == []

    def test_style_map_last_wins(self) -> None:
        assert style_map("color: red; color: blue")["color"] == "blue"


class TestStylesheet:
    def test_media_blocks_descend(self) -> None:
        css = "/* c */ @media (max-width: 600px) { .a { width: 100% } } p { color: red; }"
        assert parse_stylesheet(css) == [("width", "100%"), ("color", "red")]

    def test_has_media_query(self) -> None:
        assert has_media_query("@MEDIA screen { }") is True
        assert has_media_query("p { color: red }") is False

    def test_collect_inline_then_embedded(self) -> None:
        doc = HtmlDocument(
            "<html><head><style>p { margin: 0 }</style></head>"
            '<body><p style="color: red">x</p></body></html>'
        )
        assert collect_declarations(doc) == [("color", "red"), ("margin", "0")]


class TestLengths:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("12px", 12.0), ("12", 12.0), ("12pt", 16.0), ("1.5em", 24.0), ("2rem", 32.0), ("50%", 8.0)],
    )
    def test_parse_px(self, value: str, expected: float) -> None:
        assert parse_px(value) == pytest.approx(expected)

    def test_parse_px_unparseable(self) -> None:
        assert parse_px("large") is None
        assert parse_px(None) is None

    @pytest.mark.parametrize(("weight", "expected"), [("bold", True), ("700", True), ("400", False), ("normal", False)])
    def test_is_bold(self, weight: str, expected: bool) -> None:
        assert is_bold(weight) is expected


class TestSize:
    def test_byte_length_is_utf8(self) -> None:
        assert byte_length("é") == 2

    def test_leading_int(self) -> None:
        assert leading_int("600px") == 600
        assert leading_int("auto") is None

    def test_image_estimate(self) -> None:
        assert estimate_image_bytes("600", "400") == 24000
        # Missing dimensions fall back to 100x100, floored at 1 KiB
        assert estimate_image_bytes(None, None) == 1024

    def test_compression_potential_bounds(self) -> None:
        assert compression_potential("") == 0.0
        assert 0.0 < compression_potential("<p>  a  </p>") <= 0.5
        assert compression_potential("<!-- x -->" * 3) == 0.5
