"""Tests for the accessibility analyzer."""

from __future__ import annotations

import pytest

from emailqa.analyzers.accessibility import AccessibilityAnalyzer, wcag_level
from emailqa.models import Finding, Severity
from emailqa.rules import DEFAULT_RULES
from tests.samples import wrap_body


def _analyze(body: str, **kwargs):
    return AccessibilityAnalyzer().analyze(wrap_body(body, **kwargs))


def _rule_ids(result) -> list[str]:
    return [f.rule_id for f in result.findings]


class TestMinimalEmail:
    def test_perfect_score(self, minimal_email: str) -> None:
        result = AccessibilityAnalyzer().analyze(minimal_email)
        assert result.findings == ()
        assert result.score == pytest.approx(1.0)
        assert result.wcag_level == "AAA"
        assert result.alt_text_coverage == 1.0
        assert result.semantic_structure is True
        assert result.keyboard_accessible is True
        assert result.screen_reader_friendly is True

    def test_contrast_measured(self, minimal_email: str) -> None:
        result = AccessibilityAnalyzer().analyze(minimal_email)
        assert result.contrast
        assert all(c.passed for c in result.contrast)
        heading = next(c for c in result.contrast if c.sampled_text == "Welcome aboard")
        assert heading.ratio == 21.0
        assert heading.level == "AAA"


class TestImages:
    def test_missing_alt(self) -> None:
        result = _analyze('<img src="hero.jpg">')
        assert _rule_ids(result) == ["image-alt"]
        assert result.findings[0].severity == Severity.CRITICAL
        assert result.wcag_level == "fail"
        assert result.alt_text_coverage == 0.0

    def test_empty_alt_on_decorative_image(self) -> None:
        result = _analyze('<p>Hi</p><img src="img/spacer.gif" alt="">')
        assert "image-alt" not in _rule_ids(result)

    def test_empty_alt_on_content_image(self) -> None:
        result = _analyze('<p>Hi</p><img src="img/product.jpg" alt="">')
        assert "image-alt" in _rule_ids(result)

    def test_custom_decorative_predicate(self) -> None:
        rules = DEFAULT_RULES.with_overrides(is_decorative_image=lambda src: True)
        result = AccessibilityAnalyzer(rules).analyze(wrap_body('<img src="a.jpg" alt="">'))
        assert "image-alt" not in _rule_ids(result)


class TestStructure:
    def test_heading_skip(self) -> None:
        result = _analyze("<h1>Title</h1><h3>Sub</h3>")
        assert _rule_ids(result) == ["heading-order"]
        assert result.findings[0].severity == Severity.MODERATE

    def test_first_heading_below_h2(self) -> None:
        result = _analyze("<h3>Only</h3>")
        assert _rule_ids(result) == ["heading-order"]

    def test_heading_levels_may_drop(self) -> None:
        result = _analyze("<h1>A</h1><h2>B</h2><h3>C</h3><h1>D</h1><h2>E</h2>")
        assert "heading-order" not in _rule_ids(result)
        assert result.semantic_structure is True

    def test_form_label_matched_by_quoted_id(self) -> None:
        labelled = '<h1>Join</h1><form><label for=\'e"mail\'>Email</label><input id=\'e"mail\'></form>'
        unlabelled = '<h1>Join</h1><form><input id=\'e"mail\'></form>'
        assert _analyze(labelled).semantic_structure is True
        assert _analyze(unlabelled).semantic_structure is False

    def test_missing_lang(self) -> None:
        html = "<html><head><title>x</title></head><body><p>Hi</p></body></html>"
        result = AccessibilityAnalyzer().analyze(html)
        assert "html-has-lang" in _rule_ids(result)
        assert result.wcag_level in ("A", "fail")

    def test_data_table_without_headers(self) -> None:
        table = "<table><tr><td>1</td><td>2</td></tr><tr><td>3</td><td>4</td></tr></table>"
        assert "table-headers" in _rule_ids(_analyze(table))

    def test_layout_table_is_exempt(self) -> None:
        table = (
            '<table role="presentation"><tr><td>1</td><td>2</td></tr>'
            "<tr><td>3</td><td>4</td></tr></table>"
        )
        assert "table-headers" not in _rule_ids(_analyze(table))

    def test_data_table_with_headers(self) -> None:
        table = (
            "<table><tr><th>A</th><th>B</th></tr>"
            "<tr><td>1</td><td>2</td></tr><tr><td>3</td><td>4</td></tr></table>"
        )
        assert "table-headers" not in _rule_ids(_analyze(table))


class TestLinks:
    def test_empty_links_aggregated(self) -> None:
        result = _analyze('<a href="/a"></a><a href="/b"> </a><a href="/c">ok</a>')
        findings = [f for f in result.findings if f.rule_id == "link-name"]
        assert len(findings) == 1
        assert findings[0].description.startswith("2 link(s)")

    @pytest.mark.parametrize(
        "link",
        [
            '<a href="/a" aria-label="Home"></a>',
            '<a href="/a" title="Home"></a>',
            '<a href="/a"><img src="logo.png" alt="Home" width="1" height="1"></a>',
        ],
    )
    def test_named_links(self, link: str) -> None:
        assert "link-name" not in _rule_ids(_analyze(link))

    def test_label_for_quoted_id(self) -> None:
        body = (
            '<h1>Hi</h1><p>Text</p>'
            '<label for=\'go"now\'>Go</label><a href="https://x.test" id=\'go"now\'></a>'
        )
        result = _analyze(body)
        assert "analysis-error" not in _rule_ids(result)
        assert "link-name" not in _rule_ids(result)
        assert result.score > 0.0

    @pytest.mark.parametrize("link_id", ['go"now', "back\\slash"])
    def test_unusual_id_without_label(self, link_id: str) -> None:
        result = _analyze(f"<p>Text</p><a href=\"/a\" id='{link_id}'></a>")
        assert _rule_ids(result) == ["link-name"]


class TestContrast:
    def test_gray_on_white_fails(self) -> None:
        result = _analyze('<p style="color: #777777">Quiet text</p>')
        (m,) = result.contrast
        assert m.ratio == pytest.approx(4.48, abs=0.01)
        assert m.passed is False
        assert m.level == "fail"
        # Contrast is measured, not reported as a finding
        assert result.findings == ()

    def test_large_text_threshold(self) -> None:
        result = _analyze('<p style="color: #777777; font-size: 24px">Big text</p>')
        (m,) = result.contrast
        assert m.required_ratio == 3.0
        assert m.passed is True

    def test_bold_tag_inherits_weight(self) -> None:
        result = _analyze('<p style="font-size: 18px; color: #777777"><b>Bold</b></p>')
        bold = next(c for c in result.contrast if c.sampled_text == "Bold")
        assert bold.font_weight == "bold"
        assert bold.required_ratio == 3.0

    def test_background_from_bgcolor(self) -> None:
        body = '<table role="presentation"><tr><td bgcolor="#000000"><p style="color: #ffffff">Inverse</p></td></tr></table>'
        (m,) = _analyze(body).contrast
        assert m.background == "#000000"
        assert m.ratio == pytest.approx(21.0)

    def test_inherited_foreground(self) -> None:
        body = '<div style="color: #ffffff; background-color: #ffffff"><p>Invisible</p></div>'
        (m,) = _analyze(body).contrast
        assert m.foreground == "#ffffff"
        assert m.ratio == pytest.approx(1.0)

    def test_unparseable_color_skipped(self) -> None:
        result = _analyze('<p style="color: hsl(0, 0%, 50%)">Skip me</p>')
        assert result.contrast == ()


class TestFocus:
    def test_positive_tabindex_out_of_order(self) -> None:
        body = '<a href="/a" tabindex="3">A</a><a href="/b" tabindex="1">B</a>'
        focus = _analyze(body).focus_management
        assert focus.focus_order is False
        assert focus.focusable_count == 2

    def test_no_focusable_elements(self) -> None:
        focus = _analyze("<p>Plain</p>").focus_management
        assert focus.has_focusable_elements is False
        assert focus.score == pytest.approx(0.5)

    def test_removed_from_tab_order(self) -> None:
        result = _analyze('<a href="/a" tabindex="-1">A</a><a href="/b" tabindex="-1">B</a>')
        assert result.keyboard_accessible is False


class TestWcagLevel:
    def _finding(self, severity: Severity) -> Finding:
        return Finding("r", severity, "/html", "d", "s")

    def test_levels(self) -> None:
        assert wcag_level(0.95, []) == "AAA"
        assert wcag_level(0.8, []) == "AA"
        assert wcag_level(0.6, []) == "A"
        assert wcag_level(0.4, []) == "fail"

    def test_severity_caps_level(self) -> None:
        assert wcag_level(0.95, [self._finding(Severity.SERIOUS)]) == "A"
        assert wcag_level(0.95, [self._finding(Severity.CRITICAL)]) == "fail"


class TestEdgeCases:
    def test_invalid_input(self) -> None:
        result = AccessibilityAnalyzer().analyze("")
        assert result.score == 0.0
        assert result.wcag_level == "fail"
        assert _rule_ids(result) == ["invalid-input"]

    def test_score_bounds(self, div_email: str) -> None:
        result = AccessibilityAnalyzer().analyze(div_email)
        assert 0.0 <= result.score <= 1.0
        assert result.summary.total_issues == len(result.findings)
        assert result.summary.critical_issues == 1
