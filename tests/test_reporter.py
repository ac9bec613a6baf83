"""Tests for report output."""

from __future__ import annotations

import json
from pathlib import Path

from emailqa.pipeline import run_quality_assurance
from emailqa.reporter import format_summary, write_json_report, write_markdown_report


class TestJsonReport:
    def test_camel_case_keys(self, div_email: str, tmp_path: Path) -> None:
        out = tmp_path / "report.json"
        write_json_report(run_quality_assurance(div_email), out)
        data = json.loads(out.read_text(encoding="utf-8"))
        assert set(data) >= {
            "overallScore", "overallGrade", "html", "accessibility", "performance",
            "recommendations", "summary", "testMetadata", "clientCompatibility",
        }
        assert "sizeAnalysis" in data["html"]
        assert "wcagLevel" in data["accessibility"]
        assert "fileSize" in data["performance"]
        assert data["recommendations"][0]["priority"] == "critical"
        assert data["testMetadata"]["validationStandards"][1] == "WCAG 2.1 AA"


class TestMarkdownReport:
    def test_sections(self, div_email: str, tmp_path: Path) -> None:
        out = tmp_path / "report.md"
        write_markdown_report(run_quality_assurance(div_email), out, title="sale.html")
        text = out.read_text(encoding="utf-8")
        assert text.startswith("# Email Quality Report: sale.html")
        assert "## Compliance checks" in text
        assert "**[FAIL]** DOCTYPE" in text
        assert "## Recommendations" in text
        assert "**[CRITICAL]**" in text
        assert "| outlook |" in text


class TestSummary:
    def test_format(self, minimal_email: str) -> None:
        report = run_quality_assurance(minimal_email)
        text = format_summary(report)
        assert text.splitlines()[0] == f"Overall: {report.overall_score:.2f} ({report.overall_grade})"
        assert "gmail:" in text
