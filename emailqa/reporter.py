"""Report generation: JSON, Markdown, and console summary output."""

from __future__ import annotations

import json
from pathlib import Path

from emailqa.models import QualityReport


def write_json_report(report: QualityReport, output: Path) -> None:
    """Write a quality report as JSON with camelCase keys."""
    data = report.to_dict()
    output.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")


def write_markdown_report(report: QualityReport, output: Path, title: str = "Email") -> None:
    """Write a quality report as Markdown."""
    s = report.summary
    lines: list[str] = [
        f"# Email Quality Report: {title}",
        "",
        f"- **Overall:** {report.overall_score:.2f} (grade {report.overall_grade})",
        f"- **Markup compliance:** {report.html.score:.2f} "
        f"({report.html.passed_checks}/{report.html.total_checks} checks)",
        f"- **Accessibility:** {report.accessibility.score:.2f} "
        f"(WCAG {report.accessibility.wcag_level})",
        f"- **Performance:** {report.performance.score:.2f} (grade {report.performance.grade})",
        f"- **Size:** {report.test_metadata.html_size_bytes} bytes",
        "",
    ]

    if report.client_compatibility:
        lines += ["## Client compatibility", "", "| Client | Score |", "| --- | --- |"]
        for cs in report.client_compatibility:
            lines.append(f"| {cs.client} | {cs.score:.2f} |")
        lines.append("")

    if report.html.details:
        lines += ["## Compliance checks", ""]
        for d in report.html.details:
            mark = "PASS" if d.passed else "FAIL"
            lines.append(f"- **[{mark}]** {d.check}: {d.message}")
        lines.append("")

    lines += [
        f"## Recommendations ({s.total_issues} total, {s.critical_issues} critical, "
        f"{s.high_priority_issues} high)",
        "",
    ]
    for rec in report.recommendations:
        lines.append(f"- **[{rec.priority.value.upper()}]** {rec.title}: {rec.description}")
        if rec.implementation:
            lines.append(f"  - Fix: {rec.implementation}")

    lines.append("")
    output.write_text("\n".join(lines), encoding="utf-8")


def format_summary(report: QualityReport) -> str:
    """Return a human-readable one-screen summary of a report."""
    s = report.summary
    lines = [
        f"Overall: {report.overall_score:.2f} ({report.overall_grade})",
        f"  Compliance:    {report.html.score:.2f}",
        f"  Accessibility: {report.accessibility.score:.2f} [{report.accessibility.wcag_level}]",
        f"  Performance:   {report.performance.score:.2f} [{report.performance.grade}]",
        f"Issues: {s.total_issues} "
        f"(critical {s.critical_issues}, high {s.high_priority_issues}, "
        f"medium {s.medium_priority_issues}, low {s.low_priority_issues})",
    ]
    for cs in report.client_compatibility:
        lines.append(f"  {cs.client}: {cs.score:.2f}")
    return "\n".join(lines)
