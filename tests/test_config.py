"""Tests for config loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from emailqa.config import EmailQAConfig
from emailqa.rules import EMAIL_SIZE_LIMIT


class TestEmailQAConfig:
    def test_defaults(self) -> None:
        cfg = EmailQAConfig()
        assert cfg.analysis.include_accessibility is True
        assert cfg.analysis.include_performance is True
        assert cfg.analysis.target_clients == ["gmail", "outlook", "apple-mail", "yahoo"]
        assert cfg.analysis.timeout_seconds is None
        assert cfg.rules.size_limit_bytes == EMAIL_SIZE_LIMIT
        assert cfg.output.report_format == "json"

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "emailqa.yaml"
        config_file.write_text(
            """\
analysis:
  include_performance: false
  target_clients: [outlook]
  timeout_seconds: 5
rules:
  size_limit_bytes: 50000
  min_readable_font_px: 12
  extra_unsupported_css: [Float]
output:
  report_format: markdown
""",
            encoding="utf-8",
        )
        cfg = EmailQAConfig.load(config_file)
        assert cfg.analysis.include_performance is False
        assert cfg.analysis.target_clients == ["outlook"]
        assert cfg.analysis.timeout_seconds == 5.0
        assert cfg.rules.size_limit_bytes == 50000
        assert cfg.output.report_format == "markdown"

    def test_build_rules(self, tmp_path: Path) -> None:
        config_file = tmp_path / "emailqa.yaml"
        config_file.write_text(
            "rules:\n  size_limit_bytes: 2048\n  extra_unsupported_css: [' Clip-Path ']\n",
            encoding="utf-8",
        )
        rules = EmailQAConfig.load(config_file).build_rules()
        assert rules.size_limit_bytes == 2048
        assert rules.is_unsupported("clip-path") is True
        assert rules.is_unsupported("position") is True

    def test_load_missing_file_returns_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        cfg = EmailQAConfig.load(None)
        assert cfg.output.report_format == "json"

    def test_search_order_prefers_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "emailqa.yaml").write_text("output:\n  report_format: markdown\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert EmailQAConfig.load().output.report_format == "markdown"

    def test_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "emailqa.yaml"
        config_file.write_text("", encoding="utf-8")
        assert EmailQAConfig.load(config_file).analysis.include_accessibility is True

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        config_file = tmp_path / "emailqa.yaml"
        config_file.write_text("output:\n  report_format: pdf\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            EmailQAConfig.load(config_file)
