"""Pydantic configuration model with YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from emailqa.rules import DEFAULT_ALLOWED_CSS, DEFAULT_UNSUPPORTED_CSS, EMAIL_SIZE_LIMIT, RuleSet

_DEFAULT_CONFIG_NAME = "emailqa.yaml"

DEFAULT_TARGET_CLIENTS = ["gmail", "outlook", "apple-mail", "yahoo"]


class AnalysisOptions(BaseModel):
    """Per-run options accepted by ``run_quality_assurance``."""

    include_accessibility: bool = True
    include_performance: bool = True
    target_clients: list[str] = Field(default_factory=lambda: list(DEFAULT_TARGET_CLIENTS))
    timeout_seconds: Optional[float] = Field(default=None, gt=0)  # noqa: UP007


class RulesConfig(BaseModel):
    """Thresholds and CSS list overrides."""

    size_limit_bytes: int = Field(default=EMAIL_SIZE_LIMIT, gt=0)
    min_inline_style_ratio: float = Field(default=0.3, ge=0, le=1)
    min_css_compat_ratio: float = Field(default=0.8, ge=0, le=1)
    min_readable_font_px: float = Field(default=14.0, gt=0)
    extra_allowed_css: list[str] = Field(default_factory=list)
    extra_unsupported_css: list[str] = Field(default_factory=list)


class OutputConfig(BaseModel):
    """Report output settings."""

    report_format: Literal["json", "markdown"] = "json"


class EmailQAConfig(BaseModel):
    """Top-level configuration for emailqa."""

    analysis: AnalysisOptions = Field(default_factory=AnalysisOptions)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def build_rules(self) -> RuleSet:
        """Freeze the ``rules`` section into a :class:`RuleSet`."""
        r = self.rules
        extra_allowed = {p.strip().lower() for p in r.extra_allowed_css if p.strip()}
        extra_unsupported = {p.strip().lower() for p in r.extra_unsupported_css if p.strip()}
        return RuleSet(
            allowed_css=DEFAULT_ALLOWED_CSS | extra_allowed,
            unsupported_css=DEFAULT_UNSUPPORTED_CSS | extra_unsupported,
            size_limit_bytes=r.size_limit_bytes,
            min_inline_style_ratio=r.min_inline_style_ratio,
            min_css_compat_ratio=r.min_css_compat_ratio,
            min_readable_font_px=r.min_readable_font_px,
        )

    @classmethod
    def load(cls, path: Path | None = None) -> EmailQAConfig:
        """Load config from a YAML file.

        Search order when *path* is None:
          1. ./emailqa.yaml
          2. ~/.config/emailqa/emailqa.yaml

        Returns default config if no file is found.
        """
        if path is not None:
            return cls._from_yaml(path)

        candidates = [
            Path.cwd() / _DEFAULT_CONFIG_NAME,
            Path.home() / ".config" / "emailqa" / _DEFAULT_CONFIG_NAME,
        ]
        for candidate in candidates:
            if candidate.is_file():
                return cls._from_yaml(candidate)

        return cls()

    @classmethod
    def _from_yaml(cls, path: Path) -> EmailQAConfig:
        raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(raw)
