"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.samples import DIV_EMAIL, MINIMAL_EMAIL


@pytest.fixture
def minimal_email() -> str:
    return MINIMAL_EMAIL


@pytest.fixture
def div_email() -> str:
    return DIV_EMAIL


@pytest.fixture
def email_file(tmp_path: Path) -> Path:
    path = tmp_path / "welcome.html"
    path.write_text(MINIMAL_EMAIL, encoding="utf-8")
    return path
