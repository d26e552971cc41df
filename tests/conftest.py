"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def docs_page_html() -> str:
    return _read_fixture("docs_page.html")


@pytest.fixture
def unicode_html() -> str:
    return _read_fixture("unicode.html")


@pytest.fixture
def no_title_html() -> str:
    return _read_fixture("no_title.html")
