"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture
def prose() -> Callable[..., str]:
    """Factory for sentence-free prose of an exact length."""

    def _prose(length: int, word: str = "lorem") -> str:
        text = (f"{word} " * (length // (len(word) + 1) + 2))[:length]
        return text[:-1] + "x" if text.endswith(" ") else text

    return _prose


@pytest.fixture
def write_page(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a Markdoc page (optionally with a title) below ``tmp_path``."""

    def _write(relative: str, body: str, title: str | None = None) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        frontmatter = f"---\ntitle: {title}\n---\n\n" if title is not None else ""
        path.write_text(frontmatter + body, encoding="utf-8")
        return path

    return _write
