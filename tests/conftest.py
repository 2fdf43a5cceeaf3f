"""Shared pytest fixtures for the testdoc test suite.

Provides a fixed clock, report destinations, a ready-made reporter, and a
tag-balance checker used to verify the streamed documents.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from html.parser import HTMLParser
from pathlib import Path

import pytest

from testdoc.reporting.html_reporter import HtmlDocReporter

pytest_plugins = ["pytester"]

START_TIME = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)

VOID_ELEMENTS = frozenset({"meta", "br", "hr", "img", "input", "link"})

# ---------------------------------------------------------------------------
# Clock fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock returning the start time, then 120ms later on every call."""
    moments: Iterator[datetime] = iter(
        [START_TIME] + [START_TIME + timedelta(milliseconds=120)] * 10
    )
    return lambda: next(moments)


# ---------------------------------------------------------------------------
# Reporter fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def report_path(tmp_path: Path) -> Path:
    """Report destination inside a not-yet-existing directory."""
    return tmp_path / "testResults" / "tests" / "report.html"


@pytest.fixture
def reporter(report_path: Path, clock: Callable[[], datetime]) -> HtmlDocReporter:
    """A reporter writing to ``report_path`` with the fixed clock."""
    return HtmlDocReporter(report_path, clock=clock)


# ---------------------------------------------------------------------------
# HTML checks
# ---------------------------------------------------------------------------


class _TagBalanceParser(HTMLParser):
    """Track open elements and record every mismatch."""

    def __init__(self) -> None:
        super().__init__()
        self.stack: list[str] = []
        self.errors: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in VOID_ELEMENTS:
            return
        self.stack.append(tag)

    def handle_endtag(self, tag: str) -> None:
        if not self.stack or self.stack[-1] != tag:
            self.errors.append(f"unexpected </{tag}> with open {self.stack}")
            return
        self.stack.pop()


@pytest.fixture
def assert_balanced() -> Callable[[str], None]:
    """Assert that a document parses with every element closed in order."""

    def check(document: str) -> None:
        parser = _TagBalanceParser()
        parser.feed(document)
        parser.close()
        assert parser.errors == []
        assert parser.stack == []

    return check


# ---------------------------------------------------------------------------
# Pytest configuration
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
