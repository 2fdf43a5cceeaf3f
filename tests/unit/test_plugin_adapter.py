"""Unit tests for the pytest adapter's event translation."""

from __future__ import annotations

from functools import partial
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from testdoc.core.events import Suite
from testdoc.plugin import DocReportPlugin, node_title, suite_chain
from testdoc.reporting.html_reporter import HtmlDocReporter


def make_report(nodeid: str, when: str, outcome: str, longrepr: str = "") -> Any:
    """Stand-in for a pytest TestReport."""
    return SimpleNamespace(
        nodeid=nodeid,
        when=when,
        passed=outcome == "passed",
        failed=outcome == "failed",
        skipped=outcome == "skipped",
        longreprtext=longrepr,
    )


def run_test(plugin: DocReportPlugin, nodeid: str, outcome: str = "passed") -> None:
    plugin.pytest_runtest_logreport(make_report(nodeid, "setup", "passed"))
    plugin.pytest_runtest_logreport(make_report(nodeid, "call", outcome, "boom"))
    plugin.pytest_runtest_logreport(make_report(nodeid, "teardown", "passed"))


@pytest.fixture
def mock_reporter() -> MagicMock:
    """Mock reporter recording every lifecycle call."""
    return MagicMock(spec=HtmlDocReporter)


@pytest.fixture
def plugin(mock_reporter: MagicMock) -> DocReportPlugin:
    """Adapter feeding the mock reporter, with the session started."""
    adapter = DocReportPlugin(lambda: mock_reporter)
    adapter.pytest_sessionstart(SimpleNamespace(name="pkg"))
    mock_reporter.reset_mock()
    return adapter


class TestNodeIds:
    """Tests for node id parsing."""

    def test_suite_chain(self) -> None:
        assert suite_chain("tests/test_a.py::TestX::test_y[1-2]") == [
            "tests/test_a.py",
            "TestX",
        ]
        assert suite_chain("tests/test_a.py") == []

    def test_node_title(self) -> None:
        assert node_title("tests/test_a.py::TestX::test_y[1-2]") == "test_y[1-2]"


class TestSuiteReconciliation:
    """Tests for deriving suite events from consecutive node ids."""

    def test_session_start_opens_root(self, mock_reporter: MagicMock) -> None:
        adapter = DocReportPlugin(lambda: mock_reporter)
        adapter.pytest_sessionstart(SimpleNamespace(name="pkg"))
        mock_reporter.run_start.assert_called_once_with()
        mock_reporter.suite_start.assert_called_once_with(Suite("pkg", root=True))

    def test_opens_and_closes_suites(
        self, plugin: DocReportPlugin, mock_reporter: MagicMock
    ) -> None:
        run_test(plugin, "a.py::TestB::test_1")
        run_test(plugin, "a.py::TestB::test_2")
        run_test(plugin, "a.py::TestC::test_3")
        run_test(plugin, "d.py::test_4")
        plugin.pytest_sessionfinish(SimpleNamespace(name="pkg"))

        events = [
            (c[0], c.args[0].title)
            for c in mock_reporter.mock_calls
            if c[0] in ("suite_start", "suite_end")
        ]
        assert events == [
            ("suite_start", "a.py"),
            ("suite_start", "TestB"),
            ("suite_end", "TestB"),
            ("suite_start", "TestC"),
            ("suite_end", "TestC"),
            ("suite_end", "a.py"),
            ("suite_start", "d.py"),
            ("suite_end", "d.py"),
            ("suite_end", "pkg"),
        ]
        mock_reporter.run_end.assert_called_once_with()

    def test_outcomes_mapped(
        self, plugin: DocReportPlugin, mock_reporter: MagicMock
    ) -> None:
        run_test(plugin, "a.py::test_ok")
        run_test(plugin, "a.py::test_bad", "failed")
        run_test(plugin, "a.py::test_skip", "skipped")

        assert mock_reporter.test_pass.call_count == 1
        assert mock_reporter.test_fail.call_count == 1
        assert mock_reporter.test_pending.call_count == 1
        assert mock_reporter.test_end.call_count == 3
        failed, error = mock_reporter.test_fail.call_args.args
        assert failed.title == "test_bad"
        assert failed.full_title == "a.py::test_bad"
        assert error == "boom"

    def test_setup_failure_reported(
        self, plugin: DocReportPlugin, mock_reporter: MagicMock
    ) -> None:
        plugin.pytest_runtest_logreport(
            make_report("a.py::test_x", "setup", "failed", "fixture error")
        )
        plugin.pytest_runtest_logreport(make_report("a.py::test_x", "teardown", "passed"))
        mock_reporter.test_fail.assert_called_once()
        assert mock_reporter.test_fail.call_args.args[1] == "fixture error"
        mock_reporter.test_pass.assert_not_called()
        mock_reporter.test_end.assert_called_once()

    def test_collection_error_reported(
        self, plugin: DocReportPlugin, mock_reporter: MagicMock
    ) -> None:
        report = SimpleNamespace(
            nodeid="tests/test_broken.py", failed=True, longreprtext="ImportError"
        )
        plugin.pytest_collectreport(report)
        failed, error = mock_reporter.test_fail.call_args.args
        assert failed.title == "tests/test_broken.py"
        assert error == "ImportError"
        mock_reporter.test_end.assert_called_once()

    def test_successful_collection_ignored(
        self, plugin: DocReportPlugin, mock_reporter: MagicMock
    ) -> None:
        plugin.pytest_collectreport(SimpleNamespace(nodeid="a.py", failed=False))
        assert mock_reporter.mock_calls == []


class TestLazyReporter:
    """Tests for creating the reporter when the session starts."""

    def test_no_reporter_before_session_start(self, tmp_path: Path) -> None:
        path = tmp_path / "report.html"
        adapter = DocReportPlugin(partial(HtmlDocReporter, path))
        assert adapter.reporter is None
        adapter.pytest_sessionfinish(SimpleNamespace(name="pkg"))
        assert not path.exists()

    def test_reporter_created_on_session_start(
        self, mock_reporter: MagicMock
    ) -> None:
        factory = MagicMock(return_value=mock_reporter)
        adapter = DocReportPlugin(factory)
        factory.assert_not_called()
        adapter.pytest_sessionstart(SimpleNamespace(name="pkg"))
        factory.assert_called_once_with()
        assert adapter.reporter is mock_reporter

    def test_factory_error_is_usage_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        adapter = DocReportPlugin(partial(HtmlDocReporter, blocker / "report.html"))
        with pytest.raises(pytest.UsageError, match="Cannot create report file"):
            adapter.pytest_sessionstart(SimpleNamespace(name="pkg"))
        assert adapter.reporter is None


class TestEndToEnd:
    """Adapter driving a real reporter."""

    def test_document_balanced(self, tmp_path: Path, assert_balanced: Any) -> None:
        path = tmp_path / "report.html"
        adapter = DocReportPlugin(partial(HtmlDocReporter, path))
        adapter.pytest_sessionstart(SimpleNamespace(name="pkg"))
        run_test(adapter, "a.py::TestB::test_1")
        run_test(adapter, "a.py::TestB::test_2", "failed")
        run_test(adapter, "c.py::test_3", "skipped")
        adapter.pytest_sessionfinish(SimpleNamespace(name="pkg"))

        doc = path.read_text(encoding="utf-8")
        assert_balanced(doc)
        assert adapter.reporter.stats.suites == 3
        assert adapter.reporter.stats.tests == 3
        assert 'innerHTML = "FAILED";' in doc
