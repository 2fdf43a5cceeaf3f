"""pytest plugin feeding test results into the streaming HTML reporter.

pytest has no suite events of its own, so the plugin derives them from node
ids: ``tests/test_math.py::TestAdd::test_ints`` belongs to the suites
``tests/test_math.py`` and ``TestAdd``.  Before each report is forwarded the
plugin closes the suites that are no longer open (innermost first) and opens
the new ones, which keeps the section nesting balanced.

Enable with::

    pytest --doc-report=testResults/tests/report.html
    pytest --doc-report-default

or through the ``doc_report`` ini option or the ``TESTDOC_REPORT``
environment variable.  The report file is only opened once the test session
starts, so ``pytest --help`` and aborted startups leave existing reports
untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from functools import partial
from pathlib import Path

import pytest

from .core.events import Suite, TestCase
from .core.exceptions import TestDocError
from .reporting.formatting import resolve_locale
from .reporting.html_reporter import DEFAULT_TITLE, HtmlDocReporter

logger = logging.getLogger(__name__)

PLUGIN_NAME = "testdoc-reporter"
REPORT_ENV_VAR = "TESTDOC_REPORT"
DEFAULT_REPORT_PATH = Path("testResults/tests/report.html")


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command line and ini options."""
    group = parser.getgroup("testdoc", "streamed HTML test report")
    group.addoption(
        "--doc-report",
        action="store",
        dest="doc_report",
        metavar="PATH",
        default=None,
        help=f"Write a streamed HTML test report to PATH. Falls back to ${REPORT_ENV_VAR}.",
    )
    group.addoption(
        "--doc-report-default",
        action="store_true",
        dest="doc_report_default",
        default=False,
        help=f"Write the streamed HTML test report to {DEFAULT_REPORT_PATH}.",
    )
    group.addoption(
        "--doc-report-title",
        action="store",
        dest="doc_report_title",
        metavar="TITLE",
        default=None,
        help=f"Heading of the HTML report (default: {DEFAULT_TITLE!r}).",
    )
    group.addoption(
        "--doc-report-pending",
        action="store_true",
        dest="doc_report_pending",
        default=False,
        help="Also list skipped and xfailed tests in the HTML report.",
    )
    group.addoption(
        "--doc-report-locale",
        action="store",
        dest="doc_report_locale",
        metavar="LOCALE",
        default=None,
        help="Locale of the report timestamp, e.g. de_DE (default: $LC_TIME).",
    )
    parser.addini("doc_report", "Path of the streamed HTML test report.", default="")
    parser.addini("doc_report_title", "Heading of the HTML report.", default="")
    parser.addini(
        "doc_report_pending",
        "List skipped and xfailed tests in the HTML report.",
        type="bool",
        default=False,
    )
    parser.addini("doc_report_locale", "Locale of the report timestamp.", default="")


def resolve_report_path(config: pytest.Config) -> Path | None:
    """Return the configured report path, or ``None`` when reporting is off.

    Precedence is command line, then ini file, then environment.  Relative
    paths are resolved against the invocation directory.
    """
    value = (
        config.getoption("doc_report")
        or (str(DEFAULT_REPORT_PATH) if config.getoption("doc_report_default") else "")
        or config.getini("doc_report")
        or os.environ.get(REPORT_ENV_VAR, "")
    )
    if not value:
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = config.invocation_params.dir / path
    return path


def check_report_path(config: pytest.Config, path: Path) -> None:
    """Refuse report paths that would overwrite test sources.

    Raises:
        pytest.UsageError: If ``path`` is a Python file or one of the paths
            pytest was asked to collect.

    """
    if path.suffix == ".py":
        raise pytest.UsageError(f"testdoc: refusing to write the HTML report to {path}")
    target = path.resolve()
    for arg in config.args:
        candidate = config.invocation_params.dir / arg.split("::")[0]
        if candidate.resolve() == target:
            raise pytest.UsageError(
                f"testdoc: report path {path} is a test path given to pytest"
            )


def pytest_configure(config: pytest.Config) -> None:
    """Validate the report options and register the event adapter."""
    if hasattr(config, "workerinput"):
        return
    path = resolve_report_path(config)
    if path is None:
        return
    check_report_path(config, path)
    title = config.getoption("doc_report_title") or config.getini("doc_report_title")
    show_pending = bool(
        config.getoption("doc_report_pending") or config.getini("doc_report_pending")
    )
    locale = config.getoption("doc_report_locale") or config.getini("doc_report_locale")
    try:
        resolve_locale(locale or None)
    except TestDocError as exc:
        raise pytest.UsageError(f"testdoc: {exc}") from exc
    factory = partial(
        HtmlDocReporter,
        path,
        title=title or DEFAULT_TITLE,
        show_pending=show_pending,
        locale=locale or None,
    )
    config.pluginmanager.register(DocReportPlugin(factory), PLUGIN_NAME)


def pytest_unconfigure(config: pytest.Config) -> None:
    """Unregister the adapter registered by ``pytest_configure``."""
    plugin = config.pluginmanager.get_plugin(PLUGIN_NAME)
    if plugin is not None:
        config.pluginmanager.unregister(plugin, PLUGIN_NAME)


def suite_chain(nodeid: str) -> list[str]:
    """Suite titles enclosing a node, outermost first."""
    return nodeid.split("::")[:-1]


def node_title(nodeid: str) -> str:
    """Display title of a node: the last ``::`` component."""
    return nodeid.split("::")[-1]


class DocReportPlugin:
    """Translate pytest hooks into reporter lifecycle events.

    The reporter, and with it the report file, is created when the session
    starts.

    Args:
        reporter_factory: Callable creating the reporter that receives the
            events.

    """

    def __init__(self, reporter_factory: Callable[[], HtmlDocReporter]) -> None:
        """Initialize with a reporter factory and no open suites."""
        self._reporter_factory = reporter_factory
        self._reporter: HtmlDocReporter | None = None
        self._open: list[str] = []
        self._root: Suite | None = None
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def reporter(self) -> HtmlDocReporter | None:
        """The reporter receiving events, once the session has started."""
        return self._reporter

    # -- pytest hooks -------------------------------------------------------

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        try:
            self._reporter = self._reporter_factory()
        except TestDocError as exc:
            raise pytest.UsageError(f"testdoc: {exc}") from exc
        self._root = Suite(title=session.name, root=True)
        self._reporter.run_start()
        self._reporter.suite_start(self._root)

    def pytest_collectreport(self, report: pytest.CollectReport) -> None:
        if self._reporter is None or not report.failed:
            return
        self._enter(suite_chain(report.nodeid))
        test = TestCase(
            title=node_title(report.nodeid) or "collection", full_title=report.nodeid
        )
        self._reporter.test_fail(test, report.longreprtext)
        self._reporter.test_end(test)

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        if self._reporter is None:
            return
        self._enter(suite_chain(report.nodeid))
        test = TestCase(title=node_title(report.nodeid), full_title=report.nodeid)
        if report.failed:
            self._reporter.test_fail(test, report.longreprtext)
        elif report.skipped:
            self._reporter.test_pending(test)
        elif report.when == "call":
            self._reporter.test_pass(test)
        if report.when == "teardown":
            self._reporter.test_end(test)

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        if self._reporter is None:
            return
        self._enter([])
        if self._root is not None:
            self._reporter.suite_end(self._root)
        self._reporter.run_end()
        self._logger.debug(
            "Session %s reported: %s", session.name, self._reporter.stats.summary()
        )

    def pytest_terminal_summary(self, terminalreporter: pytest.TerminalReporter) -> None:
        if self._reporter is not None and self._reporter.path is not None:
            terminalreporter.write_sep("-", f"HTML report: {self._reporter.path}")

    # -- Internal helpers ---------------------------------------------------

    def _enter(self, chain: list[str]) -> None:
        """Close suites not in ``chain`` and open the missing ones."""
        assert self._reporter is not None
        common = 0
        while (
            common < len(self._open)
            and common < len(chain)
            and self._open[common] == chain[common]
        ):
            common += 1
        while len(self._open) > common:
            self._reporter.suite_end(Suite(title=self._open.pop()))
        for title in chain[common:]:
            self._reporter.suite_start(Suite(title=title))
            self._open.append(title)
