"""Streaming HTML test report renderer.

Listens to test-lifecycle events and writes one HTML document to a sink as
the events arrive.  Nothing is buffered beyond the currently open suites, so
memory use follows nesting depth rather than the number of tests.  The
document head and closing block are rendered from Jinja2 templates; per-event
fragments are escaped with MarkupSafe.

Usage::

    reporter = HtmlDocReporter("testResults/tests/report.html")
    reporter.run_start()
    reporter.suite_start(Suite("Math"))
    reporter.test_pass(TestCase("adds"))
    reporter.test_end(TestCase("adds"))
    reporter.suite_end(Suite("Math"))
    reporter.run_end()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, TextIO

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from ..core.events import (
    EVENT_RUN_END,
    EVENT_RUN_START,
    EVENT_SUITE_END,
    EVENT_SUITE_START,
    EVENT_TEST_END,
    EVENT_TEST_FAIL,
    EVENT_TEST_PASS,
    EVENT_TEST_PENDING,
)
from ..core.exceptions import ConfigurationError, ReportStateError, ReportWriteError
from ..core.stats import RunStatistics, SuiteFrame
from .formatting import format_duration, format_timestamp, resolve_locale

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
HEAD_TEMPLATE = "report_head.html"
TAIL_TEMPLATE = "report_tail.html"

DEFAULT_TITLE = "Unit Tests"
HEADER_ID = "unit-tests-header"
SUMMARY_ID = "summary"
INDENT = "  "

_PASS_LINE = Markup(
    '<dt><span class="pass">&#10004; </span><span class="quiet">{}</span></dt>\n'
)
_FAIL_LINE = Markup('<dt><span class="fail">&#10006; </span>{}</dt>\n')
_ERROR_LINE = Markup('<dd class="fail">{}</dd>\n')
_PENDING_LINE = Markup(
    '<dt><span class="pending">&#8211; </span><span class="quiet">{}</span></dt>\n'
)
_SUITE_TITLE = Markup("<h3>{}</h3>\n")


def _local_now() -> datetime:
    return datetime.now().astimezone()


class HtmlDocReporter:
    """Render lifecycle events into a streamed HTML report.

    Each handler writes its fragment straight to the sink.  Indentation is
    derived from the stack of open suites, two levels per suite: one for the
    ``<section>`` wrapper and one for its body.

    Args:
        destination: Report file path, or an open text stream.  A path has
            its parent directories created and is opened for writing, and
            the file is closed by ``run_end``.  A caller's stream is only
            flushed; closing it stays with the caller.
        title: Heading shown above the pass/fail status.
        show_pending: Also write a line for each pending test.
        clock: Callable returning the current time; defaults to local time.
        locale: Locale used for the start timestamp; defaults to the
            user's ``LC_TIME`` locale.

    Raises:
        ReportWriteError: If the destination cannot be created.
        ConfigurationError: If the destination is neither a path nor a stream,
            or the locale is unknown.

    """

    EVENT_HANDLERS: ClassVar[dict[str, str]] = {
        EVENT_RUN_START: "run_start",
        EVENT_SUITE_START: "suite_start",
        EVENT_SUITE_END: "suite_end",
        EVENT_TEST_END: "test_end",
        EVENT_TEST_PASS: "test_pass",
        EVENT_TEST_FAIL: "test_fail",
        EVENT_TEST_PENDING: "test_pending",
        EVENT_RUN_END: "run_end",
    }

    def __init__(
        self,
        destination: str | Path | TextIO,
        *,
        title: str = DEFAULT_TITLE,
        show_pending: bool = False,
        clock: Callable[[], datetime] | None = None,
        locale: str | None = None,
    ) -> None:
        """Open the report sink and prepare the template environment."""
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._title = title
        self._show_pending = show_pending
        self._clock = clock or _local_now
        self._locale = resolve_locale(locale)
        self._stats = RunStatistics()
        self._frames: list[SuiteFrame] = []
        self._started = False
        self._finished = False
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
            keep_trailing_newline=True,
        )
        self._path, self._sink = self._open(destination)

    # -- Properties ---------------------------------------------------------

    @property
    def stats(self) -> RunStatistics:
        """Counters accumulated so far."""
        return self._stats

    @property
    def depth(self) -> int:
        """Number of currently open non-root suites."""
        return len(self._frames)

    @property
    def path(self) -> Path | None:
        """Report file path, or ``None`` when writing to a caller's stream."""
        return self._path

    @property
    def finished(self) -> bool:
        """``True`` once ``run_end`` has completed the document."""
        return self._finished

    # -- Event source -------------------------------------------------------

    def attach(self, source: Any) -> None:
        """Subscribe every handler to an emitter exposing ``on(name, callback)``."""
        for event, handler in self.EVENT_HANDLERS.items():
            source.on(event, getattr(self, handler))
        self._logger.debug("Attached to event source %r", source)

    # -- Lifecycle handlers -------------------------------------------------

    def run_start(self) -> None:
        """Record the start time and write the document head."""
        if self._started:
            raise ReportStateError(
                "Run already started", event="run_start", path=self._target
            )
        self._started = True
        self._stats.start = self._clock()
        self._logger.info("Writing HTML report to %s", self._target)
        self._write(
            self._render(
                HEAD_TEMPLATE,
                title=self._title,
                header_id=HEADER_ID,
                summary_id=SUMMARY_ID,
            )
        )

    def suite_start(self, suite: Any) -> None:
        """Open a ``<section>`` for a non-root suite."""
        self._require_running("suite_start")
        if getattr(suite, "root", False):
            return
        self._stats.suites += 1
        self._frames.append(SuiteFrame(title=suite.title))
        section_pad, body_pad = self._suite_padding()
        self._write(f'{section_pad}<section class="suite">\n')
        self._write(body_pad + _SUITE_TITLE.format(suite.title))
        self._write(f"{body_pad}<dl>\n")

    def suite_end(self, suite: Any) -> None:
        """Close the innermost open suite."""
        self._require_running("suite_end")
        if getattr(suite, "root", False):
            return
        if not self._frames:
            raise ReportStateError(
                "suite_end without a matching suite_start",
                event="suite_end",
                path=self._target,
                details={"suite": suite.title},
            )
        section_pad, body_pad = self._suite_padding()
        frame = self._frames.pop()
        if frame.title != suite.title:
            self._logger.warning(
                "Suite end for %r closed open suite %r", suite.title, frame.title
            )
        self._write(f"{body_pad}</dl>\n")
        self._write(f"{section_pad}</section>\n")

    def test_end(self, test: Any) -> None:
        """Count a finished test."""
        self._require_running("test_end")
        self._stats.tests += 1

    def test_pass(self, test: Any) -> None:
        """Write a passing test line."""
        self._require_running("test_pass")
        self._stats.passes += 1
        self._write(self._line_padding() + _PASS_LINE.format(test.title))

    def test_fail(self, test: Any, error: object = None) -> None:
        """Write a failing test line followed by its error description."""
        self._require_running("test_fail")
        self._stats.failures += 1
        pad = self._line_padding()
        self._write(pad + _FAIL_LINE.format(test.title))
        self._write(pad + _ERROR_LINE.format("" if error is None else str(error)))

    def test_pending(self, test: Any) -> None:
        """Count a pending test; only written when ``show_pending`` is set."""
        self._require_running("test_pending")
        self._stats.pending += 1
        if self._show_pending:
            self._write(self._line_padding() + _PENDING_LINE.format(test.title))

    def run_end(self) -> None:
        """Write the status script and summary, then release the sink."""
        self._require_running("run_end")
        self._stats.finalize(self._clock())
        if self._frames:
            self._logger.warning(
                "Run ended with %d unclosed suite(s)", len(self._frames)
            )
        stats = self._stats
        try:
            self._write(
                self._render(
                    TAIL_TEMPLATE,
                    stats=stats,
                    status="PASSED" if stats.passed else "FAILED",
                    status_class="pass" if stats.passed else "fail",
                    started=format_timestamp(stats.start, self._locale),
                    duration=format_duration(stats.duration_ms),
                    header_id=HEADER_ID,
                    summary_id=SUMMARY_ID,
                )
            )
        finally:
            self._finished = True
            self._close()
        self._logger.info(
            "Report %s complete: %s (%s)",
            self._target,
            stats.summary(),
            format_duration(stats.duration_ms),
        )

    # -- Internal helpers ---------------------------------------------------

    @property
    def _target(self) -> str:
        return str(self._path) if self._path is not None else "<stream>"

    def _open(self, destination: str | Path | TextIO) -> tuple[Path | None, TextIO]:
        """Resolve the destination into a writable text sink."""
        if isinstance(destination, str | Path):
            if not str(destination):
                raise ConfigurationError("Report path must not be empty")
            path = Path(destination)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                sink = path.open("w", encoding="utf-8")
            except OSError as exc:
                raise ReportWriteError.from_os_error(
                    "Cannot create report file", str(path), exc
                ) from exc
            return path, sink
        if callable(getattr(destination, "write", None)):
            return None, destination
        raise ConfigurationError(
            "Report destination must be a path or a writable stream",
            details={"type": type(destination).__name__},
        )

    def _require_running(self, event: str) -> None:
        if not self._started:
            raise ReportStateError(
                f"{event} received before run_start", event=event, path=self._target
            )
        if self._finished:
            raise ReportStateError(
                f"{event} received after run_end", event=event, path=self._target
            )

    def _suite_padding(self) -> tuple[str, str]:
        """Padding for the innermost suite's wrapper and body."""
        level = 2 * len(self._frames)
        return INDENT * level, INDENT * (level + 1)

    def _line_padding(self) -> str:
        return INDENT * (2 * len(self._frames) + 2)

    def _render(self, template_name: str, **context: Any) -> str:
        return self._env.get_template(template_name).render(**context)

    def _write(self, fragment: str) -> None:
        try:
            self._sink.write(fragment)
        except OSError as exc:
            raise ReportWriteError.from_os_error(
                "Failed to write report", self._target, exc
            ) from exc

    def _close(self) -> None:
        """Close a sink opened from a path; only flush a caller's stream."""
        try:
            if self._path is not None:
                self._sink.close()
            elif callable(getattr(self._sink, "flush", None)):
                self._sink.flush()
        except OSError as exc:
            raise ReportWriteError.from_os_error(
                "Failed to close report", self._target, exc
            ) from exc
