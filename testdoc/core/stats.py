"""Run counters and suite nesting frames."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class RunStatistics:
    """Counters accumulated over one test run.

    Attributes:
        suites: Number of non-root suites started.
        tests: Number of ``test end`` events.
        passes: Number of passing tests.
        pending: Number of pending (skipped) tests.
        failures: Number of failures.
        start: Time the run started.
        end: Time the run ended.
        duration_ms: ``end - start`` in milliseconds, set by ``finalize``.

    """

    suites: int = 0
    tests: int = 0
    passes: int = 0
    pending: int = 0
    failures: int = 0
    start: datetime | None = None
    end: datetime | None = None
    duration_ms: float | None = None

    @property
    def passed(self) -> bool:
        """``True`` when no failure was recorded."""
        return self.failures == 0

    def finalize(self, end: datetime) -> None:
        """Record the end time and derive the run duration."""
        self.end = end
        if self.start is not None:
            self.duration_ms = (end - self.start).total_seconds() * 1000
        else:
            self.duration_ms = 0.0

    def summary(self) -> str:
        """One-line summary, used for log output."""
        return (
            f"{self.suites} suites, {self.tests} tests: "
            f"{self.passes} passing, {self.failures} failing, "
            f"{self.pending} pending"
        )


@dataclass(frozen=True)
class SuiteFrame:
    """One open, non-root suite on the nesting stack."""

    title: str
