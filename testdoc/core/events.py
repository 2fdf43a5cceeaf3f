"""Payload types carried by test-lifecycle events.

Any object with a ``title`` attribute (and ``root`` for suites) is accepted
by the reporter; these dataclasses are the concrete payloads used by the
pytest adapter and by callers driving the reporter directly.
"""

from __future__ import annotations

from dataclasses import dataclass

# Lifecycle event names, as emitted by runners that expose ``on(name, cb)``.
EVENT_RUN_START = "start"
EVENT_SUITE_START = "suite"
EVENT_SUITE_END = "suite end"
EVENT_TEST_END = "test end"
EVENT_TEST_PASS = "pass"
EVENT_TEST_FAIL = "fail"
EVENT_TEST_PENDING = "pending"
EVENT_RUN_END = "end"


@dataclass(frozen=True)
class Suite:
    """A named grouping of tests.

    Attributes:
        title: Display title of the suite.
        root: ``True`` for the implicit top-level suite.

    """

    title: str
    root: bool = False


@dataclass(frozen=True)
class TestCase:
    """A single test as seen by the reporter.

    Attributes:
        title: Display title of the test.
        full_title: Fully qualified identifier (e.g. a pytest node id).

    """

    __test__ = False

    title: str
    full_title: str = ""
