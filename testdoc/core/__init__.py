"""Core module providing event payloads, run statistics, and exceptions.

Contains the data model shared by the HTML renderer and the pytest adapter:
lifecycle event payloads, the run counters and nesting frames, and the
custom exception hierarchy.
"""

from .events import Suite, TestCase
from .exceptions import (
    ConfigurationError,
    ReportStateError,
    ReportWriteError,
    TestDocError,
)
from .stats import RunStatistics, SuiteFrame

__all__ = [
    "ConfigurationError",
    "ReportStateError",
    "ReportWriteError",
    "RunStatistics",
    "Suite",
    "SuiteFrame",
    "TestCase",
    "TestDocError",
]
