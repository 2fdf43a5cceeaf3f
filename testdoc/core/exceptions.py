"""Custom exception hierarchy for the testdoc report renderer.

All package exceptions inherit from ``TestDocError`` so callers can catch
everything the renderer raises with one clause.

Exception tree::

    TestDocError
    ├── ReportWriteError   (also an OSError)
    ├── ReportStateError
    └── ConfigurationError
"""

from __future__ import annotations


class TestDocError(Exception):
    """Base exception for all testdoc errors.

    The text reads ``report <path>: <message> (<key>=<value>, ...)``, so the
    failing report is named even when several reporters share a process.

    Attributes:
        message: Human-readable error description.
        path: Report file the error concerns; ``<stream>`` for caller streams,
            ``None`` before a destination is known.
        details: Lifecycle or OS context, such as the event name or errno.

    """

    __test__ = False

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        self.message = message
        self.path = path
        self.details = dict(details or {})
        super().__init__(self.describe())

    def describe(self) -> str:
        """Render the message with its report path and context."""
        text = f"report {self.path}: {self.message}" if self.path else self.message
        if not self.details:
            return text
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{text} ({context})"


class ReportWriteError(TestDocError, OSError):
    """Raised when the report sink cannot be created or written.

    Examples:
        - Parent directory cannot be created
        - Destination is a directory or not writable
        - Disk full while streaming a fragment

    """

    @classmethod
    def from_os_error(cls, action: str, path: str, exc: OSError) -> ReportWriteError:
        """Wrap a failed sink operation, keeping the OS error number."""
        details: dict[str, object] = {}
        if exc.errno is not None:
            details["errno"] = exc.errno
        return cls(f"{action}: {exc.strerror or exc}", path=path, details=details)


class ReportStateError(TestDocError):
    """Raised when lifecycle events arrive in an impossible order.

    Examples:
        - ``suite_end`` with no open suite
        - Any event before ``run_start``
        - Any event after ``run_end``

    """

    def __init__(
        self,
        message: str,
        event: str,
        path: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize with the lifecycle event that arrived out of order."""
        self.event = event
        super().__init__(message, path=path, details={"event": event, **(details or {})})


class ConfigurationError(TestDocError):
    """Raised when reporter options are invalid.

    Examples:
        - Empty report path
        - Destination that is neither a path nor a writable stream

    """
