"""testdoc: streaming HTML test reports.

Renders test-lifecycle events into a single HTML document written
incrementally while the run is in progress, with a pytest plugin that
feeds pytest's results into the renderer.
"""

from .core import Suite, TestCase
from .reporting import HtmlDocReporter

__version__ = "1.0.0"

__all__ = ["HtmlDocReporter", "Suite", "TestCase", "__version__"]
