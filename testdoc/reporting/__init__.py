"""Streamed HTML test report rendering.

Uses Jinja2 templates for the document skeleton and MarkupSafe for the
per-event fragments written while tests run.
"""

from .formatting import format_duration, format_timestamp
from .html_reporter import HtmlDocReporter

__all__ = ["HtmlDocReporter", "format_duration", "format_timestamp"]
