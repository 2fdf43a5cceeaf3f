"""Human-readable formatting of run durations and timestamps.

Timestamps are rendered with Babel from CLDR data, so the report follows the
user's ``LC_TIME`` locale without touching the process-wide ``locale``
settings.
"""

from __future__ import annotations

import math
from datetime import datetime

from babel.core import Locale, UnknownLocaleError, default_locale
from babel.dates import format_datetime

from ..core.exceptions import ConfigurationError

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

FALLBACK_LOCALE = "en_US"
TIMESTAMP_FORMAT = "medium"

_UNITS: tuple[tuple[int, str], ...] = (
    (DAY_MS, "d"),
    (HOUR_MS, "h"),
    (MINUTE_MS, "m"),
    (SECOND_MS, "s"),
)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_duration(duration_ms: float) -> str:
    """Format a duration in milliseconds using its largest whole unit.

    The duration is rounded to whole milliseconds before the unit is chosen,
    so ``999.6`` is reported as ``1s`` rather than ``1000ms``.

    Examples::

        format_duration(120)      # "120ms"
        format_duration(2400)     # "2s"
        format_duration(90_000)   # "2m"

    """
    rounded = _round_half_up(duration_ms)
    for unit_ms, suffix in _UNITS:
        if abs(rounded) >= unit_ms:
            return f"{_round_half_up(rounded / unit_ms)}{suffix}"
    return f"{rounded}ms"


def resolve_locale(name: str | None = None) -> Locale:
    """Return the Babel locale for ``name``, or the user's ``LC_TIME`` locale.

    An unusable environment locale falls back to ``en_US``.

    Raises:
        ConfigurationError: If ``name`` is not a known locale identifier.

    """
    if name:
        try:
            return Locale.parse(name)
        except (ValueError, UnknownLocaleError) as exc:
            raise ConfigurationError(
                f"Unknown report locale {name!r}", details={"error": exc}
            ) from exc
    try:
        return Locale.parse(default_locale("LC_TIME") or FALLBACK_LOCALE)
    except (ValueError, UnknownLocaleError):
        return Locale.parse(FALLBACK_LOCALE)


def format_timestamp(moment: datetime, locale: Locale | str | None = None) -> str:
    """Format a timestamp in the locale's medium date and time pattern."""
    if not isinstance(locale, Locale):
        locale = resolve_locale(locale)
    return format_datetime(moment, format=TIMESTAMP_FORMAT, locale=locale)
