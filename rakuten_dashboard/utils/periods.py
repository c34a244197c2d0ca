"""Period selector utilities.

Maps the dashboard's symbolic period selectors (``week``, ``month``, ...)
to concrete inclusive ``(start, end)`` calendar-date pairs.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from ..errors import InvalidRangeError

logger = logging.getLogger(__name__)


class PeriodKind(str, Enum):
    """Symbolic period selectors understood by the dashboard."""

    WEEK = "week"
    TWO_WEEKS = "2weeks"
    MONTH = "month"
    THREE_MONTHS = "3months"
    YEAR = "year"
    CUSTOM = "custom"


# Older client revisions sent these spellings
_ALIASES = {
    "2week": PeriodKind.TWO_WEEKS,
    "3month": PeriodKind.THREE_MONTHS,
}


@dataclass(frozen=True)
class FixedPeriod:
    """A window ending today, sized by ``kind``."""

    kind: PeriodKind = PeriodKind.WEEK

    def __post_init__(self):
        if self.kind == PeriodKind.CUSTOM:
            raise InvalidRangeError("custom period requires explicit start and end dates")


@dataclass(frozen=True)
class CustomPeriod:
    """An explicit, caller-supplied window."""

    start: date
    end: date

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise InvalidRangeError("custom period requires both startDate and endDate")


PeriodSelector = Union[FixedPeriod, CustomPeriod]


def add_months(d: date, months: int) -> date:
    """Shift a date by whole calendar months.

    The day is clamped to the last day of the target month, so
    2024-03-31 minus one month is 2024-02-29.
    """
    month_index = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month0 + 1)[1]
    return date(year, month0 + 1, min(d.day, last_day))


def today(tz_name: Optional[str] = None, at: Optional[datetime] = None) -> date:
    """Calendar date in ``tz_name``, or on the local clock when unset.

    ``at`` defaults to the current moment. An aware ``at`` is converted to
    ``tz_name`` first; a naive one is taken as already local.
    """
    if at is None:
        at = datetime.now(ZoneInfo(tz_name)) if tz_name else datetime.now()
    elif tz_name and at.tzinfo is not None:
        at = at.astimezone(ZoneInfo(tz_name))
    return at.date()


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_iso_date(value: Optional[str], field: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` query value; blank means absent."""
    if value is None or not str(value).strip():
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise InvalidRangeError(f"{field} must be an ISO date (YYYY-MM-DD), got {value!r}") from e


def to_kind(period: Optional[str]) -> PeriodKind:
    """Resolve a raw selector token; unknown tokens fall back to ``week``."""
    if isinstance(period, PeriodKind):
        return period
    token = (period or "").strip()
    if token in _ALIASES:
        return _ALIASES[token]
    try:
        return PeriodKind(token)
    except ValueError:
        logger.debug("Unknown period %r, using 'week'", period)
        return PeriodKind.WEEK


def parse_period(
    period: Optional[str],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> PeriodSelector:
    """Build a period selector from raw query-string values.

    Args:
        period: Selector token (``week``, ``2weeks``, ``month``, ``3months``,
            ``year`` or ``custom``)
        start_date: ISO start date, only read for ``custom``
        end_date: ISO end date, only read for ``custom``

    Returns:
        FixedPeriod or CustomPeriod

    Raises:
        InvalidRangeError: For ``custom`` with a missing or malformed bound
    """
    kind = to_kind(period)
    if kind != PeriodKind.CUSTOM:
        return FixedPeriod(kind)

    return CustomPeriod(
        start=parse_iso_date(start_date, "startDate"),
        end=parse_iso_date(end_date, "endDate"),
    )


def resolve(
    period: Union[str, PeriodKind, FixedPeriod, CustomPeriod, None],
    explicit_start: Optional[date] = None,
    explicit_end: Optional[date] = None,
    now: Optional[Union[date, datetime]] = None,
    tz_name: Optional[str] = None,
) -> Tuple[date, date]:
    """Get the inclusive date range for a period selector.

    Args:
        period: Selector token, kind, or an already-built selector
        explicit_start: Start date, used only for ``custom``
        explicit_end: End date, used only for ``custom``
        now: Reference date or moment (default: now); aware datetimes are
            read in ``tz_name``
        tz_name: IANA timezone used when ``now`` is not given

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        InvalidRangeError: If a custom period is missing either bound
    """
    if isinstance(period, CustomPeriod):
        return _as_date(period.start), _as_date(period.end)

    if isinstance(period, FixedPeriod):
        kind = period.kind
    else:
        kind = to_kind(period)

    if kind == PeriodKind.CUSTOM:
        custom = CustomPeriod(start=explicit_start, end=explicit_end)
        return _as_date(custom.start), _as_date(custom.end)

    if now is None or isinstance(now, datetime):
        end = today(tz_name, now)
    else:
        end = now

    if kind == PeriodKind.TWO_WEEKS:
        start = end - timedelta(days=14)
    elif kind == PeriodKind.MONTH:
        start = add_months(end, -1)
    elif kind == PeriodKind.THREE_MONTHS:
        start = add_months(end, -3)
    elif kind == PeriodKind.YEAR:
        start = add_months(end, -12)
    else:
        start = end - timedelta(days=7)

    return start, end
