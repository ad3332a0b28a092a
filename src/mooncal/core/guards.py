# src/mooncal/core/guards.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from .config import RangeGuardConfig
from .errors import DateOutOfRange, DateRangeTooLarge, InvalidDateRange
from .timeutil import UTC, shift_years


def utc_today() -> date:
    return datetime.now(UTC).date()


@dataclass(frozen=True)
class RangeGuard:
    """
    Navigable-horizon checks shared by every engine entry point.

    "today" is read at call time unless pinned via `today` (tests).
    """
    config: RangeGuardConfig = field(default_factory=RangeGuardConfig)
    today: Optional[date] = None

    def window(self) -> Tuple[date, date]:
        now = self.today if self.today is not None else utc_today()
        years = int(self.config.window_years)
        return shift_years(now, -years), shift_years(now, years)

    def check_date(self, d: date) -> date:
        lo, hi = self.window()
        if d < lo or d > hi:
            raise DateOutOfRange(
                f"date {d.isoformat()} is outside the allowed window "
                f"{lo.isoformat()} .. {hi.isoformat()}"
            )
        return d

    def check_range(self, start: date, end: date) -> Tuple[date, date]:
        """
        Validate [start, end] before any per-day work:
        order, span cap, then both ends against the window.
        """
        if start > end:
            raise InvalidDateRange(f"start {start.isoformat()} is after end {end.isoformat()}")

        span = (end - start).days
        if span > int(self.config.max_span_days):
            raise DateRangeTooLarge(
                f"range too large: {span} days (limit {self.config.max_span_days})"
            )

        self.check_date(start)
        self.check_date(end)
        return start, end
