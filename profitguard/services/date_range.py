"""Calendar date ranges for history and analytics filters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

PRESETS = ("7days", "30days", "quarter", "year")


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` range of calendar days.

    The range only filters when both bounds are set; ``end`` covers the whole
    of that day.
    """
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None

    def bounds(self) -> Optional[tuple[datetime, datetime]]:
        """UTC ``(lower, upper)`` datetimes; lower inclusive, upper exclusive."""
        if not self.is_bounded:
            return None
        lower = datetime.combine(self.start, time.min, tzinfo=timezone.utc)
        if self.end >= date.max:
            # No next day to stop before; the range runs to the end of time
            upper = datetime.max.replace(tzinfo=timezone.utc)
        else:
            upper = datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=timezone.utc)
        return lower, upper

    @classmethod
    def preset(cls, name: str, today: Optional[date] = None) -> "DateRange":
        today = today or datetime.now(timezone.utc).date()

        if name == "7days":
            return cls(today - timedelta(days=7), today)
        if name == "30days":
            return cls(today - timedelta(days=30), today)
        if name == "quarter":
            # Previous calendar quarter
            first_month = (today.month - 1) // 3 * 3 + 1
            this_quarter = date(today.year, first_month, 1)
            end = this_quarter - timedelta(days=1)
            start = date(end.year, (end.month - 1) // 3 * 3 + 1, 1)
            return cls(start, end)
        if name == "year":
            return cls(date(today.year, 1, 1), today)
        raise ValueError(f"Unknown date preset: {name}")
