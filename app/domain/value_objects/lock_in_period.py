"""Lock-in period value object."""

import calendar
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LockInPeriod:
    """Number of calendar months a lead stays assigned before it may be reclaimed."""

    months: int

    ALLOWED_MONTHS = (1, 3, 6)

    def __post_init__(self) -> None:
        """Validate lock-in period."""
        if self.months <= 0:
            raise ValueError("Lock-in period must be positive")
        if self.months not in self.ALLOWED_MONTHS:
            raise ValueError("Lock-in period must be 1, 3, or 6 months")

    def expires_at(self, start: datetime) -> datetime:
        """
        Compute the lock deadline using calendar-month arithmetic.

        The day of month is clamped to the last day of the target month, so a
        lock starting on 31 January for one month ends on the last day of
        February.

        Args:
            start: Lock start time (timezone-aware)

        Returns:
            Deadline with the same time of day and timezone as start
        """
        month_index = start.month - 1 + self.months
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        last_day = calendar.monthrange(year, month)[1]
        return start.replace(year=year, month=month, day=min(start.day, last_day))
