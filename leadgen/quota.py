import logging
from datetime import date, datetime
from typing import Callable, Optional

from leadgen.errors import QuotaExceededError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DailyGenerationQuota:
    """
    Caps how many generation runs may start per calendar day.

    The clock is injected so callers and tests decide what "today" is; the
    count resets the first time a new date is seen.
    """

    def __init__(self, limit: int = 10, clock: Clock = datetime.now):
        self.limit = limit
        self._clock = clock
        self._day: Optional[date] = None
        self._count = 0

    def _roll(self, now: datetime) -> None:
        if self._day != now.date():
            self._day = now.date()
            self._count = 0

    def remaining(self, now: Optional[datetime] = None) -> int:
        self._roll(now or self._clock())
        return max(0, self.limit - self._count)

    def check_and_increment(self, now: Optional[datetime] = None) -> int:
        """Count one run for today and return how many are left; raise when none are."""
        self._roll(now or self._clock())
        if self._count >= self.limit:
            logger.warning(f"Daily generation limit of {self.limit} reached")
            raise QuotaExceededError()
        self._count += 1
        return self.limit - self._count
