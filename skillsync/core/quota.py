"""
Per-user daily hint quota.
"""

from collections import defaultdict
from datetime import date
from typing import Callable, Dict, Optional

from skillsync.shared.exceptions import QuotaExceededError
from skillsync.shared.logging import get_logger

logger = get_logger(__name__)

ANONYMOUS_USER = "anonymous"


class DailyHintQuota:
    """
    In-memory hint counter per user and server-local calendar day.

    Days roll over by date equality, not by a rolling 24h window. Counters
    for past days are kept but never read again.
    """

    def __init__(self, limit: int = 5, today: Callable[[], date] = date.today):
        self.limit = limit
        self._today = today
        # user_key -> day -> hints issued
        self._counts: Dict[str, Dict[date, int]] = defaultdict(dict)

    def count(self, user_key: str, day: Optional[date] = None) -> int:
        day = day or self._today()
        return self._counts.get(user_key, {}).get(day, 0)

    def remaining(self, user_key: str, day: Optional[date] = None) -> int:
        return max(0, self.limit - self.count(user_key, day))

    def check(self, user_key: str, day: Optional[date] = None):
        """Raise QuotaExceededError if no hint is left today."""
        if self.count(user_key, day) >= self.limit:
            logger.info(
                "Daily hint limit reached",
                extra={"user_id": user_key, "action": "hint", "limit": self.limit},
            )
            raise QuotaExceededError(user_key=user_key)

    def try_consume(self, user_key: str, day: Optional[date] = None) -> bool:
        """Count one hint. Returns False, without counting, once the limit is reached."""
        day = day or self._today()
        used = self.count(user_key, day)
        if used >= self.limit:
            return False
        self._counts[user_key][day] = used + 1
        return True

    def reserve(self, user_key: str) -> date:
        """
        Take one hint slot before the oracle is called.

        Returns the day the slot was counted against, for release(). Raises
        QuotaExceededError when today's hints are used up, including slots
        held by requests that are still in flight.
        """
        day = self._today()
        self.check(user_key, day)
        self._counts[user_key][day] = self.count(user_key, day) + 1
        return day

    def release(self, user_key: str, day: date):
        """Give back a slot taken by reserve() when the hint was not delivered."""
        used = self.count(user_key, day)
        if used > 0:
            self._counts[user_key][day] = used - 1

    def reset(self, user_key: Optional[str] = None):
        """Forget all counters, or only those of one user."""
        if user_key is None:
            self._counts.clear()
        else:
            self._counts.pop(user_key, None)
