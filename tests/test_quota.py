from datetime import datetime

import pytest

from leadgen.errors import QuotaExceededError
from leadgen.quota import DailyGenerationQuota


def test_limit_is_enforced_per_day():
    morning = datetime(2026, 3, 1, 9, 0)
    quota = DailyGenerationQuota(limit=2)

    assert quota.check_and_increment(morning) == 1
    assert quota.check_and_increment(morning) == 0
    with pytest.raises(QuotaExceededError):
        quota.check_and_increment(morning)
    assert quota.remaining(morning) == 0


def test_count_resets_on_a_new_date():
    quota = DailyGenerationQuota(limit=1)
    quota.check_and_increment(datetime(2026, 3, 1, 23, 59))

    assert quota.remaining(datetime(2026, 3, 2, 0, 1)) == 1
    quota.check_and_increment(datetime(2026, 3, 2, 0, 1))


def test_injected_clock_is_used():
    now = [datetime(2026, 3, 1, 12, 0)]
    quota = DailyGenerationQuota(limit=1, clock=lambda: now[0])

    quota.check_and_increment()
    with pytest.raises(QuotaExceededError):
        quota.check_and_increment()

    now[0] = datetime(2026, 3, 2, 12, 0)
    assert quota.remaining() == 1
