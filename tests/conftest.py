from collections.abc import Callable
from datetime import date
from datetime import timedelta

import pytest

from stats_card.models import ContributionCalendar
from stats_card.models import ContributionDay
from stats_card.models import ContributionWeek


@pytest.fixture
def make_calendar() -> Callable[..., ContributionCalendar]:
    """Build a calendar of consecutive days split into 7-day weeks."""

    def build(counts: list[int], start: date = date(2024, 1, 1)) -> ContributionCalendar:
        days = [
            ContributionDay(date=start + timedelta(days=offset), count=count)
            for offset, count in enumerate(counts)
        ]
        weeks = [
            ContributionWeek(contribution_days=days[index : index + 7])
            for index in range(0, len(days), 7)
        ]
        return ContributionCalendar(total_contributions=sum(counts), weeks=weeks)

    return build
