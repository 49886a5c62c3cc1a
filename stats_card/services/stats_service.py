import logging
from collections.abc import Iterable
from datetime import date

import httpx

from stats_card.clients.github_client import GraphQLResponseError
from stats_card.clients.github_client import fetch_user_stats
from stats_card.models import DEFAULT_LANGUAGE_COLOR
from stats_card.models import ContributionCalendar
from stats_card.models import ContributionDay
from stats_card.models import LanguageAggregate
from stats_card.models import Repository
from stats_card.models import StreakResult
from stats_card.services.svg_renderer import render_stats_svg
from stats_card.settings import Settings


logger = logging.getLogger(__name__)


class MissingParameterError(Exception):
    """Raised when the account identifier is not supplied."""


class UpstreamFailureError(Exception):
    """Raised when the GitHub request fails at transport or HTTP level."""


class UpstreamDataError(Exception):
    """Raised when GitHub answers with errors or a malformed payload."""


def flatten_days(calendar: ContributionCalendar) -> list[ContributionDay]:
    """Concatenate all calendar weeks into one chronological day list."""

    return [day for week in calendar.weeks for day in week.contribution_days]


def compute_streaks(calendar: ContributionCalendar, today: date) -> StreakResult:
    """Compute current and longest streaks with a single backward scan.

    The current streak is the run ending at the most recent day; a run that
    resumes after a gap further back never counts as current. `today` is
    only used as the fallback date when the calendar holds no days.
    """

    days = flatten_days(calendar)

    current_streak = 0
    current_start: date | None = None
    current_open = True

    longest_streak = 0
    longest_start: date | None = None
    longest_end: date | None = None

    running = 0
    run_end: date | None = None

    for day in reversed(days):
        if day.count <= 0:
            running = 0
            run_end = None
            current_open = False
            continue

        running += 1
        if run_end is None:
            run_end = day.date

        if current_open:
            current_streak = running
            current_start = day.date

        if running > longest_streak:
            longest_streak = running
            longest_start = day.date
            longest_end = run_end

    fallback = days[0].date if days else today
    return StreakResult(
        current_streak=current_streak,
        current_streak_start=current_start,
        current_streak_end=days[-1].date if current_streak else None,
        longest_streak=longest_streak,
        longest_streak_start=longest_start or fallback,
        longest_streak_end=longest_end or fallback,
    )


def recent_window(
    calendar: ContributionCalendar, window_size: int = 90
) -> list[ContributionDay]:
    """Return the last `window_size` days, oldest first."""

    if window_size <= 0:
        return []
    return flatten_days(calendar)[-window_size:]


def aggregate_languages(
    repositories: Iterable[Repository], top_n: int = 5
) -> list[LanguageAggregate]:
    """Sum language sizes across repositories and rank the top `top_n`.

    Colour is taken from the first edge seen for a language. Percentages are
    relative to the total over every language, before truncation.
    """

    sizes: dict[str, int] = {}
    colors: dict[str, str] = {}
    for repository in repositories:
        for edge in repository.languages:
            sizes[edge.name] = sizes.get(edge.name, 0) + edge.size
            colors.setdefault(edge.name, edge.color or DEFAULT_LANGUAGE_COLOR)

    total_size = sum(sizes.values())
    if total_size == 0:
        return []

    languages = [
        LanguageAggregate(
            name=name,
            color=colors[name],
            size=size,
            percentage=round(size / total_size * 100, 2),
        )
        for name, size in sizes.items()
    ]
    languages.sort(key=lambda language: language.size, reverse=True)
    return languages[: max(top_n, 0)]


def build_stats_card(username: str, settings: Settings, today: date) -> str:
    """Fetch GitHub data for username and render the stats card SVG."""

    if not username:
        raise MissingParameterError("Username parameter is required")

    try:
        user_stats = fetch_user_stats(
            username=username,
            token=settings.github_token,
            graphql_url=settings.github_graphql_url,
        )
    except httpx.HTTPStatusError as exc:
        raise UpstreamFailureError(
            f"GitHub API responded with status {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise UpstreamFailureError(f"GitHub API request failed: {exc}") from exc
    except GraphQLResponseError as exc:
        raise UpstreamDataError(str(exc)) from exc
    except ValueError as exc:
        raise UpstreamDataError(f"GitHub response is malformed: {exc}") from exc

    calendar = user_stats.calendar
    streaks = compute_streaks(calendar, today)
    activity_days = recent_window(calendar, settings.activity_window_days)
    languages = aggregate_languages(user_stats.repositories, settings.top_languages)

    logger.debug(
        "Rendering stats card for %s: %d days, %d languages",
        username,
        len(activity_days),
        len(languages),
    )
    return render_stats_svg(
        total_contributions=calendar.total_contributions,
        streaks=streaks,
        activity_days=activity_days,
        languages=languages,
        created_at=user_stats.created_at.date(),
    )
