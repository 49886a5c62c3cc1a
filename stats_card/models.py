from collections.abc import Mapping
from datetime import date
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator


DEFAULT_LANGUAGE_COLOR = "#858585"


class ContributionDay(BaseModel):
    """Single calendar day with its contribution count."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: date
    count: int = Field(ge=0, alias="contributionCount")


class ContributionWeek(BaseModel):
    """Week bucket as returned by the contribution calendar."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    contribution_days: list[ContributionDay] = Field(alias="contributionDays")


class ContributionCalendar(BaseModel):
    """Chronologically ordered weeks plus the calendar total."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_contributions: int = Field(ge=0, alias="totalContributions")
    weeks: list[ContributionWeek]


class RepositoryLanguageEdge(BaseModel):
    """Byte size of one language inside one repository."""

    model_config = ConfigDict(frozen=True)

    name: str
    color: str | None = None
    size: int = Field(ge=0)

    @model_validator(mode="before")
    @classmethod
    def flatten_node(cls, data: Any) -> Any:
        # GraphQL edges nest name/color under "node".
        if isinstance(data, Mapping) and isinstance(data.get("node"), Mapping):
            node = data["node"]
            return {
                "name": node.get("name"),
                "color": node.get("color"),
                "size": data.get("size"),
            }
        return data


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    languages: list[RepositoryLanguageEdge]

    @field_validator("languages", mode="before")
    @classmethod
    def unwrap_edges(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return value.get("edges")
        return value


class GitHubUserStats(BaseModel):
    """Fixed-shape data source response for one account."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    created_at: datetime = Field(alias="createdAt")
    calendar: ContributionCalendar
    repositories: list[Repository]


class LanguageAggregate(BaseModel):
    """Language totals summed across every repository."""

    model_config = ConfigDict(frozen=True)

    name: str
    color: str = DEFAULT_LANGUAGE_COLOR
    size: int
    percentage: float


class StreakResult(BaseModel):
    """Current and longest contribution streaks.

    Current streak dates are None when the most recent day has no
    contributions.
    """

    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(ge=0)
    current_streak_start: date | None = None
    current_streak_end: date | None = None
    longest_streak: int = Field(ge=0)
    longest_streak_start: date
    longest_streak_end: date
