from collections.abc import Mapping
from typing import Any

import httpx

from stats_card.models import GitHubUserStats


USER_STATS_QUERY = """
query($username: String!) {
  user(login: $username) {
    createdAt
    contributionsCollection {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            contributionCount
            date
          }
        }
      }
    }
    repositories(
      first: 100
      ownerAffiliations: OWNER
      orderBy: {field: UPDATED_AT, direction: DESC}
    ) {
      nodes {
        languages(first: 10, orderBy: {field: SIZE, direction: DESC}) {
          edges {
            size
            node {
              name
              color
            }
          }
        }
      }
    }
  }
}
"""


class GraphQLResponseError(ValueError):
    """Raised when the GraphQL payload reports application-level errors."""


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, Mapping) and isinstance(first.get("message"), str):
            return first["message"]
    return "GitHub GraphQL returned errors"


def fetch_user_stats(
    username: str,
    token: str | None,
    graphql_url: str,
) -> GitHubUserStats:
    """Fetch calendar, creation date and repository languages for a user."""

    headers = {
        "Content-Type": "application/json",
        "User-Agent": "stats-card",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    response = httpx.post(
        graphql_url,
        json={"query": USER_STATS_QUERY, "variables": {"username": username}},
        headers=headers,
        timeout=20.0,
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub GraphQL response is invalid")

    if payload.get("errors"):
        raise GraphQLResponseError(_first_error_message(payload["errors"]))

    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise ValueError("GitHub GraphQL data is missing")

    user = data.get("user")
    if not isinstance(user, Mapping):
        raise ValueError("GitHub user not found")

    collection = user.get("contributionsCollection")
    if not isinstance(collection, Mapping):
        raise ValueError("GitHub contributionsCollection is missing")

    repositories = user.get("repositories")
    if not isinstance(repositories, Mapping):
        raise ValueError("GitHub repositories are missing")

    return GitHubUserStats.model_validate(
        {
            "createdAt": user.get("createdAt"),
            "calendar": collection.get("contributionCalendar"),
            "repositories": repositories.get("nodes"),
        }
    )
