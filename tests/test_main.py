from datetime import date
from datetime import datetime
from datetime import UTC

import httpx
import pytest
from fastapi.testclient import TestClient

from stats_card.api.routes.stats import get_settings
from stats_card.api.routes.stats import get_today
from stats_card.clients.github_client import GraphQLResponseError
from stats_card.main import create_app
from stats_card.models import GitHubUserStats
from stats_card.models import Repository
from stats_card.models import RepositoryLanguageEdge
from stats_card.settings import Settings


@pytest.fixture
def client() -> TestClient:
    app = create_app(Settings(sentry_dsn=None))
    app.dependency_overrides[get_settings] = lambda: Settings(
        github_token="secret", sentry_dsn=None
    )
    app.dependency_overrides[get_today] = lambda: date(2024, 1, 21)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def user_stats(make_calendar) -> GitHubUserStats:
    return GitHubUserStats(
        created_at=datetime(2020, 10, 12, tzinfo=UTC),
        calendar=make_calendar([1] * 20 + [0]),
        repositories=[
            Repository(
                languages=[RepositoryLanguageEdge(name="Go", size=800, color="#00ADD8")]
            ),
            Repository(
                languages=[
                    RepositoryLanguageEdge(name="Go", size=200, color="#00ADD8"),
                    RepositoryLanguageEdge(name="Rust", size=1000, color="#dea584"),
                ]
            ),
        ],
    )


def test_health_live_returns_ok(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_stats_requires_username(client: TestClient) -> None:
    response = client.get("/api/stats")

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Username parameter is required"


def test_stats_rejects_blank_username(client: TestClient) -> None:
    response = client.get("/api/stats", params={"username": "  "})

    assert response.status_code == 400
    assert "<svg" not in response.text


def test_stats_returns_svg_with_cache_header(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
    user_stats: GitHubUserStats,
) -> None:
    def fake_fetch_user_stats(username: str, token: str | None, graphql_url: str):
        assert username == "octocat"
        assert token == "secret"
        assert graphql_url == "https://api.github.com/graphql"
        return user_stats

    monkeypatch.setattr(
        "stats_card.services.stats_service.fetch_user_stats", fake_fetch_user_stats
    )

    response = client.get("/api/stats", params={"username": "octocat"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/svg+xml"
    assert response.headers["cache-control"] == "public, max-age=14400"
    assert response.text.startswith("<svg ")
    assert ">20</text>" in response.text
    assert "Jan 1, 2024 - Jan 20, 2024" in response.text
    assert "Go 50.00%" in response.text
    assert "Rust 50.00%" in response.text
    assert response.text.index("Go 50.00%") < response.text.index("Rust 50.00%")


def test_stats_is_deterministic(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
    user_stats: GitHubUserStats,
) -> None:
    monkeypatch.setattr(
        "stats_card.services.stats_service.fetch_user_stats",
        lambda **kwargs: user_stats,
    )

    first = client.get("/api/stats", params={"username": "octocat"})
    second = client.get("/api/stats", params={"username": "octocat"})

    assert first.content == second.content


def test_stats_returns_500_for_graphql_errors(
    monkeypatch: pytest.MonkeyPatch, client: TestClient
) -> None:
    def fake_fetch_user_stats(**kwargs):
        raise GraphQLResponseError("Could not resolve to a User")

    monkeypatch.setattr(
        "stats_card.services.stats_service.fetch_user_stats", fake_fetch_user_stats
    )

    response = client.get("/api/stats", params={"username": "ghost"})

    assert response.status_code == 500
    assert response.text == "Error: Could not resolve to a User"


def test_stats_returns_500_for_upstream_status(
    monkeypatch: pytest.MonkeyPatch, client: TestClient
) -> None:
    def fake_fetch_user_stats(**kwargs):
        request = httpx.Request("POST", "https://api.github.com/graphql")
        response = httpx.Response(502, request=request)
        raise httpx.HTTPStatusError("bad gateway", request=request, response=response)

    monkeypatch.setattr(
        "stats_card.services.stats_service.fetch_user_stats", fake_fetch_user_stats
    )

    response = client.get("/api/stats", params={"username": "octocat"})

    assert response.status_code == 500
    assert response.text == "Error: GitHub API responded with status 502"


def test_stats_returns_500_for_transport_error(
    monkeypatch: pytest.MonkeyPatch, client: TestClient
) -> None:
    def fake_fetch_user_stats(**kwargs):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(
        "stats_card.services.stats_service.fetch_user_stats", fake_fetch_user_stats
    )

    response = client.get("/api/stats", params={"username": "octocat"})

    assert response.status_code == 500
    assert response.text.startswith("Error: GitHub API request failed")
    assert "<svg" not in response.text


def test_stats_returns_500_for_malformed_payload(
    monkeypatch: pytest.MonkeyPatch, client: TestClient
) -> None:
    def fake_fetch_user_stats(**kwargs):
        raise ValueError("GitHub user not found")

    monkeypatch.setattr(
        "stats_card.services.stats_service.fetch_user_stats", fake_fetch_user_stats
    )

    response = client.get("/api/stats", params={"username": "octocat"})

    assert response.status_code == 500
    assert response.text == "Error: GitHub response is malformed: GitHub user not found"


def test_settings_reads_token_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    monkeypatch.setenv("CACHE_MAX_AGE_SECONDS", "600")

    settings = Settings()

    assert settings.github_token == "env-token"
    assert settings.cache_max_age_seconds == 600
