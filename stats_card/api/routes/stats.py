import logging
from datetime import UTC
from datetime import date
from datetime import datetime

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Response

from stats_card.services.stats_service import MissingParameterError
from stats_card.services.stats_service import UpstreamDataError
from stats_card.services.stats_service import UpstreamFailureError
from stats_card.services.stats_service import build_stats_card
from stats_card.settings import Settings


logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings() -> Settings:
    return Settings()


def get_today() -> date:
    """Return the current date in UTC."""

    return datetime.now(UTC).date()


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/api/stats")
def get_stats_card(
    username: str | None = Query(default=None),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
) -> Response:
    """Return the stats card SVG for a GitHub user."""

    try:
        svg = build_stats_card(
            username=(username or "").strip(),
            settings=settings,
            today=today,
        )
    except MissingParameterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (UpstreamFailureError, UpstreamDataError) as exc:
        logger.exception("Error generating stats for %s", username)
        raise HTTPException(status_code=500, detail=f"Error: {exc}") from exc

    return Response(
        content=svg,
        media_type="image/svg+xml",
        headers={"Cache-Control": f"public, max-age={settings.cache_max_age_seconds}"},
    )
