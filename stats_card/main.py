from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stats_card.api.routes.stats import router
from stats_card.core.observability import configure_logging
from stats_card.core.observability import init_sentry
from stats_card.settings import Settings


async def plain_text_http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Render HTTP errors as bare text for image-tag consumers."""

    return PlainTextResponse(
        str(exc.detail), status_code=exc.status_code, headers=exc.headers
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application with logging, Sentry and routes."""

    app_settings = app_settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    application = FastAPI(title="stats-card")
    application.add_exception_handler(
        StarletteHTTPException, plain_text_http_exception_handler
    )
    application.include_router(router)
    return application


app = create_app()
