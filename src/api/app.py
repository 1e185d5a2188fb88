"""HTTP surface: the /feed endpoint and its CORS policy."""

import structlog
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from src.api.responses import to_service_response
from src.fetch.client import FeedResolver
from src.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

HTTP_STATUS_BAD_REQUEST = 400

router = APIRouter()


def get_resolver(request: Request) -> FeedResolver:
    """Return the resolver attached to the running application."""
    resolver: FeedResolver = request.app.state.resolver
    return resolver


@router.get("/feed")
async def get_feed(
    url: str | None = Query(default=None, description="Feed URL to relay"),
    resolver: FeedResolver = Depends(get_resolver),
) -> Response:
    """Fetch a third-party feed and return it as JSON.

    Upstream non-2xx statuses are passed through with an empty body; every
    other failure is an empty 500.
    """
    if not url:
        raise HTTPException(
            status_code=HTTP_STATUS_BAD_REQUEST,
            detail="Missing required query parameter: url",
        )

    logger.debug("feed_requested", component="api", url=redact_url_credentials(url))

    outcome = await resolver.resolve(url)
    result = to_service_response(outcome)

    if result.body is None:
        return Response(status_code=result.status_code)
    return JSONResponse(content=result.body, status_code=result.status_code)


def create_app(resolver: FeedResolver | None = None) -> FastAPI:
    """Build the relay application.

    Args:
        resolver: Resolver to serve requests with (default configuration if None).

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="rssss",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.resolver = resolver or FeedResolver()

    # Reachable from any browser origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router)
    return app
