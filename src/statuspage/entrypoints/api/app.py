"""FastAPI application definition."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from statuspage import __version__
from statuspage.core.exceptions import StatusPageError

from .deps import lifespan
from .routes import api_router, events_router

logger = structlog.get_logger()


async def _status_page_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StatusPageError)
    if exc.http_status >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.http_status == 401 else None
    return JSONResponse(
        status_code=exc.http_status, content={"error": exc.message}, headers=headers
    )


async def _http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HTTPException)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first["msg"]
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    """Build the application with routes, middleware and error handlers."""
    app = FastAPI(
        title="statuspage",
        description="Multi-tenant status pages with live incident updates",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StatusPageError, _status_page_error_handler)
    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # Include API routes
    app.include_router(api_router, prefix="/api")
    app.include_router(events_router)

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check endpoint, with entity counts when storage answers."""
        body: dict[str, Any] = {"status": "healthy"}
        store = getattr(request.app.state, "store", None)
        if store is None:
            return body
        try:
            body["counts"] = await store.get_counts()
        except StatusPageError as e:
            logger.warning("health_counts_unavailable", error=e.message)
        return body

    return app


app = create_app()
