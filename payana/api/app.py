"""FastAPI application factory for the presentation surface."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payana.api.surface import Surface
from payana.config.settings import Settings, get_settings
from payana.shared.errors import PayanaError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx
    from fastapi import APIRouter


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load initial state and poll while the surface is up.

    Args:
        app: FastAPI application instance.

    Yields:
        Control to the running application.
    """
    surface: Surface = app.state.surface
    await surface.start()
    yield
    await surface.stop()


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to get_settings().
        transport: Optional httpx transport for the remote client.

    Returns:
        Configured FastAPI instance.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Payana",
        description="Ride orchestration client",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.surface = Surface.from_settings(settings, transport=transport)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PayanaError, _payana_error_handler)

    from payana.api.intents import router as intents_router
    from payana.api.intents import ws_router

    app.include_router(_health_router())
    app.include_router(intents_router)
    app.include_router(ws_router)
    return app


async def _payana_error_handler(request: Request, exc: PayanaError) -> JSONResponse:
    """Turn an orchestration error into a transient notification.

    The user must re-issue the action; nothing is retried.

    Args:
        request: Request that failed.
        exc: The raised error.

    Returns:
        JSON error response carrying the notification text.
    """
    surface: Surface = request.app.state.surface
    surface.notify(exc.message, level="error")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


def _health_router() -> APIRouter:
    """Create health check router.

    Returns:
        Router with health endpoints.
    """
    from fastapi import APIRouter

    router = APIRouter(tags=["health"])

    @router.get("/health")
    async def health() -> dict[str, str]:
        """Return application health status."""
        return {"status": "ok"}

    return router


app = create_app()
