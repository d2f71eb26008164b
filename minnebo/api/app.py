"""FastAPI application factory.

Creates the app, registers routers and error handlers, and wires up
lifespan events (component startup and background maintenance).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from minnebo import __version__
from minnebo.api import deps
from minnebo.api.models import HealthResponse
from minnebo.api.routes_chat import router as chat_router
from minnebo.api.routes_feedback import router as feedback_router
from minnebo.api.routes_preview import router as preview_router
from minnebo.api.routes_share import router as share_router
from minnebo.config import Config
from minnebo.errors import MinneboError, RateLimited, ValidationError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup, stop maintenance on shutdown."""
    if not deps.is_initialized():
        logger.info("Starting Minnebo API...")
        deps.init_components(app.state.config)
        logger.info("Startup complete")

    scheduler = deps.get_scheduler() if deps.get_app_config().maintenance_enabled else None
    if scheduler is not None:
        scheduler.start()
    yield
    if scheduler is not None:
        await scheduler.stop()
    logger.info("Shutting down")


def create_app(config: Config | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or Config()
    app = FastAPI(
        title="Minnebo",
        description="Mystic chat proxy with rate limiting, challenges and signed sharing.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    # CORS: explicit origins only, never a wildcard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=86400,
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(MinneboError)
    async def handle_minnebo_error(request: Request, exc: MinneboError):
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_body(request: Request, exc: RequestValidationError):
        # Field names only: pydantic errors carry the submitted input
        fields = sorted({".".join(str(p) for p in err["loc"][1:])[:64] or "body" for err in exc.errors()})
        error = ValidationError(f"Invalid request field(s): {', '.join(fields)}")
        return JSONResponse(error.to_dict(), status_code=error.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # Type only: error objects may carry payloads or upstream detail
        logger.error("Unhandled %s on %s", type(exc).__name__, request.url.path)
        return JSONResponse(
            {"detail": "Internal server error", "code": "internal_error"},
            status_code=500,
        )

    # API routers
    app.include_router(chat_router, prefix="/api")
    app.include_router(share_router, prefix="/api")
    app.include_router(feedback_router, prefix="/api")
    app.include_router(preview_router, prefix="/api")

    @app.get(
        "/api/health",
        response_model=HealthResponse,
        tags=["health"],
        dependencies=[Depends(deps.require_allowed_host)],
    )
    def health_check():
        gatekeeper = deps.get_gatekeeper()
        return HealthResponse(
            status="ok",
            llm_backend=deps.get_oracle().llm.backend_name,
            active_challenges=len(gatekeeper.challenges),
            active_shares=len(deps.get_share_store()),
            tracked_fingerprints=gatekeeper.limiter.tracked_fingerprints,
            tor_exit_nodes=gatekeeper.tor.node_count,
        )

    return app


app = create_app()
