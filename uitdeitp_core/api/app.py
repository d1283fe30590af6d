"""
Application Factory
===================
FastAPI app exposing verification, opt-out, kiosk and cron endpoints.

Usage:
    uvicorn uitdeitp_core.api.app:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, get_settings
from ..errors import INTERNAL_ERROR_MESSAGE, INVALID_DATA_MESSAGE, RateLimited, UitdeitpError
from ..health import create_health_router
from ..log_setup import RequestContextMiddleware, setup_logging
from ..services import Services, build_services
from .dependencies import apply_rate_limit_headers, client_ip
from .routes import cron_router, kiosk_router, opt_out_router, verification_router

logger = structlog.get_logger(__name__)


def setup_cors(app: FastAPI, origins: list) -> None:
    """CORS for the web client. No origins configured means no CORS headers."""
    if not origins:
        return
    if "*" in origins:
        logger.warning("CORS wildcard detected! This is insecure in production.", origins=origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )
    logger.info("CORS configured", origins_count=len(origins))


def _error_body(message: str, code: str) -> dict:
    return {"success": False, "error": message, "code": code}


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(UitdeitpError)
    async def handle_domain_error(request: Request, exc: UitdeitpError):
        response = JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code),
        )
        apply_rate_limit_headers(response, exc.rate_limit)
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, code=exc.code, reason=exc.reason)
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info("Invalid request body", path=request.url.path, errors=len(exc.errors()))
        info = None
        path = request.url.path
        if path.startswith(verification_router.prefix + "/"):
            # Malformed verification bodies still spend the caller's IP budget
            verification = request.app.state.services.verification
            try:
                info = await verification.charge_rejected_request(
                    path.rsplit("/", 1)[-1], client_ip(request)
                )
            except RateLimited as limited:
                return await handle_domain_error(request, limited)

        response = JSONResponse(
            status_code=400,
            content=_error_body(INVALID_DATA_MESSAGE, "VALIDATION_ERROR"),
        )
        apply_rate_limit_headers(response, info)
        return response

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body(INTERNAL_ERROR_MESSAGE, "INTERNAL_ERROR"),
        )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[Services] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to the environment
        services: Pre-built container (tests); built from settings otherwise
        configure_logging: Install the structlog configuration

    Returns:
        FastAPI application
    """
    settings = settings or (services.settings if services else get_settings())

    if configure_logging:
        setup_logging(settings.service_name, settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = services or await build_services(settings)
        logger.info("Service started", environment=settings.environment, version=__version__)
        try:
            yield
        finally:
            if owned:
                await app.state.services.aclose()
            logger.info("Service stopped")

    app = FastAPI(title="uitdeITP core", version=__version__, lifespan=lifespan)

    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    setup_cors(app, settings.cors_origins)

    app.include_router(create_health_router(settings.service_name, __version__))
    app.include_router(verification_router)
    app.include_router(opt_out_router)
    app.include_router(kiosk_router)
    app.include_router(cron_router)

    return app
