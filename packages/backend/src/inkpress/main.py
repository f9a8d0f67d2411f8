"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The Settings it is given are the only configuration the app
sees: they are kept on app.state along with the database engine, the
session factory and the mailer, and handed down through dependencies.
Lifespan manages the Redis pool and engine shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inkpress import __version__
from inkpress.api import api_router
from inkpress.cache import close_redis, init_redis
from inkpress.config import Settings, get_settings
from inkpress.db.engine import build_engine, build_session_factory
from inkpress.services.mailer import HttpMailer, Mailer

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Redis is optional — without it only rate limiting is off.
    """
    settings: Settings = app.state.settings
    logger.info(
        "inkpress.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    try:
        app.state.redis = await init_redis(settings)
        logger.info("inkpress.redis_connected")
    except Exception as e:
        app.state.redis = None
        logger.warning("inkpress.redis_unavailable", error=str(e))

    yield

    logger.info("inkpress.shutdown")
    await close_redis(app.state.redis)
    app.state.redis = None
    await app.state.engine.dispose()


# Account routes whose failures read {"message": ...}; the rest of
# /api/auth answers with {"error": ...}
_MESSAGE_KEY_PATHS = ("/api/auth/signup", "/api/auth/signin", "/api/auth/signout")


def _error_key(path: str) -> str:
    path = path.rstrip("/")
    if path.startswith("/api/auth/") and path not in _MESSAGE_KEY_PATHS:
        return "error"
    return "message"


async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed JSON or wrongly typed fields; never echo the input back
    logger.info("request.invalid_body", errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={_error_key(request.url.path): "Invalid request body"},
    )


def create_app(
    settings: Optional[Settings] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Inkpress",
        description="Blogging platform backend — accounts and blog feed",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.mailer = mailer or HttpMailer(settings)
    app.state.redis = None

    app.add_exception_handler(RequestValidationError, _invalid_body)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from inkpress.middleware.rate_limit import RateLimitMiddleware
    from inkpress.middleware.request_id import RequestIdMiddleware
    from inkpress.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    # Cookies cross origins (client dev server → API), so credentials on
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app
