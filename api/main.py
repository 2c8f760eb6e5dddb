"""FastAPI application for the Golf Journal API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.backend import build_backend
from config import AppConfig, load_config
from session.errors import (
    AccountDeletionError,
    AuthError,
    BackendUnavailableError,
    GolfJournalError,
    NotAuthenticatedError,
    ValidationError,
)
from session.notifications import NotificationChannel
from session.router import GuardedRouter
from session.store import SessionStore

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS = (
    (AccountDeletionError, 500),
    (AuthError, 401),
    (NotAuthenticatedError, 401),
    (ValidationError, 422),
    (BackendUnavailableError, 503),
)


def status_for(exc: GolfJournalError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build adapters and start the session on startup, tear down on shutdown."""
    config: AppConfig = app.state.config
    backend = await build_backend(config)
    session = SessionStore(backend.auth, backend.db)
    await session.start()
    router = GuardedRouter(session)
    router.start()

    app.state.backend = backend
    app.state.db_manager = backend.db
    app.state.storage = backend.storage
    app.state.session = session
    app.state.router = router
    app.state.notifications = NotificationChannel(ttl=config.notification_ttl)
    try:
        yield
    finally:
        router.close()
        await session.close()
        await backend.close()


async def handle_golf_journal_error(request: Request, exc: GolfJournalError) -> JSONResponse:
    status_code = status_for(exc)
    body = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, AccountDeletionError):
        body.update(
            partial=exc.partial,
            completed_steps=list(exc.completed_steps),
            failed_step=exc.failed_step,
        )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=body)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Golf Journal API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(GolfJournalError, handle_golf_journal_error)

    from api.routers import account, auth, courses, notifications, rounds, views
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(views.router, prefix="/api/views", tags=["views"])
    app.include_router(rounds.router, prefix="/api/rounds", tags=["rounds"])
    app.include_router(courses.router, prefix="/api/courses", tags=["courses"])
    app.include_router(account.router, prefix="/api", tags=["account"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])

    @app.get("/api/health")
    async def health(request: Request):
        healthy = await request.app.state.backend.health_check()
        return {"status": "ok" if healthy else "degraded", "database": healthy}

    return app


app = create_app()
