from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tennismate.core.config import settings
from tennismate.core.database import dispose_engine, init_models
from tennismate.core.exceptions import (
    InvalidTransitionError,
    MatchNotFoundError,
    NotificationNotFoundError,
    NotParticipantError,
    ProposalNotFoundError,
    SelfSwipeError,
    TennisMateError,
)
from tennismate.core.logging import RequestContextMiddleware, configure_logging
from tennismate.core.realtime import realtime_hub
from tennismate.core.redis import close_redis_pool, ping_redis
from tennismate.core.websocket_manager import connection_manager
from tennismate.api.v1 import discovery, swipes, matches, proposals, messages, notifications
from tennismate.api.v1 import websocket

logger = logging.getLogger(__name__)

# Domain error → HTTP status
_ERROR_STATUS = {
    SelfSwipeError: status.HTTP_400_BAD_REQUEST,
    NotParticipantError: status.HTTP_403_FORBIDDEN,
    MatchNotFoundError: status.HTTP_404_NOT_FOUND,
    ProposalNotFoundError: status.HTTP_404_NOT_FOUND,
    NotificationNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.app_env, settings.log_level)
    if settings.create_tables_on_startup:
        await init_models()
    await realtime_hub.start()
    logger.info(f"TennisMate API started (env={settings.app_env}, realtime={settings.realtime_backend})")
    try:
        yield
    finally:
        await realtime_hub.stop()
        await close_redis_pool()
        await dispose_engine()


app = FastAPI(
    title="TennisMate API",
    description="Matching, chat and session scheduling backend for TennisMate",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(TennisMateError)
async def domain_error_handler(request: Request, exc: TennisMateError):
    code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable"},
    )


# Include API routers
app.include_router(discovery.router, prefix="/api/v1/discover", tags=["Discovery"])
app.include_router(swipes.router, prefix="/api/v1/swipes", tags=["Swipes"])
app.include_router(matches.router, prefix="/api/v1/matches", tags=["Matches"])
app.include_router(proposals.router, prefix="/api/v1/proposals", tags=["Proposals"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["Chat"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
# WebSocket endpoint for live chat and unread counters
app.include_router(websocket.router, tags=["WebSocket"])


@app.get("/healthz")
async def health_check():
    """Health check endpoint"""
    body = {
        "status": "ok",
        "version": "1.0.0",
        "realtime_backend": realtime_hub.backend,
        "websockets": connection_manager.get_connection_count(),
    }
    if realtime_hub.backend == "redis":
        body["redis"] = "ok" if await ping_redis() else "unavailable"
    return body


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "TennisMate API", "docs": "/docs"}
