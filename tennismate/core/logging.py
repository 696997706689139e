"""
Structured logging for the TennisMate API.

Every record, whether it comes from structlog or from a plain
``logging.getLogger(__name__)`` call, is rendered by one structlog formatter:
coloured console lines when ``app_env`` is "dev", one JSON object per line
everywhere else. Context bound with ``structlog.contextvars`` (``request_id``
and ``path`` per HTTP request, ``user_id`` per websocket session) is merged
into each record.
"""

import logging
import sys
import uuid

import structlog
from starlette.types import ASGIApp, Receive, Scope, Send

REQUEST_ID_HEADER = "x-request-id"

# Loggers that flood the output outside development
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "websockets.protocol")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(app_env: str = "dev", level: str = "INFO") -> None:
    """
    Route stdlib and structlog output through a single handler on stdout.

    Args:
        app_env: "dev" selects the console renderer, anything else JSON
        level: Root log level name
    """
    shared = _shared_processors()
    renderer = (
        structlog.dev.ConsoleRenderer()
        if app_env == "dev"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    if app_env != "dev":
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


class RequestContextMiddleware:
    """
    Bind ``request_id`` and ``path`` for the lifetime of each HTTP request.

    The id is taken from the incoming ``X-Request-ID`` header when present and
    echoed back on the response. Websocket scopes are left alone; the
    websocket endpoint binds its own ``user_id`` after authentication.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        request_id = headers.get(REQUEST_ID_HEADER.encode(), b"").decode() or uuid.uuid4().hex

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                message["headers"] = list(message.get("headers", [])) + [
                    (REQUEST_ID_HEADER.encode(), request_id.encode())
                ]
            await send(message)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=scope.get("path"))
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            structlog.contextvars.clear_contextvars()
