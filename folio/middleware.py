"""
Per-request diagnostics: one access-log line and two response headers.

``X-Response-Time-Ms`` is the time until the response started and
``X-Query-Count`` is the number of SQL statements the request executed,
eager loads included.
"""
import logging
import time
from contextvars import ContextVar
from dataclasses import dataclass, field

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


@dataclass
class RequestStats:
    started: float = field(default_factory=time.perf_counter)
    statements: int = 0

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)


current_stats: ContextVar[RequestStats | None] = ContextVar("current_stats", default=None)


def count_statements(engine: AsyncEngine) -> None:
    """Attribute every statement *engine* executes to the request in progress."""

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _on_execute(conn, cursor, statement, parameters, context, executemany):
        stats = current_stats.get()
        if stats is not None:
            stats.statements += 1


class RequestLogMiddleware:
    # Pure ASGI: BaseHTTPMiddleware runs the app in a child task.

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        stats = RequestStats()
        token = current_stats.set(stats)

        async def send_with_stats(message: Message) -> None:
            if message["type"] == "http.response.start":
                elapsed = stats.elapsed_ms()
                headers = MutableHeaders(scope=message)
                headers.append("x-response-time-ms", str(elapsed))
                headers.append("x-query-count", str(stats.statements))
                logger.info(
                    "%s %s -> %d (%.2f ms, %d queries)",
                    scope["method"], scope["path"], message["status"], elapsed, stats.statements,
                )
            await send(message)

        try:
            await self.app(scope, receive, send_with_stats)
        finally:
            current_stats.reset(token)
