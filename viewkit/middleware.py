"""
Middleware Pure ASGI de logging de requests.

Uso:
    app.add_middleware(RequestLoggingMiddleware, exclude_paths=["/healthz"])
"""
from __future__ import annotations

import logging
import time
from typing import Any

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class RequestLoggingMiddleware:
    """
    Loga cada request HTTP.

        -> GET /articles/?page=2
        <- 200 [0.004s]
    """

    logger_name: str = "viewkit.requests"
    exclude_paths: list[str] = []

    def __init__(self, app: ASGIApp, **kwargs: Any) -> None:
        self.app = app
        for key, value in kwargs.items():
            setattr(self, key, value)
        self.logger = logging.getLogger(self.logger_name)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if any(path.startswith(p) for p in self.exclude_paths):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        start = time.perf_counter()

        msg = f"-> {request.method} {request.url.path}"
        if request.query_params:
            msg += f"?{request.query_params}"
        self.logger.info(msg)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                duration = time.perf_counter() - start
                self.logger.info("<- %s [%.3fs]", message.get("status", 200), duration)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            self.logger.error("Error: %s: %s", type(exc).__name__, exc)
            raise
