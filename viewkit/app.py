"""
Aplicação FastAPI com settings, banco, logging e handlers configurados.

Uso:
    from viewkit import Router, create_app

    router = Router()
    router.register_viewset("/articles", ArticleViewSet)

    app = create_app(title="Blog API", routers=[router])

    # uvicorn main:app --reload
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from viewkit.config import Settings, get_settings
from viewkit.exceptions import register_exception_handlers
from viewkit.log import configure_logging
from viewkit.middleware import RequestLoggingMiddleware
from viewkit.models import close_database, create_tables, init_database

app_logger = logging.getLogger("viewkit.app")


class ViewKitApp:
    """
    Aplicação principal.

    Encapsula FastAPI com configurações e lifecycle management.

    Exemplo:
        app = ViewKitApp(title="My API", settings=MySettings())
        app.include_router(router)

        fastapi_app = app.app
    """

    def __init__(
        self,
        title: str | None = None,
        description: str = "",
        settings: Settings | None = None,
        routers: list[APIRouter] | None = None,
        on_startup: list[Callable] | None = None,
        on_shutdown: list[Callable] | None = None,
        auto_create_tables: bool | None = None,
        **fastapi_kwargs: Any,
    ) -> None:
        # ── Step 1: Settings e logging ──
        self.settings = settings or get_settings()
        configure_logging(self.settings)
        self._on_startup = on_startup or []
        self._on_shutdown = on_shutdown or []

        # auto_create_tables: parâmetro explícito > settings
        if auto_create_tables is not None:
            self._auto_create_tables = auto_create_tables
        else:
            self._auto_create_tables = self.settings.auto_create_tables

        # ── Step 2: FastAPI ──
        self.app = FastAPI(
            title=title or self.settings.app_name,
            description=description,
            version=self.settings.app_version,
            debug=self.settings.debug,
            lifespan=self._lifespan,
            **fastapi_kwargs,
        )
        self.app.state.settings = self.settings

        # ── Step 3: Middleware ──
        if self.settings.log_requests:
            self.app.add_middleware(RequestLoggingMiddleware, exclude_paths=["/healthz"])

        # ── Step 4: Exception handlers ──
        self._setup_exception_handlers()

        # ── Step 5: Routers ──
        for router in routers or []:
            self.include_router(router)

        # ── Step 6: Health check ──
        self._setup_health_checks()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self._startup()
        yield
        await self._shutdown()

    async def _startup(self) -> None:
        """
        Boot sequence:
        1. Database initialization
        2. Table creation (if configured)
        3. User startup callbacks
        """
        app_logger.info(
            "Starting %s (environment=%s, debug=%s)",
            self.settings.app_name,
            self.settings.environment,
            self.settings.debug,
        )

        await init_database(
            database_url=self.settings.database_url,
            echo=self.settings.database_echo,
            pool_size=self.settings.database_pool_size,
            max_overflow=self.settings.database_max_overflow,
        )

        if self._auto_create_tables:
            await create_tables()

        for callback in self._on_startup:
            result = callback()
            if hasattr(result, "__await__"):
                await result

        app_logger.info("Application started successfully")

    async def _shutdown(self) -> None:
        for callback in self._on_shutdown:
            result = callback()
            if hasattr(result, "__await__"):
                await result

        await close_database()
        app_logger.info("Application stopped")

    def _setup_exception_handlers(self) -> None:
        """Configura handlers de exceção."""
        register_exception_handlers(self.app)

        # Violação de UNIQUE/FK vira 409
        @self.app.exception_handler(IntegrityError)
        async def integrity_error_handler(
            request: Request,
            exc: IntegrityError,
        ) -> JSONResponse:
            app_logger.warning("IntegrityError on %s %s: %s", request.method, request.url.path, exc.orig)
            return JSONResponse(
                status_code=409,
                content={
                    "message": "Integrity constraint violated",
                    "code": "integrity_error",
                },
            )

        # Handler padrão para exceções não tratadas
        @self.app.exception_handler(Exception)
        async def generic_exception_handler(
            request: Request,
            exc: Exception,
        ) -> JSONResponse:
            app_logger.exception("Unhandled exception: %s", exc)
            content: dict[str, Any] = {
                "message": "Internal server error",
                "code": "internal_error",
            }
            if self.settings.debug and self.settings.environment != "production":
                content["type"] = type(exc).__name__
                content["details"] = {"error": str(exc)}
            return JSONResponse(status_code=500, content=content)

    def _setup_health_checks(self) -> None:
        @self.app.get("/healthz", tags=["health"], include_in_schema=False)
        async def healthz():
            return {"status": "alive"}

    def include_router(self, router: APIRouter, prefix: str = "") -> None:
        self.app.include_router(router, prefix=prefix)

    def on_startup(self, func: Callable) -> Callable:
        """
        Decorator para registrar callback de startup.

        Exemplo:
            @app.on_startup
            async def seed():
                ...
        """
        self._on_startup.append(func)
        return func

    def on_shutdown(self, func: Callable) -> Callable:
        self._on_shutdown.append(func)
        return func

    async def __call__(self, scope, receive, send):
        """Permite usar a instância diretamente como app ASGI."""
        await self.app(scope, receive, send)


def create_app(
    title: str | None = None,
    settings: Settings | None = None,
    **kwargs: Any,
) -> FastAPI:
    """
    Factory function para criar a aplicação FastAPI.

    Exemplo:
        app = create_app(title="Blog API", routers=[router])
    """
    return ViewKitApp(title=title, settings=settings, **kwargs).app
