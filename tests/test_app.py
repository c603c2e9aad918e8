"""
Testes da aplicação: lifecycle, middleware e handlers.
"""

import logging

import pytest
from httpx import ASGITransport, AsyncClient

from viewkit.app import ViewKitApp, create_app
from viewkit.config import Settings
from viewkit.exceptions import NotFound
from viewkit.routing import Router

from example.views import CategoryViewSet


def memory_settings(**overrides):
    return Settings(database_url="sqlite+aiosqlite:///:memory:", **overrides)


@pytest.mark.asyncio
async def test_lifespan_runs_callbacks():
    calls = []
    app = ViewKitApp(settings=memory_settings(auto_create_tables=True))

    @app.on_startup
    async def started():
        calls.append("startup")

    @app.on_shutdown
    def stopped():
        calls.append("shutdown")

    await app._startup()
    await app._shutdown()

    assert calls == ["startup", "shutdown"]


def test_create_app_registers_routes():
    router = Router()
    router.register_viewset("/tags", CategoryViewSet, basename="tags")

    app = create_app(title="Tags", settings=memory_settings(), routers=[router])

    names = {route.name for route in app.routes}
    assert {"tags-list", "tags-create", "tags-retrieve", "tags-destroy"} <= names
    assert "tags-list-deleted" not in names
    assert app.title == "Tags"


def test_router_keeps_registered_viewsets():
    router = Router()
    router.register_viewset("/categories/", CategoryViewSet)

    assert router.viewsets == [("/categories", CategoryViewSet)]


@pytest.mark.asyncio
async def test_viewkit_exceptions_become_json():
    app = create_app(settings=memory_settings(log_requests=False))

    @app.get("/boom")
    async def boom():
        raise NotFound.for_model("Thing", id=1)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/boom")

    assert response.status_code == 404
    assert response.json() == {
        "message": "Thing with id=1 not found",
        "code": "thing_not_found",
        "details": {"model": "Thing", "lookup": {"id": "1"}},
    }


@pytest.mark.asyncio
async def test_request_logging(client, caplog):
    with caplog.at_level(logging.INFO, logger="viewkit.requests"):
        await client.get("/categories/", params={"page": 1})
        await client.get("/healthz")

    messages = [r.getMessage() for r in caplog.records if r.name == "viewkit.requests"]
    assert messages[0] == "-> GET /categories/?page=1"
    assert messages[1].startswith("<- 200 [")
    assert not any("/healthz" in m for m in messages)


@pytest.mark.asyncio
async def test_dependencies_inject_session_and_settings(setup_db):
    from viewkit.config import get_settings
    from viewkit.dependencies import AppSettings, DatabaseSession

    app = create_app(settings=memory_settings(log_requests=False))

    @app.get("/injected")
    async def injected(db: DatabaseSession, settings: AppSettings):
        return {"active": db.is_active, "app": settings.app_name}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/injected")

    assert response.json() == {"active": True, "app": get_settings().app_name}
