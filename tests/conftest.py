"""
Configurações de teste compartilhadas.
"""

import json
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from starlette.requests import Request

from viewkit.context import RequestContext
from viewkit.models import close_database, create_tables, drop_tables, get_session, init_database

from example.app import app
from example.auth import DemoUser
from example.models import Article


@pytest_asyncio.fixture(scope="function")
async def setup_db():
    """Banco em memória, recriado a cada teste."""
    await init_database("sqlite+aiosqlite:///:memory:", echo=False)
    await create_tables()
    yield
    await drop_tables()
    await close_database()


@pytest_asyncio.fixture(scope="function")
async def db_session(setup_db):
    """Fornece uma sessão de banco de dados para testes."""
    session = await get_session()
    try:
        yield session
        await session.commit()
    finally:
        await session.close()


@pytest_asyncio.fixture(scope="function")
async def client(setup_db):
    """Fornece um cliente HTTP para testes de API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def writer_headers():
    return {"X-User": "ana"}


@pytest.fixture
def admin_headers():
    return {"X-User": "root", "X-Roles": "admin"}


async def _seed_articles(count: int, **overrides: Any) -> list[int]:
    """Cria artigos numa sessão própria e retorna os ids."""
    session = await get_session()
    try:
        ids = []
        for i in range(count):
            data = {"title": f"Article {i:02d}", "author": "ana", "views": i}
            data.update(overrides)
            article = await Article.objects.using(session).create(**data)
            ids.append(article.id)
        await session.commit()
        return ids
    finally:
        await session.close()


@pytest.fixture
def seed_articles(setup_db):
    return _seed_articles


def make_request(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    path_params: dict[str, Any] | None = None,
    body: Any = None,
    raw_body: bytes | None = None,
    user: Any = None,
) -> Request:
    """Constrói uma Request do Starlette sem servidor."""
    if raw_body is None:
        raw_body = json.dumps(body).encode() if body is not None else b""

    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query_string.encode(),
        "headers": [(b"content-type", b"application/json")],
        "path_params": path_params or {},
        "state": {},
    }
    if user is not None:
        scope["state"]["user"] = user

    async def receive():
        return {"type": "http.request", "body": raw_body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def make_context(db_session):
    """Fábrica de RequestContext ligados à sessão de teste."""

    def factory(**kwargs: Any) -> RequestContext:
        return RequestContext(request=make_request(**kwargs), session=db_session)

    return factory


@pytest.fixture
def admin_user():
    return DemoUser(username="root", roles=["admin"])
