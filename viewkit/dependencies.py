"""
Dependencies FastAPI do viewkit.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from viewkit.config import Settings, get_settings
from viewkit.models import get_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency que fornece uma sessão de banco de dados.

    Uso:
        @router.get("/articles")
        async def list_articles(db: AsyncSession = Depends(get_db)):
            return await Article.objects.using(db).all()

    Commit ao final da requisição, rollback em caso de erro.
    """
    session = await get_session()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def get_settings_dep() -> Settings:
    return get_settings()


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings_dep)]
