"""
Models declarativos sobre SQLAlchemy 2.0 async.

Características:
- Sintaxe declarativa e limpa (Field.string, Field.pk, ...)
- Manager 'objects' adicionado automaticamente
- Métodos save/delete async
- SoftDeleteMixin: soft delete com deleted_at
- Gerenciamento do engine e das sessões
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar, Self, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime as SADateTime,
    Float,
    Integer,
    MetaData,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if TYPE_CHECKING:
    from viewkit.querysets import QuerySet

# Convenção de nomes para constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base declarativa do SQLAlchemy com metadata customizada."""
    metadata = metadata


class Field:
    """
    Namespace para tipos de campos.

    Uso:
        class Article(Model):
            id: Mapped[int] = Field.pk()
            title: Mapped[str] = Field.string(max_length=200)
            published: Mapped[bool] = Field.boolean(default=False)
    """

    @staticmethod
    def pk() -> Mapped[int]:
        """Campo de chave primária autoincrement."""
        return mapped_column(Integer, primary_key=True, autoincrement=True)

    @staticmethod
    def integer(
        *,
        nullable: bool = False,
        default: int | None = None,
        index: bool = False,
    ) -> Mapped[int]:
        return mapped_column(Integer, nullable=nullable, default=default, index=index)

    @staticmethod
    def string(
        *,
        max_length: int = 255,
        nullable: bool = False,
        default: str | None = None,
        unique: bool = False,
        index: bool = False,
    ) -> Mapped[str]:
        """Campo string com tamanho máximo."""
        return mapped_column(
            String(max_length),
            nullable=nullable,
            default=default,
            unique=unique,
            index=index,
        )

    @staticmethod
    def text(*, nullable: bool = False, default: str | None = None) -> Mapped[str]:
        return mapped_column(Text, nullable=nullable, default=default)

    @staticmethod
    def boolean(
        *,
        nullable: bool = False,
        default: bool = False,
        index: bool = False,
    ) -> Mapped[bool]:
        return mapped_column(Boolean, nullable=nullable, default=default, index=index)

    @staticmethod
    def float(
        *,
        nullable: bool = False,
        default: float | None = None,
        index: bool = False,
    ) -> Mapped[float]:
        return mapped_column(Float, nullable=nullable, default=default, index=index)

    @staticmethod
    def datetime(
        *,
        nullable: bool = False,
        auto_now: bool = False,
        auto_now_add: bool = False,
        index: bool = False,
    ) -> Mapped[datetime]:
        """
        Campo datetime com timezone.

        auto_now_add preenche na criação, auto_now a cada update.
        """
        return mapped_column(
            SADateTime(timezone=True),
            nullable=nullable,
            default=utcnow if (auto_now_add or auto_now) else None,
            onupdate=utcnow if auto_now else None,
            index=index,
        )


class Manager[T: "Model"]:
    """
    Ponto de entrada para queries de um Model.

    Uso:
        articles = await Article.objects.using(db).filter(published=True).all()
    """

    def __init__(self, model_class: type[T]) -> None:
        self._model_class = model_class

    def get_queryset(self, session: AsyncSession | None = None) -> "QuerySet[T]":
        """
        Cria o QuerySet base do model.

        Models com soft delete recebem um SoftDeleteQuerySet, que
        exclui registros removidos por padrão.
        """
        from viewkit.querysets import QuerySet, SoftDeleteQuerySet

        if is_soft_deletable(self._model_class):
            return SoftDeleteQuerySet(self._model_class, session)
        return QuerySet(self._model_class, session)

    def using(self, session: AsyncSession) -> "QuerySet[T]":
        """Retorna o QuerySet base ligado à sessão."""
        return self.get_queryset(session)


class ModelMeta(type(Base)):
    """
    Metaclass para Models.

    Adiciona automaticamente o Manager 'objects' a cada Model.
    """

    def __new__(mcs, name: str, bases: tuple, namespace: dict[str, Any], **kwargs: Any):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        if name not in ("Model", "Base"):
            cls.objects = Manager(cls)

        return cls


class Model(Base, metaclass=ModelMeta):
    """
    Classe base para todos os Models.

    Exemplo:
        class Article(Model):
            __tablename__ = "articles"

            id: Mapped[int] = Field.pk()
            title: Mapped[str] = Field.string(max_length=200)
            created_at: Mapped[datetime] = Field.datetime(auto_now_add=True)
    """

    __abstract__ = True

    objects: ClassVar[Manager[Self]]

    async def save(self, session: AsyncSession) -> Self:
        """
        Salva o registro no banco de dados.

        Returns:
            A própria instância atualizada
        """
        session.add(self)
        await session.flush()
        await session.refresh(self)
        return self

    async def delete(self, session: AsyncSession) -> None:
        """Deleta o registro do banco de dados."""
        await session.delete(self)
        await session.flush()

    def __repr__(self) -> str:
        pk_cols = [col.name for col in self.__table__.primary_key.columns]
        pk_values = ", ".join(f"{col}={getattr(self, col, None)}" for col in pk_cols)
        return f"<{self.__class__.__name__}({pk_values})>"


# =============================================================================
# Soft Delete
# =============================================================================

def _soft_delete_field() -> str:
    from viewkit.config import get_settings
    return get_settings().soft_delete_field


def is_soft_deletable(model_class: type) -> bool:
    """True se o model possui a coluna de soft delete configurada."""
    return hasattr(model_class, _soft_delete_field())


class SoftDeleteMixin:
    """
    Mixin para soft delete (exclusão lógica).

    - Campo deleted_at (NULL = ativo, timestamp = deletado)
    - soft_delete() marca como deletado, restore() restaura

    Uso:
        class Article(Model, SoftDeleteMixin):
            __tablename__ = "articles"
            id: Mapped[int] = Field.pk()

        await article.soft_delete(session)
        if article.is_deleted:
            ...
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        SADateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    async def soft_delete(self, session: AsyncSession) -> Self:
        """Marca o registro como deletado."""
        self.deleted_at = utcnow()
        session.add(self)
        await session.flush()
        return self

    async def restore(self, session: AsyncSession) -> Self:
        """Restaura um registro deletado."""
        self.deleted_at = None
        session.add(self)
        await session.flush()
        return self


# =============================================================================
# Engine e Session factory globais
# =============================================================================

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_database(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> None:
    """
    Inicializa a conexão com o banco de dados.

    Args:
        database_url: URL de conexão async (ex: sqlite+aiosqlite:///./app.db)
        echo: Habilita logging de SQL
        pool_size: Tamanho do pool de conexões (ignorado em SQLite)
        max_overflow: Conexões extras além do pool (ignorado em SQLite)
    """
    global _engine, _session_factory

    engine_kwargs: dict[str, Any] = {"echo": echo}
    if "sqlite" not in database_url:
        engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)
    elif ":memory:" in database_url:
        # Uma única conexão para que todas as sessões vejam o mesmo banco
        from sqlalchemy.pool import StaticPool
        engine_kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})

    _engine = create_async_engine(database_url, **engine_kwargs)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables() -> None:
    """Cria todas as tabelas no banco de dados."""
    if _engine is None:
        raise RuntimeError("Database não inicializado. Chame init_database() primeiro.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables() -> None:
    """Remove todas as tabelas do banco de dados."""
    if _engine is None:
        raise RuntimeError("Database não inicializado. Chame init_database() primeiro.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def get_session() -> AsyncSession:
    """Retorna uma nova sessão do banco de dados."""
    if _session_factory is None:
        raise RuntimeError("Database não inicializado. Chame init_database() primeiro.")

    return _session_factory()


async def close_database() -> None:
    """Fecha a conexão com o banco de dados."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
