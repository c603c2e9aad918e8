"""
QuerySet - API fluente para queries de banco de dados.

Inspirado no Django QuerySet, mas async e com tipagem forte.

Características:
- Encadeamento de métodos (filter, exclude, order_by, etc.)
- Cada método retorna um clone: nenhum QuerySet é alterado in-place
- Lazy evaluation (queries só executam em all/get/count/fetch_into)
- Suporte a lookups (field__gt, field__icontains, etc.)
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING
from collections.abc import MutableSequence, Sequence

from sqlalchemy import and_, asc, desc, func, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

if TYPE_CHECKING:
    from viewkit.models import Model


class DoesNotExist(Exception):
    """Exceção levantada quando um registro não é encontrado."""
    pass


class MultipleObjectsReturned(Exception):
    """Exceção levantada quando múltiplos registros são retornados para get()."""
    pass


# Operadores de lookup suportados
LOOKUP_OPERATORS = {
    "exact": lambda col, val: col == val,
    "iexact": lambda col, val: col.ilike(val),
    "contains": lambda col, val: col.contains(val),
    "icontains": lambda col, val: col.ilike(f"%{val}%"),
    "startswith": lambda col, val: col.startswith(val),
    "istartswith": lambda col, val: col.ilike(f"{val}%"),
    "endswith": lambda col, val: col.endswith(val),
    "gt": lambda col, val: col > val,
    "gte": lambda col, val: col >= val,
    "lt": lambda col, val: col < val,
    "lte": lambda col, val: col <= val,
    "in": lambda col, val: col.in_(val),
    "isnull": lambda col, val: col.is_(None) if val else col.is_not(None),
}


def parse_lookup(model_class: type, field_lookup: str, value: Any) -> Any:
    """
    Parseia um lookup do estilo Django e retorna a condição SQLAlchemy.

    Exemplos:
        - title="Hello" -> Article.title == "Hello"
        - views__gt=10 -> Article.views > 10
        - title__icontains="py" -> Article.title.ilike("%py%")
    """
    field_name, _, operator = field_lookup.partition("__")
    operator = operator or "exact"

    if not hasattr(model_class, field_name):
        raise AttributeError(f"Model {model_class.__name__} has no field '{field_name}'")

    if operator not in LOOKUP_OPERATORS:
        raise ValueError(f"Unsupported lookup operator '{operator}'")

    column = getattr(model_class, field_name)
    return LOOKUP_OPERATORS[operator](column, value)


class QuerySet[T: "Model"]:
    """
    QuerySet para operações de banco de dados.

    Exemplo:
        articles = await Article.objects.using(session)\\
            .filter(published=True)\\
            .exclude(title__icontains="draft")\\
            .order_by("-created_at")\\
            .limit(10)\\
            .all()
    """

    def __init__(
        self,
        model_class: type[T],
        session: AsyncSession | None = None,
    ) -> None:
        self._model_class = model_class
        self._session = session
        self._filters: list[Any] = []
        self._excludes: list[Any] = []
        self._order_by: list[Any] = []
        self._limit_value: int | None = None
        self._offset_value: int | None = None

    @property
    def model(self) -> type[T]:
        return self._model_class

    def _copy_state(self, qs: "QuerySet[T]") -> "QuerySet[T]":
        qs._filters = self._filters.copy()
        qs._excludes = self._excludes.copy()
        qs._order_by = self._order_by.copy()
        qs._limit_value = self._limit_value
        qs._offset_value = self._offset_value
        return qs

    def _clone(self) -> "QuerySet[T]":
        """Cria uma cópia do QuerySet."""
        return self._copy_state(QuerySet(self._model_class, self._session))

    def _get_session(self) -> AsyncSession:
        """Retorna a sessão atual ou levanta erro."""
        if self._session is None:
            raise RuntimeError(
                "No session bound. Use 'Model.objects.using(session)' "
                "or inject the session through get_db()."
            )
        return self._session

    def using(self, session: AsyncSession) -> "QuerySet[T]":
        """Define a sessão a ser usada nas queries."""
        qs = self._clone()
        qs._session = session
        return qs

    def _where(self, stmt: Any) -> Any:
        """Aplica filtros e exclusões a um statement."""
        if self._filters:
            stmt = stmt.where(and_(*self._filters))
        if self._excludes:
            stmt = stmt.where(not_(or_(*self._excludes)))
        return stmt

    def _build_query(self) -> Select:
        """Constrói a query SQLAlchemy."""
        stmt = self._where(select(self._model_class))

        for order in self._order_by:
            stmt = stmt.order_by(order)

        if self._limit_value is not None:
            stmt = stmt.limit(self._limit_value)

        if self._offset_value is not None:
            stmt = stmt.offset(self._offset_value)

        return stmt

    # Métodos de filtragem
    def filter(self, *conditions: Any, **kwargs: Any) -> "QuerySet[T]":
        """
        Filtra registros por condições.

        Aceita expressões SQLAlchemy posicionais e lookups do estilo Django:
            - field=value (exact)
            - field__gt=value (greater than)
            - field__icontains=value
        """
        qs = self._clone()
        qs._filters.extend(conditions)
        for field_lookup, value in kwargs.items():
            qs._filters.append(parse_lookup(self._model_class, field_lookup, value))
        return qs

    def exclude(self, **kwargs: Any) -> "QuerySet[T]":
        """Exclui registros por condições (mesmos lookups de filter())."""
        qs = self._clone()
        for field_lookup, value in kwargs.items():
            qs._excludes.append(parse_lookup(self._model_class, field_lookup, value))
        return qs

    def order_by(self, *fields: str) -> "QuerySet[T]":
        """
        Ordena resultados.

        Use prefixo '-' para ordem decrescente:
            .order_by("-created_at", "title")
        """
        qs = self._clone()
        for field in fields:
            if field.startswith("-"):
                qs._order_by.append(desc(getattr(self._model_class, field[1:])))
            else:
                qs._order_by.append(asc(getattr(self._model_class, field)))
        return qs

    def limit(self, value: int) -> "QuerySet[T]":
        qs = self._clone()
        qs._limit_value = value
        return qs

    def offset(self, value: int) -> "QuerySet[T]":
        qs = self._clone()
        qs._offset_value = value
        return qs

    def _ordered(self) -> "QuerySet[T]":
        """Garante ordenação estável (pela PK) quando nenhuma foi definida."""
        if self._order_by:
            return self
        qs = self._clone()
        for column in self._model_class.__table__.primary_key.columns:
            qs._order_by.append(asc(getattr(self._model_class, column.key)))
        return qs

    # Métodos de execução
    async def all(self) -> Sequence[T]:
        """Executa a query e retorna todos os resultados."""
        session = self._get_session()
        result = await session.execute(self._build_query())
        return result.scalars().all()

    async def fetch_into(self, container: MutableSequence[T]) -> MutableSequence[T]:
        """
        Executa a query e popula o container in-place.

        O conteúdo anterior do container é substituído.
        """
        results = await self.all()
        container[:] = results
        return container

    async def first(self) -> T | None:
        """Retorna o primeiro resultado ou None."""
        results = await self.limit(1).all()
        return results[0] if results else None

    async def get(self, **kwargs: Any) -> T:
        """
        Retorna exatamente um resultado.

        Raises:
            DoesNotExist: Se nenhum registro for encontrado
            MultipleObjectsReturned: Se mais de um registro for encontrado
        """
        qs = self.filter(**kwargs) if kwargs else self
        results = await qs.limit(2).all()

        if not results:
            raise DoesNotExist(
                f"{self._model_class.__name__} matching query does not exist."
            )

        if len(results) > 1:
            raise MultipleObjectsReturned(
                f"get() returned more than one {self._model_class.__name__}"
            )

        return results[0]

    async def count(self) -> int:
        """Conta o número de registros (ignora limit/offset)."""
        session = self._get_session()
        stmt = self._where(select(func.count()).select_from(self._model_class))
        result = await session.execute(stmt)
        return result.scalar() or 0

    async def exists(self) -> bool:
        """Verifica se existem registros."""
        return await self.first() is not None

    async def create(self, **kwargs: Any) -> T:
        """Cria e persiste um novo registro na sessão do QuerySet."""
        instance = self._model_class(**kwargs)
        return await instance.save(self._get_session())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} model={self._model_class.__name__}>"


# =============================================================================
# Soft Delete QuerySet
# =============================================================================

def _get_soft_delete_field() -> str:
    """Return soft delete field name from settings."""
    from viewkit.config import get_settings
    return get_settings().soft_delete_field


class SoftDeleteQuerySet[T: "Model"](QuerySet[T]):
    """
    QuerySet that filters deleted records automatically.

    Excludes records where deleted_at is not NULL by default.
    """
    # articles = await Article.objects.using(db).all()  # Only active
    # articles = await Article.objects.using(db).only_deleted().all()  # Trash

    def __init__(
        self,
        model_class: type[T],
        session: AsyncSession | None = None,
        deleted_field: str | None = None,
    ) -> None:
        super().__init__(model_class, session)
        self._deleted_field = deleted_field or _get_soft_delete_field()
        self._include_deleted = False
        self._only_deleted = False

    def _clone(self) -> "SoftDeleteQuerySet[T]":
        """Create copy preserving soft delete configuration."""
        qs = self._copy_state(
            SoftDeleteQuerySet(self._model_class, self._session, self._deleted_field)
        )
        qs._include_deleted = self._include_deleted
        qs._only_deleted = self._only_deleted
        return qs

    def _where(self, stmt: Any) -> Any:
        stmt = super()._where(stmt)

        deleted_col = getattr(self._model_class, self._deleted_field, None)
        if deleted_col is not None:
            if self._only_deleted:
                stmt = stmt.where(deleted_col.is_not(None))
            elif not self._include_deleted:
                stmt = stmt.where(deleted_col.is_(None))

        return stmt

    @property
    def scope(self) -> str:
        """Escopo atual: 'active', 'all' ou 'deleted'."""
        if self._only_deleted:
            return "deleted"
        if self._include_deleted:
            return "all"
        return "active"

    def with_deleted(self) -> "SoftDeleteQuerySet[T]":
        """Include deleted records in results."""
        qs = self._clone()
        qs._include_deleted = True
        qs._only_deleted = False
        return qs

    def only_deleted(self) -> "SoftDeleteQuerySet[T]":
        """Return only deleted records."""
        qs = self._clone()
        qs._include_deleted = True
        qs._only_deleted = True
        return qs

    def active(self) -> "SoftDeleteQuerySet[T]":
        """Return only active records explicitly (default behavior)."""
        qs = self._clone()
        qs._include_deleted = False
        qs._only_deleted = False
        return qs
