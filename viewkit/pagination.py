"""
Paginação por número de página para listagens.

Uso dentro de um ViewSet:
    pagination = init_pagination(ctx, queryset, page_size=20, max_page_size=100)
    await pagination.paginate_query(results)
    return pagination.get_paginated_response(serializer.to_representation)
"""

from __future__ import annotations

import math
from collections.abc import Callable, MutableSequence
from typing import Any, Generic, TypeVar, TYPE_CHECKING

from pydantic import BaseModel

from viewkit.config import get_settings
from viewkit.exceptions import ValidationException

if TYPE_CHECKING:
    from viewkit.context import RequestContext
    from viewkit.querysets import QuerySet


ItemT = TypeVar("ItemT")


class PaginatedResponse(BaseModel, Generic[ItemT]):
    """
    Schema para respostas paginadas.

    Exemplo:
        PaginatedResponse[ArticleOutput](
            items=articles,
            total=total_count,
            page=page,
            page_size=page_size,
        )
    """

    items: list[ItemT]
    total: int
    page: int
    page_size: int
    pages: int | None = None

    def model_post_init(self, __context: Any) -> None:
        if self.pages is None and self.page_size > 0:
            self.pages = math.ceil(self.total / self.page_size)


def _parse_int(raw: Any, name: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationException(
            "Invalid pagination parameters",
            errors=[{
                "loc": ["query", name],
                "msg": "Input should be a valid integer",
                "type": "int_parsing",
            }],
            code="invalid_pagination",
        ) from None
    return value


class Pagination:
    """
    Estado de paginação de uma listagem.

    page e page_size já chegam normalizados:
    1 <= page e 1 <= page_size <= max_page_size.
    """

    def __init__(
        self,
        queryset: "QuerySet[Any]",
        page: int = 1,
        page_size: int = 20,
    ) -> None:
        self.queryset = queryset
        self.page = page
        self.page_size = page_size
        self.total: int | None = None
        self.items: MutableSequence[Any] = []

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def pages(self) -> int:
        if not self.total:
            return 0
        return math.ceil(self.total / self.page_size)

    async def paginate_query(self, results: MutableSequence[Any]) -> MutableSequence[Any]:
        """
        Conta o total e repopula results apenas com a janela da página.

        O conteúdo anterior de results é descartado.
        """
        self.total = await self.queryset.count()
        window = self.queryset._ordered().offset(self.offset).limit(self.page_size)
        await window.fetch_into(results)
        self.items = results
        return results

    def get_paginated_response(
        self,
        serialize: Callable[[Any], Any] | None = None,
    ) -> dict[str, Any]:
        """
        Monta o envelope {items, total, page, page_size, pages}.

        Args:
            serialize: Converte cada item (ex: serializer.to_representation)
        """
        if self.total is None:
            raise RuntimeError("paginate_query() must run before get_paginated_response()")

        items = [serialize(item) for item in self.items] if serialize else list(self.items)
        return PaginatedResponse[Any](
            items=items,
            total=self.total,
            page=self.page,
            page_size=self.page_size,
            pages=self.pages,
        ).model_dump()

    def __repr__(self) -> str:
        return f"<Pagination page={self.page} page_size={self.page_size} total={self.total}>"


def init_pagination(
    context: "RequestContext",
    queryset: "QuerySet[Any]",
    page_size: int | None = None,
    max_page_size: int | None = None,
) -> Pagination:
    """
    Lê page/page_size dos query params e cria a Pagination.

    Valores fora dos limites são ajustados; valores não inteiros
    levantam ValidationException (400).
    """
    settings = get_settings()
    default_size = page_size or settings.page_size
    max_size = max_page_size or settings.max_page_size

    raw_page = context.query_param(settings.page_query_param)
    raw_size = context.query_param(settings.page_size_query_param)

    page = 1 if raw_page in (None, "") else _parse_int(raw_page, settings.page_query_param)
    size = default_size if raw_size in (None, "") else _parse_int(
        raw_size, settings.page_size_query_param
    )

    page = max(page, 1)
    size = min(max(size, 1), max_size)

    return Pagination(queryset, page=page, page_size=size)
