"""
FilterSets declarativos baseados em Pydantic.

Um FilterSet declara os query params aceitos por uma listagem. A cada
requisição uma instância nova é criada a partir dos query params
(FilterSet.from_context) e aplicada ao QuerySet (apply_filters).

Exemplo:
    class ArticleFilterSet(FilterSet):
        field_lookups = {"search": "title__icontains"}
        ordering_fields = ["title", "created_at"]

        published: bool | None = None
        views__gte: int | None = None
        search: str | None = None
        ordering: str | None = None

        def filter_published(self, queryset, value):
            return queryset.filter(published=value)

    GET /articles/?published=true&views__gte=10&ordering=-created_at
"""

from __future__ import annotations

import types
from typing import Any, ClassVar, TYPE_CHECKING, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from viewkit.exceptions import ImproperlyConfigured, ValidationException, pydantic_errors

if TYPE_CHECKING:
    from viewkit.context import RequestContext
    from viewkit.querysets import QuerySet


def _accepts_list(annotation: Any) -> bool:
    """True para list[...], tuple[...], set[...] e uniões que os contenham."""
    origin = get_origin(annotation)
    if origin in (list, tuple, set, frozenset):
        return True
    if origin is Union or origin is types.UnionType:
        return any(_accepts_list(arg) for arg in get_args(annotation))
    return False


class FilterSet(BaseModel):
    """
    Base model for query filter payloads.

    Unknown query parameters are rejected to surface typos quickly.

    Atributos de classe:
        field_lookups: mapeia campo -> lookup do QuerySet (default: o nome do campo)
        ordering_fields: campos aceitos pelo parâmetro 'ordering' (vazio = nenhum)
        ignored_params: query params descartados antes do bind
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    field_lookups: ClassVar[dict[str, str]] = {}
    ordering_fields: ClassVar[list[str]] = []
    ignored_params: ClassVar[set[str]] = set()

    @classmethod
    def from_context(
        cls,
        context: "RequestContext",
        exclude: set[str] | None = None,
    ) -> "FilterSet":
        """
        Faz o bind dos query params da requisição numa instância nova.

        Raises:
            ValidationException: se algum parâmetro for inválido ou desconhecido
        """
        skip = cls.ignored_params | (exclude or set())
        params: dict[str, Any] = {}
        for key, value in context.query_params.items():
            if key in skip:
                continue
            field = cls.model_fields.get(key)
            # ?id__in=3 chega como str; campos de lista recebem [valor]
            if field is not None and isinstance(value, str) and _accepts_list(field.annotation):
                value = [value]
            params[key] = value
        try:
            return cls.model_validate(params)
        except PydanticValidationError as e:
            raise ValidationException(
                "Invalid filter parameters",
                errors=pydantic_errors(e, prefix="query"),
                code="invalid_filters",
            ) from e

    def active_filters(self) -> dict[str, Any]:
        """Campos com valor definido (None = filtro não aplicado)."""
        return self.model_dump(exclude_none=True)

    def apply_filters(
        self,
        context: "RequestContext",
        queryset: "QuerySet[Any]",
    ) -> "QuerySet[Any]":
        """
        Estreita o QuerySet com os filtros ativos.

        Um método filter_<campo>(queryset, value) substitui o lookup
        padrão daquele campo.
        """
        for name, value in self.active_filters().items():
            hook = getattr(self, f"filter_{name}", None)
            try:
                if hook is not None:
                    queryset = hook(queryset, value)
                else:
                    lookup = self.field_lookups.get(name, name)
                    queryset = queryset.filter(**{lookup: value})
            except (AttributeError, ValueError) as e:
                raise ImproperlyConfigured(
                    f"{type(self).__name__}.{name}: {e}",
                    details={"filterset": type(self).__name__, "field": name},
                ) from e
        return queryset

    def filter_ordering(self, queryset: "QuerySet[Any]", value: str) -> "QuerySet[Any]":
        """
        Ordena por uma lista separada por vírgulas ("-created_at,title").

        Campos fora de ordering_fields são ignorados.
        """
        fields = [
            field.strip()
            for field in value.split(",")
            if field.strip().lstrip("-") in self.ordering_fields
        ]
        if not fields:
            return queryset
        return queryset.order_by(*fields)
