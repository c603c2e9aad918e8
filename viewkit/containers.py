"""
Containers tipados para resultados de queries.

Cada ViewSet recebe, na definição da classe, uma fábrica que produz
containers vazios para o seu model. A infraestrutura genérica só
conhece a fábrica; o tipo concreto é fixado uma vez, sem reflexão
por requisição.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any


class ModelCollection[T](list[T]):
    """
    Lista ordenada e mutável de instâncias de um único model.

    Exemplo:
        results = ModelCollection(Article)
        await queryset.fetch_into(results)
    """

    __slots__ = ("model",)

    def __init__(self, model: type[T], items: Iterable[T] = ()) -> None:
        super().__init__(items)
        self.model = model

    def replace(self, items: Iterable[T]) -> "ModelCollection[T]":
        """Substitui o conteúdo in-place."""
        self[:] = items
        return self

    def __repr__(self) -> str:
        return f"<ModelCollection[{self.model.__name__}] len={len(self)}>"


CollectionFactory = Callable[[], ModelCollection[Any]]


def collection_factory[T](model: type[T]) -> Callable[[], ModelCollection[T]]:
    """
    Cria a fábrica de containers vazios para um model.

    Cada chamada da fábrica retorna um container novo.
    """

    def new_empty_collection() -> ModelCollection[T]:
        return ModelCollection(model)

    new_empty_collection.model = model  # type: ignore[attr-defined]
    return new_empty_collection
