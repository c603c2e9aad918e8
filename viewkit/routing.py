"""
Roteamento automático de ViewSets.

Gera as rotas REST de um ModelViewSet sobre um APIRouter do FastAPI.
Cada requisição recebe uma instância nova do ViewSet e um
RequestContext próprio.

Rotas geradas para register_viewset("/articles", ArticleViewSet):
    GET     /articles/            list
    POST    /articles/            create
    GET     /articles/deleted/    list_deleted (models com soft delete)
    GET     /articles/{id}        retrieve
    PUT     /articles/{id}        update
    PATCH   /articles/{id}        partial_update
    DELETE  /articles/{id}        destroy
"""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from viewkit.context import RequestContext
from viewkit.dependencies import get_db
from viewkit.models import is_soft_deletable
from viewkit.views import LIST_DELETED, ModelViewSet

logger = logging.getLogger("viewkit.routing")


def _make_endpoint(viewset_class: type[ModelViewSet[Any]], action_name: str) -> Callable:
    """Cria o endpoint FastAPI que despacha uma action."""

    async def endpoint(request: Request, db: AsyncSession = Depends(get_db)) -> Response:
        context = RequestContext(request=request, session=db)
        viewset = viewset_class()
        return await viewset.dispatch(action_name, context)

    endpoint.__name__ = f"{viewset_class.__name__}_{action_name}"
    endpoint.__qualname__ = endpoint.__name__
    return endpoint


class Router(APIRouter):
    """
    Router estendido com registro de ViewSets.

    Compatível com FastAPI APIRouter.

    Exemplo:
        router = Router(prefix="/api/v1")
        router.register_viewset("/articles", ArticleViewSet)
        app.include_router(router)
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._viewsets: list[tuple[str, type[ModelViewSet[Any]]]] = []

    @property
    def viewsets(self) -> list[tuple[str, type[ModelViewSet[Any]]]]:
        return list(self._viewsets)

    def register_viewset(
        self,
        prefix: str,
        viewset_class: type[ModelViewSet[Any]],
        basename: str | None = None,
        tags: list[str] | None = None,
    ) -> None:
        """
        Registra as rotas REST de um ViewSet.

        Args:
            prefix: Prefixo da URL (ex: "/articles")
            viewset_class: Classe do ViewSet
            basename: Nome base para as rotas (default: __tablename__ do model)
            tags: Tags para OpenAPI
        """
        model = getattr(viewset_class, "model", None)
        if basename is None:
            if model is not None:
                basename = getattr(model, "__tablename__", None) or model.__name__.lower()
            else:
                basename = viewset_class.__name__.lower().replace("viewset", "") or "api"

        tags = tags or viewset_class.tags or [basename]
        lookup = viewset_class.lookup_url_kwarg or viewset_class.lookup_field
        prefix = prefix.rstrip("/")
        enabled = set(viewset_class.enabled_actions)

        def add(
            path: str,
            action_name: str,
            method: str,
            status_code: int = 200,
            include_in_schema: bool = True,
        ) -> None:
            self.add_api_route(
                path,
                _make_endpoint(viewset_class, action_name),
                methods=[method],
                tags=tags,
                name=f"{basename}-{action_name.replace('_', '-')}",
                status_code=status_code,
                response_model=None,
                include_in_schema=include_in_schema,
            )

        # Coleção
        if "list" in enabled:
            add(f"{prefix}/", "list", "GET")
        if "create" in enabled:
            add(f"{prefix}/", "create", "POST", 201)
        if LIST_DELETED in enabled and model is not None and is_soft_deletable(model):
            add(f"{prefix}/deleted/", LIST_DELETED, "GET")
            # sem a barra final o caminho cairia na rota de detalhe
            add(f"{prefix}/deleted", LIST_DELETED, "GET", include_in_schema=False)

        # Actions detail=False antes de /{id} para evitar conflitos
        self._register_extra_actions(prefix, viewset_class, basename, tags, lookup, detail=False)

        # Detalhe
        detail_path = f"{prefix}/{{{lookup}}}"
        if "retrieve" in enabled:
            add(detail_path, "retrieve", "GET")
        if "update" in enabled:
            add(detail_path, "update", "PUT")
        if "partial_update" in enabled:
            add(detail_path, "partial_update", "PATCH")
        if "destroy" in enabled:
            add(detail_path, "destroy", "DELETE", 204)

        self._register_extra_actions(prefix, viewset_class, basename, tags, lookup, detail=True)

        self._viewsets.append((prefix, viewset_class))
        logger.debug("Registered %s at %s/", viewset_class.__name__, prefix)

    def _register_extra_actions(
        self,
        prefix: str,
        viewset_class: type[ModelViewSet[Any]],
        basename: str,
        tags: list[str],
        lookup: str,
        detail: bool,
    ) -> None:
        for name, handler in viewset_class.extra_actions.items():
            if handler.detail != detail:
                continue

            if detail:
                path = f"{prefix}/{{{lookup}}}/{handler.url_path}"
            else:
                path = f"{prefix}/{handler.url_path}"

            self.add_api_route(
                path,
                _make_endpoint(viewset_class, name),
                methods=handler.methods,
                tags=tags,
                name=f"{basename}-{name.replace('_', '-')}",
                response_model=None,
            )
