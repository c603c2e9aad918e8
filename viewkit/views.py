"""
ViewSets genéricos inspirados no DRF.

Características:
- ModelViewSet com list, retrieve, create, update, partial_update, destroy
- list_deleted para models com soft delete
- Uma instância por requisição: configuração na classe, estado na instância
- Permissões por ViewSet/action
- Pipeline de listagem: permissão -> filtro -> paginação -> serialização
- Actions extras via @action ou register_action()
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, TYPE_CHECKING

from fastapi.responses import Response
from sqlalchemy import BigInteger, Integer, SmallInteger, Uuid, inspect as sa_inspect

from viewkit.config import get_settings
from viewkit.containers import CollectionFactory, ModelCollection, collection_factory
from viewkit.exceptions import (
    ImproperlyConfigured,
    InvalidLookup,
    MethodNotAllowed,
    NotFound,
    PermissionDenied,
    ValidationException,
)
from viewkit.filters import FilterSet
from viewkit.models import is_soft_deletable
from viewkit.pagination import Pagination, init_pagination
from viewkit.permissions import AllowAny, Permission, first_denied
from viewkit.querysets import DoesNotExist, MultipleObjectsReturned, SoftDeleteQuerySet
from viewkit.serializers import ModelSerializer

if TYPE_CHECKING:
    from viewkit.context import RequestContext
    from viewkit.models import Model
    from viewkit.querysets import QuerySet

logger = logging.getLogger("viewkit.views")

ActionHandler = Callable[["ModelViewSet[Any]"], Awaitable[Any]]

CRUD_ACTIONS = ("list", "retrieve", "create", "update", "partial_update", "destroy")
LIST_DELETED = "list_deleted"


# =============================================================================
# Decorator para actions customizadas
# =============================================================================

def action(
    methods: list[str] | None = None,
    detail: bool = False,
    url_path: str | None = None,
    permission_classes: list[type[Permission] | Permission] | None = None,
):
    """
    Decorator para definir actions customizadas em ViewSets.

    Exemplo:
        class ArticleViewSet(ModelViewSet[Article]):
            model = Article

            @action(methods=["POST"], detail=True)
            async def publish(self):
                article = await self.get_object()
                article.published = True
                await article.save(self.context.session)
                return {"published": True}
    """
    def decorator(func):
        func.is_action = True
        func.methods = [m.upper() for m in (methods or ["GET"])]
        func.detail = detail
        func.url_path = url_path or func.__name__.replace("_", "-")
        func.permission_classes = permission_classes
        return func
    return decorator


def _is_action(func: Any) -> bool:
    return callable(func) and getattr(func, "is_action", False)


# =============================================================================
# ViewSet
# =============================================================================

class ModelViewSet[T: "Model"]:
    """
    ViewSet completo para um Model.

    Configuração (atributos de classe, compartilhada entre requisições):
        model, serializer_class, filterset_class, permission_classes,
        lookup_field, page_size, ...

    Estado (atributos de instância, uma instância por requisição):
        action, context

    Exemplo:
        class ArticleViewSet(ModelViewSet[Article]):
            model = Article
            serializer_class = ArticleSerializer
            filterset_class = ArticleFilterSet
            permission_classes = [IsAuthenticatedOrReadOnly]
            permission_classes_by_action = {"destroy": [IsAdmin]}

            def get_base_queryset(self):
                return super().get_base_queryset().filter(tenant_id=1)
    """

    model: ClassVar[type["Model"]]
    serializer_class: ClassVar[type[ModelSerializer] | None] = None
    filterset_class: ClassVar[type[FilterSet] | None] = None

    # Permissões
    permission_classes: ClassVar[list[type[Permission] | Permission]] = [AllowAny]
    permission_classes_by_action: ClassVar[dict[str, list[type[Permission] | Permission]]] = {}

    # Lookup
    lookup_field: ClassVar[str] = "id"
    lookup_url_kwarg: ClassVar[str | None] = None

    # Paginação (None = usa settings)
    page_size: ClassVar[int | None] = None
    max_page_size: ClassVar[int | None] = None

    # Actions habilitadas
    enabled_actions: ClassVar[tuple[str, ...]] = CRUD_ACTIONS + (LIST_DELETED,)
    extra_actions: ClassVar[dict[str, ActionHandler]] = {}

    # Tags para OpenAPI
    tags: ClassVar[list[str]] = []

    # Fábrica de containers, fixada por subclasse
    collection_factory: ClassVar[CollectionFactory | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        model = cls.__dict__.get("model")
        if model is not None:
            cls.collection_factory = staticmethod(collection_factory(model))

        extras = dict(cls.extra_actions)
        for name, member in cls.__dict__.items():
            if _is_action(member):
                extras[name] = member
        cls.extra_actions = extras

    def __init__(self) -> None:
        self.action: str | None = None
        self.context: "RequestContext | None" = None
        self._denied: Permission | None = None

    # ------------------------------------------------------------------
    # Extra actions
    # ------------------------------------------------------------------

    @classmethod
    def register_action(
        cls,
        name: str,
        handler: ActionHandler,
        methods: list[str] | None = None,
        detail: bool = False,
        url_path: str | None = None,
        permission_classes: list[type[Permission] | Permission] | None = None,
    ) -> ActionHandler:
        """
        Registra uma action extra a partir de um callable async(viewset).

        Exemplo:
            async def stats(viewset):
                return {"total": await viewset.get_queryset().count()}

            ArticleViewSet.register_action("stats", stats)
        """
        if name in CRUD_ACTIONS or name == LIST_DELETED:
            raise ImproperlyConfigured(f"Action name '{name}' is reserved")

        handler = action(
            methods=methods,
            detail=detail,
            url_path=url_path or name.replace("_", "-"),
            permission_classes=permission_classes,
        )(handler)
        cls.extra_actions = {**cls.extra_actions, name: handler}
        return handler

    # ------------------------------------------------------------------
    # Request state
    # ------------------------------------------------------------------

    def set_context(self, context: "RequestContext") -> None:
        self.context = context

    def set_action(self, action_name: str | None) -> None:
        self.action = action_name
        if self.context is not None:
            self.context.action = action_name

    def _require_context(self) -> "RequestContext":
        if self.context is None:
            raise ImproperlyConfigured(
                f"{type(self).__name__}: set_context() must be called before handling a request"
            )
        return self.context

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def get_permissions(self) -> list[Permission]:
        """Retorna instâncias de permissões para a action corrente."""
        handler = self.extra_actions.get(self.action or "")
        perms = getattr(handler, "permission_classes", None)
        if perms is None:
            perms = self.permission_classes_by_action.get(
                self.action or "",
                self.permission_classes,
            )
        return [p() if isinstance(p, type) else p for p in perms]

    async def has_permission(self) -> bool:
        """AND de todas as permissões. Lista vazia permite o acesso."""
        context = self._require_context()
        self._denied = await first_denied(self.get_permissions(), context.request, self)
        return self._denied is None

    async def check_object_permissions(self, obj: Any) -> None:
        context = self._require_context()
        denied = await first_denied(self.get_permissions(), context.request, self, obj)
        if denied is not None:
            raise PermissionDenied(denied.message)

    # ------------------------------------------------------------------
    # Serializer
    # ------------------------------------------------------------------

    def get_serializer_class(self) -> type[ModelSerializer]:
        if self.serializer_class is None:
            raise ImproperlyConfigured(
                f"{type(self).__name__} must define serializer_class "
                "or override get_serializer_class()"
            )
        return self.serializer_class

    def setup_serializer(self, instance: "T | None" = None) -> ModelSerializer:
        """Cria o serializer com contexto e metadados, sem payload."""
        serializer = self.get_serializer_class()(instance=instance)
        serializer.set_context(self._require_context())
        meta = serializer.meta()
        serializer.set_meta(meta)
        return serializer

    async def get_serializer(self, instance: "T | None" = None) -> ModelSerializer:
        """
        Cria o serializer da requisição com o payload ligado.

        Raises:
            SerializerBindingError: se o corpo não puder ser aplicado
        """
        serializer = self.setup_serializer(instance)
        await self._require_context().bind(serializer)
        serializer.set_child(serializer)
        return serializer

    def get_filterset_class(self) -> type[FilterSet] | None:
        return self.filterset_class

    # ------------------------------------------------------------------
    # Query Selector / Object Resolver / Collection
    # ------------------------------------------------------------------

    def get_base_queryset(self) -> "QuerySet[T]":
        """QuerySet base do model, ligado à sessão da requisição."""
        model = getattr(type(self), "model", None)
        if model is None:
            raise ImproperlyConfigured(f"{type(self).__name__} must define model")
        return model.objects.using(self._require_context().session)

    def get_queryset(self) -> "QuerySet[T]":
        """
        Escolhe o escopo do QuerySet pela action corrente.

        list_deleted -> apenas removidos; qualquer outra -> apenas ativos.
        """
        queryset = self.get_base_queryset()
        if not isinstance(queryset, SoftDeleteQuerySet):
            return queryset
        if self.action == LIST_DELETED:
            return queryset.only_deleted()
        return queryset.active()

    async def get_object(self) -> T:
        """
        Retorna o objeto identificado pelo path.

        Raises:
            NotFound: se nenhum registro ativo corresponder
            InvalidLookup: se o valor não for do tipo da coluna
        """
        context = self._require_context()
        lookup_kwarg = self.lookup_url_kwarg or self.lookup_field
        raw_value = context.param(lookup_kwarg)

        if raw_value is None:
            raise ImproperlyConfigured(
                f"Missing path parameter '{lookup_kwarg}' for {type(self).__name__}",
                details={"lookup": lookup_kwarg},
            )

        value = self._convert_lookup_value(raw_value)

        try:
            obj = await self.get_queryset().filter(**{self.lookup_field: value}).get()
        except DoesNotExist:
            raise NotFound.for_model(self.model.__name__, **{self.lookup_field: raw_value}) from None
        except MultipleObjectsReturned as e:
            raise ImproperlyConfigured(
                f"{type(self).__name__}.lookup_field '{self.lookup_field}' is not unique"
            ) from e

        await self.check_object_permissions(obj)
        return obj

    def _convert_lookup_value(self, value: Any) -> Any:
        """
        Converte o valor vindo da URL para o tipo da coluna de lookup.

        Inteiros -> int, UUID -> uuid.UUID, demais -> sem conversão.
        """
        if not isinstance(value, str):
            return value

        column = sa_inspect(self.model).columns.get(self.lookup_field)
        if column is None:
            return value

        if isinstance(column.type, (Integer, BigInteger, SmallInteger)):
            try:
                return int(value)
            except ValueError:
                raise InvalidLookup.for_field(self.lookup_field, value, "integer") from None

        if isinstance(column.type, Uuid):
            try:
                return uuid.UUID(value)
            except ValueError:
                raise InvalidLookup.for_field(self.lookup_field, value, "UUID") from None

        return value

    def get_model_collection(self) -> ModelCollection[T]:
        """Retorna um container novo e vazio para o model do ViewSet."""
        if self.collection_factory is None:
            raise ImproperlyConfigured(f"{type(self).__name__} must define model")
        return self.collection_factory()

    # ------------------------------------------------------------------
    # Filter / Pagination stages
    # ------------------------------------------------------------------

    async def filter_queryset(
        self,
        context: "RequestContext",
        results: ModelCollection[T],
        queryset: "QuerySet[T] | None" = None,
    ) -> "QuerySet[T]":
        """
        Aplica o filterset ao QuerySet.

        Sem filterset_class o QuerySet volta inalterado e nada executa.
        Com filterset, o QuerySet filtrado é executado em results.

        Raises:
            ValidationException: se os query params forem inválidos
        """
        if queryset is None:
            queryset = self.get_queryset()

        filterset_class = self.get_filterset_class()
        if filterset_class is None:
            return queryset

        settings = get_settings()
        filterset = filterset_class.from_context(
            context,
            exclude={settings.page_query_param, settings.page_size_query_param},
        )
        queryset = filterset.apply_filters(context, queryset)
        await queryset.fetch_into(results)
        return queryset

    async def paginate_queryset(
        self,
        context: "RequestContext",
        queryset: "QuerySet[T]",
        results: ModelCollection[T],
    ) -> Pagination:
        """Repopula results com a página pedida e devolve a Pagination."""
        pagination = init_pagination(
            context,
            queryset,
            page_size=self.page_size,
            max_page_size=self.max_page_size,
        )
        await pagination.paginate_query(results)
        return pagination

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def get_handler(self, action_name: str) -> Callable[[], Awaitable[Any]]:
        """
        Resolve o handler de uma action.

        Raises:
            MethodNotAllowed: se a action não existir ou estiver desabilitada
        """
        if action_name in self.extra_actions:
            # métodos sobrescritos numa subclasse valem mesmo sem @action
            method = getattr(type(self), action_name, None)
            if callable(method):
                return getattr(self, action_name)
            handler = self.extra_actions[action_name]
            return lambda: handler(self)

        if action_name not in self.enabled_actions:
            raise MethodNotAllowed.for_action(action_name)
        if action_name == LIST_DELETED and not is_soft_deletable(self.model):
            raise MethodNotAllowed.for_action(action_name)

        return getattr(self, action_name)

    async def dispatch(self, action_name: str, context: "RequestContext") -> Response:
        """
        Executa uma action: contexto, action, permissões e handler.

        Raises:
            PermissionDenied: se alguma permissão negar o acesso
            MethodNotAllowed: se a action não existir
        """
        self.set_context(context)
        self.set_action(action_name)
        handler = self.get_handler(action_name)

        if not await self.has_permission():
            logger.info(
                "%s.%s denied by %s",
                type(self).__name__,
                action_name,
                type(self._denied).__name__,
            )
            raise PermissionDenied(self._denied.message if self._denied else None)

        logger.debug("%s.%s", type(self).__name__, action_name)
        result = await handler()

        if isinstance(result, Response):
            return result
        return context.json(200, result)

    # ------------------------------------------------------------------
    # Actions CRUD
    # ------------------------------------------------------------------

    async def list(self) -> Response:
        """Lista paginada, filtrada pelo filterset_class."""
        context = self._require_context()
        results = self.get_model_collection()

        try:
            queryset = await self.filter_queryset(context, results)
            pagination = await self.paginate_queryset(context, queryset, results)
        except ValidationException as e:
            return context.json(e.status_code, e.to_dict())

        serializer = self.setup_serializer()
        return context.json(200, pagination.get_paginated_response(serializer.to_representation))

    async def list_deleted(self) -> Response:
        """Lista paginada de registros removidos (soft delete)."""
        return await self.list()

    async def retrieve(self) -> Response:
        context = self._require_context()
        instance = await self.get_object()
        serializer = self.setup_serializer(instance)
        return context.json(200, serializer.to_representation(instance))

    async def create(self) -> Response:
        context = self._require_context()
        serializer = await self.get_serializer()

        if not await serializer.is_valid():
            error = ValidationException(errors=serializer.errors)
            return context.json(error.status_code, error.to_dict())

        instance = await serializer.create()
        logger.debug("Created %r", instance)
        return context.json(201, serializer.to_representation(instance))

    async def update(self) -> Response:
        context = self._require_context()
        instance = await self.get_object()
        serializer = await self.get_serializer(instance)

        if not await serializer.is_valid():
            error = ValidationException(errors=serializer.errors)
            return context.json(error.status_code, error.to_dict())

        instance = await serializer.update(instance)
        return context.json(200, serializer.to_representation(instance))

    async def partial_update(self) -> Response:
        """Atualização parcial (PATCH); o serializer valida como parcial."""
        return await self.update()

    async def destroy(self) -> Response:
        context = self._require_context()
        instance = await self.get_object()
        await self.perform_destroy(instance)
        return context.json(204)

    async def perform_destroy(self, instance: T) -> None:
        """Soft delete quando o model suporta, senão remove a linha."""
        session = self._require_context().session
        if is_soft_deletable(type(instance)) and hasattr(instance, "soft_delete"):
            await instance.soft_delete(session)
        else:
            await instance.delete(session)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} action={self.action!r}>"


class ReadOnlyModelViewSet[T: "Model"](ModelViewSet[T]):
    """
    ViewSet somente leitura: list, retrieve e list_deleted.
    """

    enabled_actions = ("list", "retrieve", LIST_DELETED)
