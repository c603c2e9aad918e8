"""
viewkit - camada CRUD genérica sobre FastAPI e SQLAlchemy async.

Exemplo:
    from viewkit import ModelViewSet, Router, create_app

    class ArticleViewSet(ModelViewSet[Article]):
        model = Article
        serializer_class = ArticleSerializer
        filterset_class = ArticleFilterSet

    router = Router()
    router.register_viewset("/articles", ArticleViewSet)
    app = create_app(routers=[router])
"""

from viewkit.app import ViewKitApp, create_app
from viewkit.config import Settings, configure, get_settings, reset_settings
from viewkit.containers import ModelCollection, collection_factory
from viewkit.context import RequestContext
from viewkit.dependencies import DatabaseSession, get_db
from viewkit.exceptions import (
    ImproperlyConfigured,
    InternalFault,
    InvalidLookup,
    MethodNotAllowed,
    NotFound,
    PermissionDenied,
    SerializerBindingError,
    ValidationException,
    ViewKitException,
)
from viewkit.filters import FilterSet
from viewkit.models import (
    Field,
    Model,
    SoftDeleteMixin,
    close_database,
    create_tables,
    drop_tables,
    get_session,
    init_database,
)
from viewkit.pagination import PaginatedResponse, Pagination, init_pagination
from viewkit.permissions import (
    ActionIn,
    AllowAny,
    DenyAll,
    IsAdmin,
    IsAuthenticated,
    IsAuthenticatedOrReadOnly,
    Permission,
    has_permissions,
)
from viewkit.querysets import DoesNotExist, MultipleObjectsReturned, QuerySet, SoftDeleteQuerySet
from viewkit.routing import Router
from viewkit.serializers import InputSchema, ModelSerializer, OutputSchema, SerializerMeta
from viewkit.views import ModelViewSet, ReadOnlyModelViewSet, action

__version__ = "0.1.0"

__all__ = [
    # App
    "ViewKitApp",
    "create_app",
    # Config
    "Settings",
    "configure",
    "get_settings",
    "reset_settings",
    # Models
    "Model",
    "Field",
    "SoftDeleteMixin",
    "init_database",
    "create_tables",
    "drop_tables",
    "get_session",
    "close_database",
    # QuerySets
    "QuerySet",
    "SoftDeleteQuerySet",
    "DoesNotExist",
    "MultipleObjectsReturned",
    # Request handling
    "RequestContext",
    "ModelCollection",
    "collection_factory",
    "FilterSet",
    "Pagination",
    "PaginatedResponse",
    "init_pagination",
    "InputSchema",
    "OutputSchema",
    "ModelSerializer",
    "SerializerMeta",
    "ModelViewSet",
    "ReadOnlyModelViewSet",
    "action",
    "Router",
    "get_db",
    "DatabaseSession",
    # Permissions
    "Permission",
    "AllowAny",
    "DenyAll",
    "IsAuthenticated",
    "IsAuthenticatedOrReadOnly",
    "IsAdmin",
    "ActionIn",
    "has_permissions",
    # Exceptions
    "ViewKitException",
    "ValidationException",
    "InvalidLookup",
    "NotFound",
    "PermissionDenied",
    "MethodNotAllowed",
    "InternalFault",
    "SerializerBindingError",
    "ImproperlyConfigured",
]
