"""
Permissões de ViewSet.

Uma permissão responde, para a requisição corrente, se a action pode
rodar. O ViewSet combina sua lista com AND; lista vazia libera o acesso.
Permissões podem ser compostas com &, | e ~:

    permission_classes = [IsAuthenticated() & (IsAdmin() | ActionIn("list"))]
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

from fastapi import Request

from viewkit.exceptions import PermissionDenied

if TYPE_CHECKING:
    from viewkit.views import ModelViewSet


SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _user(request: Request) -> Any:
    return getattr(request.state, "user", None)


class Permission(ABC):
    """
    Classe base para permissões.

    Exemplo:
        class IsEditor(Permission):
            message = "Editor access required"

            async def has_permission(self, request, view=None):
                user = getattr(request.state, "user", None)
                return user is not None and "editor" in user.roles
    """

    message: str = "Permission denied"

    @abstractmethod
    async def has_permission(
        self,
        request: Request,
        view: "ModelViewSet[Any] | None" = None,
    ) -> bool:
        """True libera a action; view.action indica qual é."""
        ...

    async def has_object_permission(
        self,
        request: Request,
        view: "ModelViewSet[Any] | None" = None,
        obj: Any = None,
    ) -> bool:
        """Checagem por objeto, chamada por get_object(). Libera por padrão."""
        return True

    def __and__(self, other: Permission) -> Permission:
        return AllOf(self, other)

    def __or__(self, other: Permission) -> Permission:
        return AnyOf(self, other)

    def __invert__(self) -> Permission:
        return Negated(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AllOf(Permission):
    """Libera quando todas as permissões liberam."""

    def __init__(self, *permissions: Permission) -> None:
        self.permissions = permissions
        self.message = " and ".join(p.message for p in permissions)

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return await first_denied(list(self.permissions), request, view) is None

    async def has_object_permission(self, request: Request, view: Any = None, obj: Any = None) -> bool:
        for permission in self.permissions:
            if not await permission.has_object_permission(request, view, obj):
                return False
        return True


class AnyOf(Permission):
    """Libera quando ao menos uma permissão libera."""

    def __init__(self, *permissions: Permission) -> None:
        self.permissions = permissions
        self.message = " or ".join(p.message for p in permissions)

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        for permission in self.permissions:
            if await permission.has_permission(request, view):
                return True
        return False

    async def has_object_permission(self, request: Request, view: Any = None, obj: Any = None) -> bool:
        for permission in self.permissions:
            if await permission.has_object_permission(request, view, obj):
                return True
        return False


class Negated(Permission):
    def __init__(self, permission: Permission) -> None:
        self.permission = permission
        self.message = f"Not {permission.message}"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return not await self.permission.has_permission(request, view)

    async def has_object_permission(self, request: Request, view: Any = None, obj: Any = None) -> bool:
        return not await self.permission.has_object_permission(request, view, obj)


# =============================================================================
# Built-ins
# =============================================================================

class AllowAny(Permission):
    message = "Access allowed"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return True


class DenyAll(Permission):
    message = "Access denied"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return False


class IsAuthenticated(Permission):
    """Exige request.state.user."""

    message = "Authentication required"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return _user(request) is not None


class IsAuthenticatedOrReadOnly(Permission):
    """Leitura livre; escrita só para autenticados."""

    message = "Authentication required for write operations"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return request.method in SAFE_METHODS or _user(request) is not None


class IsAdmin(Permission):
    """Exige user.is_admin (ou is_superuser)."""

    message = "Admin access required"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        user = _user(request)
        return bool(getattr(user, "is_admin", False) or getattr(user, "is_superuser", False))


class ActionIn(Permission):
    """
    Libera apenas as actions listadas.

    Exemplo:
        permission_classes = [ActionIn("list", "retrieve")]
    """

    def __init__(self, *actions: str) -> None:
        self.actions = frozenset(actions)
        self.message = f"Allowed actions: {', '.join(sorted(self.actions))}"

    async def has_permission(self, request: Request, view: Any = None) -> bool:
        return getattr(view, "action", None) in self.actions


# =============================================================================
# Avaliação de listas
# =============================================================================

async def first_denied(
    permissions: list[Permission],
    request: Request,
    view: "ModelViewSet[Any] | None" = None,
    obj: Any = None,
) -> Permission | None:
    """
    Retorna a primeira permissão que nega o acesso, ou None.

    Com obj, a checagem por objeto também é feita.
    """
    for permission in permissions:
        if not await permission.has_permission(request, view):
            return permission
        if obj is not None and not await permission.has_object_permission(request, view, obj):
            return permission
    return None


async def has_permissions(
    permissions: list[Permission],
    request: Request,
    view: "ModelViewSet[Any] | None" = None,
) -> bool:
    """AND de todas as permissões. Lista vazia permite o acesso."""
    return await first_denied(permissions, request, view) is None


async def check_permissions(
    permissions: list[Permission],
    request: Request,
    view: "ModelViewSet[Any] | None" = None,
    obj: Any = None,
) -> None:
    """
    Raises:
        PermissionDenied: com a mensagem da primeira permissão que negar
    """
    denied = await first_denied(permissions, request, view, obj)
    if denied is not None:
        raise PermissionDenied(denied.message)
