"""
Identificação de usuário da aplicação de exemplo.

Apenas para demonstração: o usuário vem dos headers X-User e X-Roles.
Em produção, troque por um middleware que valide credenciais.

    curl -H "X-User: ana" -H "X-Roles: admin" ...
"""

from dataclasses import dataclass, field

from starlette.types import ASGIApp, Receive, Scope, Send


@dataclass
class DemoUser:
    username: str
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


class HeaderUserMiddleware:
    """Popula request.state.user a partir dos headers."""

    user_header = b"x-user"
    roles_header = b"x-roles"

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = dict(scope.get("headers", []))
            username = headers.get(self.user_header, b"").decode().strip()
            if username:
                roles = headers.get(self.roles_header, b"").decode()
                scope.setdefault("state", {})["user"] = DemoUser(
                    username=username,
                    roles=[r.strip() for r in roles.split(",") if r.strip()],
                )
        await self.app(scope, receive, send)
