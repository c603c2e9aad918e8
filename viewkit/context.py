"""
Contexto de requisição compartilhado pelos estágios de um ViewSet.

Agrupa a Request do Starlette, a sessão do banco e a action corrente.
Um RequestContext pertence a uma única requisição.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Protocol

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from viewkit.exceptions import SerializerBindingError


class Bindable(Protocol):
    """Qualquer alvo capaz de receber o payload da requisição."""

    def bind(self, data: Any) -> None: ...


_MISSING = object()


@dataclass
class RequestContext:
    """
    Request-scoped context.

    Exemplo:
        ctx = RequestContext(request=request, session=db)
        article_id = ctx.param("id")
        await ctx.bind(serializer)
        return ctx.json(200, {"ok": True})
    """

    request: Request
    session: AsyncSession
    path_params: dict[str, Any] = field(default_factory=dict)
    action: str | None = None
    _body: Any = field(default=_MISSING, repr=False)

    def __post_init__(self) -> None:
        if not self.path_params:
            self.path_params = dict(self.request.path_params)

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def query_params(self) -> dict[str, Any]:
        """
        Query params como dicionário.

        Parâmetros repetidos (?tag=a&tag=b) viram listas.
        """
        params: dict[str, Any] = {}
        for key in self.request.query_params.keys():
            values = self.request.query_params.getlist(key)
            params[key] = values if len(values) > 1 else values[0]
        return params

    @property
    def user(self) -> Any:
        return getattr(self.request.state, "user", None)

    def param(self, name: str, default: Any = None) -> Any:
        """Extrai um parâmetro de path pelo nome."""
        return self.path_params.get(name, default)

    def query_param(self, name: str, default: Any = None) -> Any:
        return self.request.query_params.get(name, default)

    async def body(self) -> Any:
        """
        Lê e decodifica o corpo JSON da requisição (uma única vez).

        Corpo vazio resulta em dicionário vazio.
        """
        if self._body is _MISSING:
            raw = await self.request.body()
            self._body = json.loads(raw) if raw else {}
        return self._body

    async def bind(self, target: Bindable) -> Bindable:
        """
        Faz o bind do payload JSON no alvo.

        Raises:
            SerializerBindingError: se o corpo não puder ser lido,
                decodificado ou aplicado ao alvo
        """
        try:
            data = await self.body()
            target.bind(data)
        except SerializerBindingError:
            raise
        except Exception as e:
            raise SerializerBindingError(
                f"Could not bind request payload onto {type(target).__name__}: {e}",
                details={"target": type(target).__name__},
            ) from e
        return target

    def json(self, status_code: int, body: Any = None) -> Response:
        """Escreve uma resposta JSON com o status informado."""
        if body is None and status_code == 204:
            return Response(status_code=204)
        return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
