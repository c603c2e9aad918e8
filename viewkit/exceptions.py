"""
Exceções centralizadas do viewkit.

Exception Hierarchy:
    ViewKitException (base)
    ├── ValidationException (400)
    │   └── InvalidLookup (422)
    ├── NotFound (404)
    ├── PermissionDenied (403)
    ├── MethodNotAllowed (405)
    └── InternalFault (500)
        ├── SerializerBindingError
        └── ImproperlyConfigured

ValidationException é tratada localmente pelas actions (resposta 400).
NotFound e InternalFault propagam até os handlers registrados por
register_exception_handlers(), que as convertem em respostas JSON.

Example:
    from viewkit.exceptions import NotFound, ValidationException

    raise NotFound.for_model("Article", id=999)
    raise ValidationException(errors=[{"loc": ["title"], "msg": "required", "type": "missing"}])
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger("viewkit.exceptions")


# =============================================================================
# Base Exception
# =============================================================================

class ViewKitException(Exception):
    """
    Base exception for all viewkit exceptions.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional error details
    """

    message: str = "An error occurred"
    code: str = "error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code!r})"


# =============================================================================
# Client errors
# =============================================================================

class ValidationException(ViewKitException):
    """
    Raised when request input fails validation.

    Carries a list of structured errors in the Pydantic shape
    ({"loc": [...], "msg": "...", "type": "..."}).

    Example:
        raise ValidationException(
            "Invalid filter parameters",
            errors=[{"loc": ["query", "price__gte"], "msg": "not a number", "type": "float_parsing"}],
        )
    """

    message = "Validation error"
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


class InvalidLookup(ValidationException):
    """
    Raised when a path lookup value cannot be converted to the column type.

    Example:
        GET /articles/abc -> 422 {"code": "invalid_lookup", "errors": [...]}
    """

    message = "Invalid lookup value"
    code = "invalid_lookup"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    @classmethod
    def for_field(cls, field: str, value: Any, expected_type: str) -> "InvalidLookup":
        return cls(
            f"Invalid {field} format. Expected {expected_type}.",
            errors=[{
                "loc": ["path", field],
                "msg": f"Invalid {expected_type} format",
                "type": f"{expected_type.lower()}_parsing",
                "input": str(value),
            }],
        )


def pydantic_errors(exc: PydanticValidationError, prefix: str | None = None) -> list[dict[str, Any]]:
    """
    Converte erros do Pydantic para o formato JSON do framework.

    Args:
        exc: Erro de validação do Pydantic
        prefix: Origem opcional prefixada ao loc (ex: "query", "body")
    """
    errors = []
    for error in exc.errors(include_url=False):
        loc = [str(part) for part in error.get("loc", ())]
        if prefix:
            loc.insert(0, prefix)
        errors.append({
            "loc": loc,
            "msg": str(error.get("msg", "")),
            "type": error.get("type", ""),
        })
    return errors


class NotFound(ViewKitException):
    """
    Raised when a lookup finds no row in the active scope.

    Example:
        raise NotFound("Article not found")
        raise NotFound.for_model("Article", id=123)
    """

    message = "Resource not found"
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    @classmethod
    def for_model(cls, model: str, **lookup: Any) -> "NotFound":
        """Create NotFound for a model lookup."""
        if lookup:
            lookup_str = ", ".join(f"{k}={v}" for k, v in lookup.items())
            return cls(
                f"{model} with {lookup_str} not found",
                code=f"{model.lower()}_not_found",
                details={"model": model, "lookup": {k: str(v) for k, v in lookup.items()}},
            )
        return cls(f"{model} not found", code=f"{model.lower()}_not_found")


class PermissionDenied(ViewKitException):
    """Raised when a permission check fails."""

    message = "Permission denied"
    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class MethodNotAllowed(ViewKitException):
    """Raised when a ViewSet does not implement the requested action."""

    message = "Method not allowed"
    code = "method_not_allowed"
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED

    @classmethod
    def for_action(cls, action: str) -> "MethodNotAllowed":
        return cls(f"Action '{action}' is not allowed", details={"action": action})


# =============================================================================
# Internal faults
# =============================================================================

class InternalFault(ViewKitException):
    """
    Unrecoverable error for the current request.

    Never handled by the actions; always surfaced as a 500 response.
    """

    message = "Internal server error"
    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class SerializerBindingError(InternalFault):
    """
    Raised when the request payload cannot be bound onto a serializer.

    Signals a framework/environment misconfiguration, not a user
    input error.
    """

    message = "Could not bind request payload onto serializer"
    code = "serializer_binding_error"


class ImproperlyConfigured(InternalFault):
    """
    Raised when a ViewSet, serializer or route is misconfigured.

    Example:
        raise ImproperlyConfigured("ArticleViewSet must define serializer_class")
    """

    message = "Improperly configured"
    code = "improperly_configured"


# =============================================================================
# FastAPI handlers
# =============================================================================

def register_exception_handlers(app: FastAPI) -> None:
    """Registra handlers que convertem as exceções do viewkit em JSON."""

    @app.exception_handler(ViewKitException)
    async def viewkit_exception_handler(
        request: Request,
        exc: ViewKitException,
    ) -> JSONResponse:
        if isinstance(exc, InternalFault):
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.message,
                exc_info=exc,
            )
        else:
            logger.debug("%s: %s", type(exc).__name__, exc.message)

        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


__all__ = [
    "ViewKitException",
    "ValidationException",
    "InvalidLookup",
    "NotFound",
    "PermissionDenied",
    "MethodNotAllowed",
    "InternalFault",
    "SerializerBindingError",
    "ImproperlyConfigured",
    "register_exception_handlers",
    "pydantic_errors",
]
