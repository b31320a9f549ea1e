"""
Shared Pydantic v2 schemas reused across modules.

Every endpoint answers with the same ``ApiResponse`` envelope; failures
produced by ``app.utils.exceptions.DomainError`` are rendered with the same
shape by the exception handler in ``app.main``.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope.

    Attributes:
        success: ``True`` when the operation completed.
        message: Short human-readable result summary.
        data: Payload of the operation (``None`` on failure).
        error: Machine-readable error code on failure, else ``None``.
    """

    success: bool = Field(default=True, description="Resultado de la operación.")
    message: str = Field(..., description="Resumen del resultado de la operación.")
    data: T | None = Field(default=None, description="Contenido de la respuesta.")
    error: str | None = Field(
        default=None,
        description="Código de error (NOT_FOUND, INVALID_STATE, CONFLICT, INTERNAL_ERROR).",
    )


def ok(message: str, data: T) -> ApiResponse[T]:
    """Shorthand for a successful envelope."""
    return ApiResponse(success=True, message=message, data=data)
