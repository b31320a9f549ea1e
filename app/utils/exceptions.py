"""
Excepciones de dominio para la capa de servicios.

``app.main`` las traduce a la respuesta JSON uniforme
``{success, message, data, error}`` con el código HTTP de cada clase.
No dependen de FastAPI.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base para errores de negocio."""

    status_code: int = 400
    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Trabajador, contrato, tipo de contrato o registro de historial inexistente."""

    status_code = 404
    code = "NOT_FOUND"


class InvalidStateError(DomainError):
    """Salario ausente o no positivo, fechas invertidas, contrato en estado terminal."""

    status_code = 422
    code = "INVALID_STATE"


class ConflictError(DomainError):
    """La operación violaría la unicidad del contrato ACTIVO por trabajador."""

    status_code = 409
    code = "CONFLICT"


class InternalError(DomainError):
    """Fallo inesperado de base de datos; la transacción ya fue revertida."""

    status_code = 500
    code = "INTERNAL_ERROR"


class LedgerImmutableError(DomainError):
    """Intento de modificar un registro del historial de contratos."""

    status_code = 409
    code = "LEDGER_IMMUTABLE"
