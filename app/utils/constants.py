"""
Application-wide constants for the building management backend.

Defines domain enumerations, business rule thresholds, and
lookup lists used across routers, services, and models.
"""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Final

# ---------------------------------------------------------------------------
# User roles
# ---------------------------------------------------------------------------

ROLES: Final[list[str]] = [
    "ADMIN",
    "ADMINISTRACION",
    "RRHH",
    "CONSULTA",
]

# Roles allowed to hire, renew, and resynchronise salaries
ROLES_GESTION_CONTRATOS: Final[tuple[str, ...]] = ("ADMIN", "ADMINISTRACION", "RRHH")

# ---------------------------------------------------------------------------
# Contract states
# ---------------------------------------------------------------------------


class EstadoContrato(str, enum.Enum):
    """Persisted (and derived) lifecycle state of a worker contract.

    ``VENCIDO`` and ``RENOVADO`` are terminal: a contract in either state is
    never reactivated; a new contract is created instead.
    """

    ACTIVO = "ACTIVO"
    VENCIDO = "VENCIDO"
    RENOVADO = "RENOVADO"


# ---------------------------------------------------------------------------
# Contract history action types
# ---------------------------------------------------------------------------


class TipoAccionHistorial(str, enum.Enum):
    """Kind of state-changing action recorded in the contract ledger."""

    CREACION = "CREACION"
    MODIFICACION = "MODIFICACION"
    RENOVACION = "RENOVACION"
    SUSPENSION = "SUSPENSION"
    REACTIVACION = "REACTIVACION"
    TERMINACION = "TERMINACION"
    CAMBIO_SALARIO = "CAMBIO_SALARIO"
    CAMBIO_ESTADO = "CAMBIO_ESTADO"
    VENCIMIENTO = "VENCIMIENTO"


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------

MOTIVO_REEMPLAZO: Final[str] = "Reemplazado por nuevo contrato"

# Decimal places kept for remuneration / salary amounts
PRECISION_MONTO: Final[Decimal] = Decimal("0.01")
