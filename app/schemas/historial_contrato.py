"""
Pydantic v2 schemas for the contract history ledger (``/api/historial-contrato``).

Ledger entries are append-only, so there is a create payload and read
models but no update payload.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.utils.constants import EstadoContrato, TipoAccionHistorial


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class HistorialContratoCreate(BaseModel):
    """Body of ``POST /api/historial-contrato``.

    ``usuario_accion`` and ``ip_usuario`` default to the authenticated user
    and the client address when omitted.
    """

    contrato_id: int = Field(..., ge=1, description="ID del contrato.")
    tipo_accion: TipoAccionHistorial = Field(..., description="Tipo de acción realizada.")
    descripcion_accion: str = Field(..., min_length=1, description="Descripción de la acción.")
    estado_anterior: dict[str, Any] | None = Field(
        default=None, description="Estado del contrato antes del cambio."
    )
    estado_nuevo: dict[str, Any] | None = Field(
        default=None, description="Estado del contrato después del cambio."
    )
    observaciones: str | None = Field(default=None, description="Observaciones adicionales.")
    usuario_accion: str | None = Field(default=None, max_length=100)
    ip_usuario: str | None = Field(default=None, max_length=45)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "contrato_id": 12,
                "tipo_accion": "MODIFICACION",
                "descripcion_accion": "Se actualizó la remuneración de 2000 a 2500",
                "estado_anterior": {"remuneracion": 2000, "estado": "ACTIVO"},
                "estado_nuevo": {"remuneracion": 2500, "estado": "ACTIVO"},
                "observaciones": "Ajuste por evaluación de desempeño",
            }
        }
    )


class RegistrarAccionRequest(BaseModel):
    """Body of ``POST /api/historial-contrato/registrar-accion``."""

    contrato_id: int = Field(..., ge=1)
    tipo_accion: TipoAccionHistorial
    descripcion: str = Field(..., min_length=1)
    estado_anterior: dict[str, Any] | None = None
    estado_nuevo: dict[str, Any] | None = None
    usuario_accion: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ContratoInfo(BaseModel):
    id: int
    documento_url: str
    remuneracion: float
    fecha_inicio: date
    fecha_fin: date
    estado: EstadoContrato


class TrabajadorInfo(BaseModel):
    id: int
    nombre_completo: str
    correo: str
    salario_actual: float | None = None


class HistorialContratoResponse(BaseModel):
    """A ledger entry enriched with its contract and worker summaries."""

    id: int
    fecha_registro: datetime
    tipo_accion: TipoAccionHistorial
    descripcion_accion: str
    estado_anterior: dict[str, Any] | None = None
    estado_nuevo: dict[str, Any] | None = None
    observaciones: str | None = None
    usuario_accion: str | None = None
    ip_usuario: str | None = None
    contrato: ContratoInfo
    trabajador: TrabajadorInfo


class AccionPorTipo(BaseModel):
    tipo_accion: TipoAccionHistorial
    cantidad: int
    primera_accion: datetime
    ultima_accion: datetime


class ResumenActividadResponse(BaseModel):
    """Per-contract activity summary."""

    contrato_id: int
    total_acciones: int = Field(..., ge=0)
    acciones_por_tipo: list[AccionPorTipo] = Field(default_factory=list)
    primera_actividad: datetime | None = None
    ultima_actividad: datetime | None = None


class EstadisticaTipoAccion(BaseModel):
    tipo_accion: TipoAccionHistorial
    total: int
    contratos_afectados: int


class EstadisticasAccionesResponse(BaseModel):
    """Ledger-wide statistics."""

    total_acciones: int = Field(..., ge=0)
    contratos_con_historial: int = Field(..., ge=0)
    estadisticas_por_tipo: list[EstadisticaTipoAccion] = Field(default_factory=list)
