"""
Pydantic v2 schemas for the contract lifecycle endpoints (``/api/contratos``).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.utils.constants import EstadoContrato


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ContratoCreate(BaseModel):
    """Payload for hiring / re-contracting a worker.

    There is no remuneration field: the new contract always takes the
    worker's current ``salario_actual``.
    """

    trabajador_id: int = Field(..., ge=1, description="ID del trabajador.")
    tipo_contrato_id: int = Field(..., ge=1, description="ID del tipo de contrato.")
    fecha_inicio: date = Field(..., description="Inicio de vigencia (YYYY-MM-DD).")
    fecha_fin: date = Field(..., description="Fin de vigencia (YYYY-MM-DD).")
    documento_url: str = Field(
        ..., min_length=1, max_length=2000, description="URL del contrato firmado."
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "trabajador_id": 3,
                "tipo_contrato_id": 1,
                "fecha_inicio": "2025-01-01",
                "fecha_fin": "2025-12-31",
                "documento_url": "https://docs.edificio.pe/contratos/2025-003.pdf",
            }
        }
    )


class ContratoRenovar(BaseModel):
    """Payload for ``PATCH /api/contratos/{id}/renovar``."""

    nueva_fecha_fin: date = Field(..., description="Nueva fecha de fin (YYYY-MM-DD).")
    nueva_remuneracion: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=10,
        decimal_places=2,
        description="Nueva remuneración; omitir para mantener la actual.",
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ContratoResponse(BaseModel):
    """Full representation of a contract."""

    id: int
    trabajador_id: int
    trabajador_nombre: str | None = None
    tipo_contrato_id: int
    tipo_contrato_nombre: str | None = None
    documento_url: str
    remuneracion: float
    fecha_inicio: date
    fecha_fin: date
    estado: EstadoContrato
    estado_renovacion: bool
    fecha_renovacion: date | None = None
    motivo_terminacion: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ContratoConEstadoResponse(ContratoResponse):
    """Contract plus its derived logical state at the time of the request."""

    estado_logico: EstadoContrato
    es_activo: bool


class EstadoLogicoResponse(BaseModel):
    contrato_id: int
    estado_persistido: EstadoContrato
    estado_logico: EstadoContrato
    fecha_referencia: date


class SincronizacionSalarioResponse(BaseModel):
    """Result of mirroring the active contract's remuneration onto the worker."""

    trabajador_id: int
    salario_anterior: float | None
    salario_nuevo: float | None
    contrato_activo_id: int | None
    actualizado: bool = Field(..., description="Si el valor del salario cambió.")


class DetalleSincronizacion(BaseModel):
    trabajador_id: int
    trabajador: str
    estado: str = Field(..., description="actualizado | sin_cambios | error")
    salario_nuevo: float | None = None
    razon: str | None = None


class SincronizacionMasivaResponse(BaseModel):
    """Aggregate outcome of ``POST /sincronizar-todos-salarios``."""

    total_procesados: int = Field(..., ge=0)
    actualizados: int = Field(..., ge=0)
    sin_cambios: int = Field(..., ge=0)
    errores: int = Field(..., ge=0)
    detalles: list[DetalleSincronizacion] = Field(default_factory=list)


class ContratoActivoResumen(BaseModel):
    id: int
    remuneracion: float
    fecha_inicio: date
    fecha_fin: date


class ConsistenciaDetalle(BaseModel):
    trabajador_id: int
    salario_trabajador: float | None
    contrato_activo: ContratoActivoResumen | None
    diferencia: float | None = None
    razon: str


class ConsistenciaSalarialResponse(BaseModel):
    """Whether ``salario_actual`` mirrors the active contract (±0.01)."""

    es_consistente: bool
    detalle: ConsistenciaDetalle


class ContratosPorEstado(BaseModel):
    activos: int = 0
    vencidos: int = 0
    renovados: int = 0


class RangoRemuneracion(BaseModel):
    minima: float = 0.0
    maxima: float = 0.0
    promedio: float = 0.0


class EstadisticasContratosResponse(BaseModel):
    total_contratos: int = Field(..., ge=0)
    por_estado: ContratosPorEstado
    rangos_remuneracion: RangoRemuneracion
