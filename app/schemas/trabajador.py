"""
Pydantic v2 schemas for the worker / contract-type lookups consumed by the
contract lifecycle.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class TrabajadorResponse(BaseModel):
    id: int
    nombre: str
    apellido: str
    correo: str
    esta_activo: bool
    telefono: str | None = None
    fecha_ingreso: date | None = None
    salario_actual: float | None = None

    model_config = ConfigDict(from_attributes=True)


class SalarioActualUpdate(BaseModel):
    """Salary HR assigns to the worker; the next contract will carry it."""

    salario_actual: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class TipoContratoResponse(BaseModel):
    id: int
    nombre: str
    descripcion: str | None = None

    model_config = ConfigDict(from_attributes=True)
