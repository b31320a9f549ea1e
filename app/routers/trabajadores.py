"""
Worker lookups used by the contract screens.

Mounts under ``/api/trabajadores`` (prefix set in ``main.py``).

Endpoints
---------
GET   /{id}                 - Worker detail including ``salario_actual``.
PATCH /{id}/salario-actual  - Set the salary the next contract will carry.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse, ok
from app.schemas.trabajador import SalarioActualUpdate, TrabajadorResponse
from app.services import trabajador_service
from app.services.auth_service import get_current_user, require_gestion_contratos

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Trabajadores"])


@router.get(
    "/{trabajador_id}",
    response_model=ApiResponse[TrabajadorResponse],
    summary="Detalle de un trabajador",
    responses={404: {"description": "Trabajador no encontrado."}},
)
def get_trabajador(
    trabajador_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[TrabajadorResponse]:
    trabajador = trabajador_service.get_trabajador(db, trabajador_id)
    return ok("Trabajador encontrado", TrabajadorResponse.model_validate(trabajador))


@router.patch(
    "/{trabajador_id}/salario-actual",
    response_model=ApiResponse[TrabajadorResponse],
    summary="Actualizar salario actual",
    description=(
        "Registra el salario acordado para el trabajador. El próximo contrato "
        "que se cree tomará este valor como remuneración."
    ),
    responses={
        403: {"description": "Rol insuficiente (requiere ADMIN, ADMINISTRACION o RRHH)."},
        404: {"description": "Trabajador no encontrado."},
    },
)
def update_salario_actual(
    trabajador_id: int,
    data: SalarioActualUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[TrabajadorResponse]:
    logger.info(
        "PATCH /trabajadores/%d/salario-actual salario=%s user=%s",
        trabajador_id, data.salario_actual, current_user.username,
    )
    trabajador = trabajador_service.actualizar_salario(db, trabajador_id, data.salario_actual)
    return ok("Salario actualizado", TrabajadorResponse.model_validate(trabajador))
