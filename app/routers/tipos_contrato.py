"""
Contract-type catalogue.

Mounts under ``/api/tipos-contrato`` (prefix set in ``main.py``).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse, ok
from app.schemas.trabajador import TipoContratoResponse
from app.services import trabajador_service
from app.services.auth_service import get_current_user

router = APIRouter(tags=["Tipos de Contrato"])


@router.get(
    "/",
    response_model=ApiResponse[list[TipoContratoResponse]],
    summary="Listar tipos de contrato",
)
def list_tipos_contrato(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[TipoContratoResponse]]:
    tipos = trabajador_service.list_tipos_contrato(db)
    return ok(
        f"{len(tipos)} tipos de contrato",
        [TipoContratoResponse.model_validate(t) for t in tipos],
    )
