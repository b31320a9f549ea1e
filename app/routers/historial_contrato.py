"""
Contract history (ledger) router.

Mounts under ``/api/historial-contrato`` (prefix set in ``main.py``).

The ledger is append-only: there are no update or delete endpoints. Reads
require a valid JWT; manual writes require ADMIN, ADMINISTRACION or RRHH.

Endpoints
---------
POST /                              - Append an entry (full body).
POST /registrar-accion              - Append an entry (acting user from token).
GET  /                              - Every entry, newest first.
GET  /estadisticas                  - Totals and per-action breakdown.
GET  /recientes?dias=               - Entries from the last N days.
GET  /rango-fechas                  - Entries between two dates (inclusive).
GET  /exportar/excel                - Download the ledger as .xlsx.
GET  /tipo-accion/{tipo}            - Entries of one action type.
GET  /trabajador/{id}               - Entries across the worker's contracts.
GET  /contrato/{id}                 - Entries of one contract, newest first.
GET  /contrato/{id}/cronologico     - Same, oldest first.
GET  /contrato/{id}/ultima-accion   - Latest entry of the contract.
GET  /contrato/{id}/resumen         - Per-action counts for the contract.
GET  /{id}                          - One entry.
"""

from __future__ import annotations

import io
import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse, ok
from app.schemas.historial_contrato import (
    EstadisticasAccionesResponse,
    HistorialContratoCreate,
    HistorialContratoResponse,
    RegistrarAccionRequest,
    ResumenActividadResponse,
)
from app.services import exportacion_service, historial_contrato_service
from app.services.auth_service import (
    get_client_ip,
    get_current_user,
    require_gestion_contratos,
)
from app.utils.constants import TipoAccionHistorial

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Historial de Contratos"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_AUTH_RESPONSES = {401: {"description": "Token JWT ausente o inválido."}}
_WRITE_RESPONSES = {
    **_AUTH_RESPONSES,
    403: {"description": "Rol insuficiente (requiere ADMIN, ADMINISTRACION o RRHH)."},
    404: {"description": "Contrato no encontrado."},
}


def _lista(entradas: list[HistorialContratoResponse]) -> ApiResponse[list[HistorialContratoResponse]]:
    return ok(f"{len(entradas)} registros encontrados", entradas)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=ApiResponse[HistorialContratoResponse],
    status_code=201,
    summary="Registrar entrada de historial",
    description=(
        "Agrega una entrada al historial del contrato. Si no se indica "
        "``usuario_accion`` / ``ip_usuario`` se toman del usuario autenticado "
        "y de la petición."
    ),
    responses=_WRITE_RESPONSES,
)
def create_historial(
    data: HistorialContratoCreate,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[HistorialContratoResponse]:
    data = data.model_copy(
        update={
            "usuario_accion": data.usuario_accion or current_user.username,
            "ip_usuario": data.ip_usuario or get_client_ip(request),
        }
    )
    entrada = historial_contrato_service.create(db, data)
    return ok("Registro de historial creado", entrada)


@router.post(
    "/registrar-accion",
    response_model=ApiResponse[HistorialContratoResponse],
    status_code=201,
    summary="Registrar acción sobre un contrato",
    responses=_WRITE_RESPONSES,
)
def registrar_accion(
    data: RegistrarAccionRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[HistorialContratoResponse]:
    logger.info(
        "POST /historial-contrato/registrar-accion contrato_id=%d tipo=%s user=%s",
        data.contrato_id, data.tipo_accion.value, current_user.username,
    )
    entrada = historial_contrato_service.registrar_accion(
        db,
        data.contrato_id,
        data.tipo_accion,
        data.descripcion,
        estado_anterior=data.estado_anterior,
        estado_nuevo=data.estado_nuevo,
        usuario_accion=data.usuario_accion or current_user.username,
        observaciones=data.observaciones,
        ip_usuario=get_client_ip(request),
    )
    return ok("Acción registrada", entrada)


# ---------------------------------------------------------------------------
# Ledger-wide reads
# ---------------------------------------------------------------------------


@router.get(
    "/",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Listar historial completo",
    responses=_AUTH_RESPONSES,
)
def list_historial(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(historial_contrato_service.find_all(db))


@router.get(
    "/estadisticas",
    response_model=ApiResponse[EstadisticasAccionesResponse],
    summary="Estadísticas del historial",
    responses=_AUTH_RESPONSES,
)
def get_estadisticas(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[EstadisticasAccionesResponse]:
    return ok("Estadísticas del historial", historial_contrato_service.obtener_estadisticas(db))


@router.get(
    "/recientes",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Acciones recientes",
    description="Entradas registradas en los últimos ``dias`` días (default 30).",
    responses=_AUTH_RESPONSES,
)
def get_recientes(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
    dias: Annotated[
        int | None, Query(description="Ventana en días hacia atrás.", ge=1, le=3650)
    ] = None,
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(historial_contrato_service.find_recientes(db, dias))


@router.get(
    "/rango-fechas",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Historial por rango de fechas",
    description=(
        "Entradas registradas entre ``fecha_inicio`` y ``fecha_fin`` (ambas "
        "inclusive), opcionalmente de un solo contrato."
    ),
    responses={**_AUTH_RESPONSES, 422: {"description": "fecha_inicio posterior a fecha_fin."}},
)
def get_por_rango_fechas(
    fecha_inicio: Annotated[date, Query(description="Fecha inicial (YYYY-MM-DD).")],
    fecha_fin: Annotated[date, Query(description="Fecha final (YYYY-MM-DD).")],
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
    contrato_id: Annotated[int | None, Query(ge=1)] = None,
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(
        historial_contrato_service.find_by_rango_fechas(
            db, fecha_inicio, fecha_fin, contrato_id=contrato_id
        )
    )


@router.get(
    "/exportar/excel",
    summary="Exportar historial a Excel",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Archivo Excel generado.", "content": {_XLSX_MEDIA_TYPE: {}}},
        **_AUTH_RESPONSES,
    },
)
def exportar_excel(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
    contrato_id: Annotated[int | None, Query(ge=1)] = None,
    trabajador_id: Annotated[int | None, Query(ge=1)] = None,
) -> StreamingResponse:
    file_bytes = exportacion_service.exportar_historial_excel(
        db, contrato_id=contrato_id, trabajador_id=trabajador_id
    )
    filename = f"historial_contratos_{date.today().strftime('%Y%m%d')}.xlsx"
    return StreamingResponse(
        io.BytesIO(file_bytes),
        media_type=_XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(file_bytes)),
        },
    )


@router.get(
    "/tipo-accion/{tipo_accion}",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Historial por tipo de acción",
    responses=_AUTH_RESPONSES,
)
def get_por_tipo_accion(
    tipo_accion: TipoAccionHistorial,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(historial_contrato_service.find_by_tipo_accion(db, tipo_accion))


@router.get(
    "/trabajador/{trabajador_id}",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Historial de los contratos de un trabajador",
    responses=_AUTH_RESPONSES,
)
def get_por_trabajador(
    trabajador_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(historial_contrato_service.find_by_trabajador(db, trabajador_id))


# ---------------------------------------------------------------------------
# Per contract
# ---------------------------------------------------------------------------


@router.get(
    "/contrato/{contrato_id}",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Historial de un contrato",
    description="Entradas del contrato, de la más reciente a la más antigua.",
    responses=_AUTH_RESPONSES,
)
def get_por_contrato(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(historial_contrato_service.find_by_contrato(db, contrato_id))


@router.get(
    "/contrato/{contrato_id}/cronologico",
    response_model=ApiResponse[list[HistorialContratoResponse]],
    summary="Historial cronológico de un contrato",
    description="Entradas del contrato, de la más antigua a la más reciente.",
    responses=_AUTH_RESPONSES,
)
def get_cronologico(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[HistorialContratoResponse]]:
    return _lista(
        historial_contrato_service.find_by_contrato(db, contrato_id, cronologico=True)
    )


@router.get(
    "/contrato/{contrato_id}/ultima-accion",
    response_model=ApiResponse[HistorialContratoResponse],
    summary="Última acción sobre un contrato",
    responses={**_AUTH_RESPONSES, 404: {"description": "El contrato no tiene acciones."}},
)
def get_ultima_accion(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[HistorialContratoResponse]:
    return ok(
        "Última acción encontrada",
        historial_contrato_service.obtener_ultima_accion(db, contrato_id),
    )


@router.get(
    "/contrato/{contrato_id}/resumen",
    response_model=ApiResponse[ResumenActividadResponse],
    summary="Resumen de actividad de un contrato",
    responses=_AUTH_RESPONSES,
)
def get_resumen(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[ResumenActividadResponse]:
    return ok(
        "Resumen de actividad",
        historial_contrato_service.obtener_resumen_actividad(db, contrato_id),
    )


@router.get(
    "/{historial_id}",
    response_model=ApiResponse[HistorialContratoResponse],
    summary="Detalle de una entrada de historial",
    responses={**_AUTH_RESPONSES, 404: {"description": "Registro no encontrado."}},
)
def get_historial(
    historial_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[HistorialContratoResponse]:
    return ok("Registro encontrado", historial_contrato_service.find_one(db, historial_id))
