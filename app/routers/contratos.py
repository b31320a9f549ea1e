"""
Contract lifecycle router.

Mounts under ``/api/contratos`` (prefix set in ``main.py``).

Every endpoint requires a valid JWT. Write operations additionally require
one of the ``ADMIN``, ``ADMINISTRACION`` or ``RRHH`` roles; the acting
username and client IP are recorded in the contract history.

Endpoints
---------
GET   /estadisticas                          - Counts per logical state + pay range.
POST  /sincronizar-todos-salarios            - Re-sync every worker's salary.
GET   /estado-logico/{id}                    - Date-derived state of a contract.
GET   /trabajador/{id}/activo                - The worker's ACTIVO contract (or null).
GET   /trabajador/{id}/historial             - All the worker's contracts, newest first.
POST  /trabajador/{id}/sincronizar-salario   - Mirror the ACTIVO pay onto the worker.
GET   /trabajador/{id}/validar-consistencia  - Check salary vs. ACTIVO contract.
POST  /                                      - Create a contract (supersedes ACTIVO).
GET   /{id}                                  - Contract detail.
PATCH /{id}/renovar                          - Extend an ACTIVO contract.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse, ok
from app.schemas.contrato import (
    ConsistenciaSalarialResponse,
    ContratoConEstadoResponse,
    ContratoCreate,
    ContratoRenovar,
    ContratoResponse,
    EstadisticasContratosResponse,
    EstadoLogicoResponse,
    SincronizacionMasivaResponse,
    SincronizacionSalarioResponse,
)
from app.services import contrato_service
from app.services.auth_service import (
    get_client_ip,
    get_current_user,
    require_gestion_contratos,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contratos"])

_AUTH_RESPONSES = {
    401: {"description": "Token JWT ausente o inválido."},
}
_WRITE_RESPONSES = {
    **_AUTH_RESPONSES,
    403: {"description": "Rol insuficiente (requiere ADMIN, ADMINISTRACION o RRHH)."},
}


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@router.get(
    "/estadisticas",
    response_model=ApiResponse[EstadisticasContratosResponse],
    summary="Estadísticas de contratos",
    description=(
        "Total de contratos, conteo por estado lógico (ACTIVO / VENCIDO / RENOVADO) "
        "calculado a la fecha actual, y remuneración mínima, máxima y promedio."
    ),
    responses=_AUTH_RESPONSES,
)
def get_estadisticas(
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[EstadisticasContratosResponse]:
    return ok("Estadísticas de contratos", contrato_service.obtener_estadisticas(db))


@router.post(
    "/sincronizar-todos-salarios",
    response_model=ApiResponse[SincronizacionMasivaResponse],
    summary="Sincronizar salarios de todos los trabajadores",
    description=(
        "Recorre todos los trabajadores y copia la remuneración de su contrato "
        "ACTIVO a ``salario_actual`` (o lo deja en nulo si no tienen). Los errores "
        "individuales se reportan en el detalle sin detener el proceso."
    ),
    responses=_WRITE_RESPONSES,
)
def sincronizar_todos_salarios(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[SincronizacionMasivaResponse]:
    logger.info("POST /contratos/sincronizar-todos-salarios user=%s", current_user.username)
    resultado = contrato_service.sincronizar_todos_los_salarios(db)
    return ok(
        f"Sincronización completada: {resultado.actualizados} actualizados, "
        f"{resultado.errores} errores",
        resultado,
    )


@router.get(
    "/estado-logico/{contrato_id}",
    response_model=ApiResponse[EstadoLogicoResponse],
    summary="Estado lógico de un contrato",
    description="Estado derivado de las fechas del contrato frente a la fecha actual.",
    responses={**_AUTH_RESPONSES, 404: {"description": "Contrato no encontrado."}},
)
def get_estado_logico(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[EstadoLogicoResponse]:
    return ok("Estado lógico del contrato", contrato_service.estado_logico(db, contrato_id))


# ---------------------------------------------------------------------------
# Per worker
# ---------------------------------------------------------------------------


@router.get(
    "/trabajador/{trabajador_id}/activo",
    response_model=ApiResponse[ContratoResponse],
    summary="Contrato activo del trabajador",
    responses={**_AUTH_RESPONSES, 404: {"description": "Trabajador no encontrado."}},
)
def get_contrato_activo(
    trabajador_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[ContratoResponse]:
    contrato = contrato_service.get_contrato_activo(db, trabajador_id)
    if contrato is None:
        return ok("El trabajador no tiene un contrato activo", None)
    return ok("Contrato activo encontrado", contrato)


@router.get(
    "/trabajador/{trabajador_id}/historial",
    response_model=ApiResponse[list[ContratoConEstadoResponse]],
    summary="Contratos del trabajador",
    description="Todos los contratos del trabajador, del más reciente al más antiguo.",
    responses={**_AUTH_RESPONSES, 404: {"description": "Trabajador no encontrado."}},
)
def get_contratos_trabajador(
    trabajador_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[list[ContratoConEstadoResponse]]:
    contratos = contrato_service.listar_contratos_trabajador(db, trabajador_id)
    return ok(f"{len(contratos)} contratos encontrados", contratos)


@router.post(
    "/trabajador/{trabajador_id}/sincronizar-salario",
    response_model=ApiResponse[SincronizacionSalarioResponse],
    summary="Sincronizar salario del trabajador",
    responses={**_WRITE_RESPONSES, 404: {"description": "Trabajador no encontrado."}},
)
def sincronizar_salario(
    trabajador_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[SincronizacionSalarioResponse]:
    logger.info(
        "POST /contratos/trabajador/%d/sincronizar-salario user=%s",
        trabajador_id, current_user.username,
    )
    resultado = contrato_service.sincronizar_salario_trabajador(db, trabajador_id)
    return ok("Salario sincronizado", resultado)


@router.get(
    "/trabajador/{trabajador_id}/validar-consistencia",
    response_model=ApiResponse[ConsistenciaSalarialResponse],
    summary="Validar consistencia salarial",
    description=(
        "Compara ``salario_actual`` del trabajador con la remuneración de su "
        "contrato ACTIVO (tolerancia 0.01). No modifica datos."
    ),
    responses={**_AUTH_RESPONSES, 404: {"description": "Trabajador no encontrado."}},
)
def validar_consistencia(
    trabajador_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[ConsistenciaSalarialResponse]:
    resultado = contrato_service.validar_consistencia_salarial(db, trabajador_id)
    mensaje = "Salario consistente" if resultado.es_consistente else "Salario inconsistente"
    return ok(mensaje, resultado)


# ---------------------------------------------------------------------------
# Single contract
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=ApiResponse[ContratoResponse],
    status_code=201,
    summary="Crear contrato",
    description=(
        "Crea un contrato ACTIVO con la remuneración igual al ``salario_actual`` "
        "del trabajador. Si existía un contrato ACTIVO, pasa a RENOVADO. Registra "
        "TERMINACION, CREACION y, si cambia la remuneración, CAMBIO_SALARIO en el "
        "historial, todo en una sola transacción."
    ),
    responses={
        **_WRITE_RESPONSES,
        404: {"description": "Trabajador o tipo de contrato inexistente."},
        409: {"description": "Otro contrato ACTIVO fue creado concurrentemente."},
        422: {"description": "Salario del trabajador inválido o fechas invertidas."},
    },
)
def create_contrato(
    data: ContratoCreate,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[ContratoResponse]:
    logger.info(
        "POST /contratos/ trabajador_id=%d tipo_contrato_id=%d user=%s",
        data.trabajador_id, data.tipo_contrato_id, current_user.username,
    )
    contrato = contrato_service.crear_contrato(
        db,
        data,
        usuario_accion=current_user.username,
        ip_usuario=get_client_ip(request),
    )
    return ok("Contrato creado exitosamente", contrato_service.get_detalle(db, contrato.id))


@router.get(
    "/{contrato_id}",
    response_model=ApiResponse[ContratoResponse],
    summary="Detalle de un contrato",
    responses={**_AUTH_RESPONSES, 404: {"description": "Contrato no encontrado."}},
)
def get_contrato(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
    _current_user: Annotated[Usuario, Depends(get_current_user)],
) -> ApiResponse[ContratoResponse]:
    return ok("Contrato encontrado", contrato_service.get_detalle(db, contrato_id))


@router.patch(
    "/{contrato_id}/renovar",
    response_model=ApiResponse[ContratoResponse],
    summary="Renovar contrato",
    description=(
        "Extiende la fecha de fin de un contrato ACTIVO y opcionalmente cambia su "
        "remuneración (sincronizando el salario del trabajador)."
    ),
    responses={
        **_WRITE_RESPONSES,
        404: {"description": "Contrato no encontrado."},
        422: {"description": "Contrato no ACTIVO o nueva fecha de fin inválida."},
    },
)
def renovar_contrato(
    contrato_id: int,
    data: ContratoRenovar,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[Usuario, Depends(require_gestion_contratos)],
) -> ApiResponse[ContratoResponse]:
    logger.info(
        "PATCH /contratos/%d/renovar nueva_fecha_fin=%s user=%s",
        contrato_id, data.nueva_fecha_fin, current_user.username,
    )
    contrato = contrato_service.renovar_contrato(
        db,
        contrato_id,
        data.nueva_fecha_fin,
        nueva_remuneracion=data.nueva_remuneracion,
        usuario_accion=current_user.username,
        ip_usuario=get_client_ip(request),
    )
    return ok("Contrato renovado exitosamente", contrato_service.get_detalle(db, contrato.id))
