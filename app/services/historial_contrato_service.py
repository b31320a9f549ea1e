"""
Contract history ledger service.

Write side
----------
``agregar_entrada`` appends one row to the current session without
committing; ``contrato_service`` calls it inside its own transactions so the
ledger rows commit or roll back together with the contract change.
``registrar_accion`` / ``create`` are the standalone variants behind the
HTTP endpoints and commit on their own. Entries are never updated (see the
``before_update`` listener on ``HistorialContrato``).

Read side
---------
Every query is a pure filter over ``historial_contrato`` joined to its
contract and worker. Newest-first is the default order; ties on
``fecha_registro`` (rows written in the same transaction) break on ``id``
so that insertion order is preserved.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from app.config import get_settings
from app.models.contrato import Contrato
from app.models.historial_contrato import HistorialContrato
from app.schemas.historial_contrato import (
    AccionPorTipo,
    ContratoInfo,
    EstadisticasAccionesResponse,
    EstadisticaTipoAccion,
    HistorialContratoCreate,
    HistorialContratoResponse,
    ResumenActividadResponse,
    TrabajadorInfo,
)
from app.utils.constants import TipoAccionHistorial
from app.utils.exceptions import InternalError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ahora() -> datetime.datetime:
    return datetime.datetime.now()


def _base_query(db: Session) -> Query:
    return db.query(HistorialContrato).options(
        joinedload(HistorialContrato.contrato).joinedload(Contrato.trabajador)
    )


def _newest_first(query: Query) -> Query:
    return query.order_by(HistorialContrato.fecha_registro.desc(), HistorialContrato.id.desc())


def _oldest_first(query: Query) -> Query:
    return query.order_by(HistorialContrato.fecha_registro.asc(), HistorialContrato.id.asc())


def _build_response(entrada: HistorialContrato) -> HistorialContratoResponse:
    """Map a ledger row to its response, resolving contract and worker summaries."""
    contrato = entrada.contrato
    trabajador = contrato.trabajador
    return HistorialContratoResponse(
        id=entrada.id,
        fecha_registro=entrada.fecha_registro,
        tipo_accion=entrada.tipo_accion,
        descripcion_accion=entrada.descripcion_accion,
        estado_anterior=entrada.estado_anterior,
        estado_nuevo=entrada.estado_nuevo,
        observaciones=entrada.observaciones,
        usuario_accion=entrada.usuario_accion,
        ip_usuario=entrada.ip_usuario,
        contrato=ContratoInfo(
            id=contrato.id,
            documento_url=contrato.documento_url,
            remuneracion=float(contrato.remuneracion),
            fecha_inicio=contrato.fecha_inicio,
            fecha_fin=contrato.fecha_fin,
            estado=contrato.estado,
        ),
        trabajador=TrabajadorInfo(
            id=trabajador.id,
            nombre_completo=trabajador.nombre_completo,
            correo=trabajador.correo,
            salario_actual=(
                float(trabajador.salario_actual)
                if trabajador.salario_actual is not None
                else None
            ),
        ),
    )


def _build_list(rows: list[HistorialContrato]) -> list[HistorialContratoResponse]:
    return [_build_response(r) for r in rows]


def _day_bounds(
    fecha_inicio: datetime.date, fecha_fin: datetime.date
) -> tuple[datetime.datetime, datetime.datetime]:
    """Return ``[start 00:00, day-after-end 00:00)`` so the end date is inclusive."""
    if fecha_inicio > fecha_fin:
        raise InvalidStateError(
            f"La fecha de inicio ({fecha_inicio}) es posterior a la fecha de fin ({fecha_fin})."
        )
    desde = datetime.datetime.combine(fecha_inicio, datetime.time.min)
    hasta = datetime.datetime.combine(
        fecha_fin + datetime.timedelta(days=1), datetime.time.min
    )
    return desde, hasta


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


def agregar_entrada(
    db: Session,
    contrato: Contrato,
    tipo_accion: TipoAccionHistorial,
    descripcion: str,
    estado_anterior: dict[str, Any] | None = None,
    estado_nuevo: dict[str, Any] | None = None,
    usuario_accion: str | None = None,
    ip_usuario: str | None = None,
    observaciones: str | None = None,
) -> HistorialContrato:
    """Append a ledger entry to the session without committing.

    The caller owns the transaction. ``contrato`` may be pending (not yet
    flushed); the relationship assignment resolves its id on flush.
    """
    entrada = HistorialContrato(
        contrato=contrato,
        fecha_registro=_ahora(),
        tipo_accion=tipo_accion,
        descripcion_accion=descripcion,
        estado_anterior=estado_anterior,
        estado_nuevo=estado_nuevo,
        observaciones=observaciones,
        usuario_accion=usuario_accion,
        ip_usuario=ip_usuario,
    )
    db.add(entrada)
    logger.debug(
        "agregar_entrada: contrato_id=%s tipo=%s", contrato.id, tipo_accion.value
    )
    return entrada


def registrar_accion(
    db: Session,
    contrato_id: int,
    tipo_accion: TipoAccionHistorial,
    descripcion: str,
    estado_anterior: dict[str, Any] | None = None,
    estado_nuevo: dict[str, Any] | None = None,
    usuario_accion: str | None = None,
    observaciones: str | None = None,
    ip_usuario: str | None = None,
) -> HistorialContratoResponse:
    """Validate the contract exists, then append and commit one ledger entry.

    Not idempotent: every call writes a new row.

    Raises:
        NotFoundError: If the contract does not exist.
        InternalError: If the insert fails (the session is rolled back).
    """
    contrato: Contrato | None = db.query(Contrato).filter(Contrato.id == contrato_id).first()
    if contrato is None:
        raise NotFoundError(f"Contrato con ID {contrato_id} no encontrado.")

    try:
        entrada = agregar_entrada(
            db,
            contrato,
            tipo_accion,
            descripcion,
            estado_anterior=estado_anterior,
            estado_nuevo=estado_nuevo,
            usuario_accion=usuario_accion,
            ip_usuario=ip_usuario,
            observaciones=observaciones,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("registrar_accion: rollback contrato_id=%d", contrato_id)
        raise InternalError(f"Error al registrar acción: {exc}") from exc

    db.refresh(entrada)
    logger.info(
        "registrar_accion: id=%d contrato_id=%d tipo=%s usuario=%s",
        entrada.id, contrato_id, tipo_accion.value, usuario_accion,
    )
    return _build_response(entrada)


def create(db: Session, data: HistorialContratoCreate) -> HistorialContratoResponse:
    """POST-body variant of ``registrar_accion``."""
    return registrar_accion(
        db,
        data.contrato_id,
        data.tipo_accion,
        data.descripcion_accion,
        estado_anterior=data.estado_anterior,
        estado_nuevo=data.estado_nuevo,
        usuario_accion=data.usuario_accion,
        observaciones=data.observaciones,
        ip_usuario=data.ip_usuario,
    )


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def find_all(db: Session) -> list[HistorialContratoResponse]:
    rows = _newest_first(_base_query(db)).all()
    logger.debug("find_all: %d registros", len(rows))
    return _build_list(rows)


def find_one(db: Session, historial_id: int) -> HistorialContratoResponse:
    entrada: HistorialContrato | None = (
        _base_query(db).filter(HistorialContrato.id == historial_id).first()
    )
    if entrada is None:
        raise NotFoundError(f"Registro de historial con ID {historial_id} no encontrado.")
    return _build_response(entrada)


def find_by_contrato(
    db: Session, contrato_id: int, cronologico: bool = False
) -> list[HistorialContratoResponse]:
    """Entries of one contract, newest first or (``cronologico``) oldest first."""
    query = _base_query(db).filter(HistorialContrato.contrato_id == contrato_id)
    query = _oldest_first(query) if cronologico else _newest_first(query)
    rows = query.all()
    logger.debug(
        "find_by_contrato: contrato_id=%d cronologico=%s -> %d", contrato_id, cronologico, len(rows)
    )
    return _build_list(rows)


def find_by_trabajador(db: Session, trabajador_id: int) -> list[HistorialContratoResponse]:
    """Entries of every contract owned by the worker, newest first."""
    rows = _newest_first(
        _base_query(db)
        .join(Contrato, HistorialContrato.contrato_id == Contrato.id)
        .filter(Contrato.trabajador_id == trabajador_id)
    ).all()
    logger.debug("find_by_trabajador: trabajador_id=%d -> %d", trabajador_id, len(rows))
    return _build_list(rows)


def find_by_tipo_accion(
    db: Session, tipo_accion: TipoAccionHistorial
) -> list[HistorialContratoResponse]:
    rows = _newest_first(
        _base_query(db).filter(HistorialContrato.tipo_accion == tipo_accion)
    ).all()
    return _build_list(rows)


def find_recientes(db: Session, dias: int | None = None) -> list[HistorialContratoResponse]:
    """Entries recorded within the last ``dias`` days, across all contracts.

    ``dias`` defaults to ``HISTORIAL_DIAS_RECIENTES``.
    """
    if dias is None:
        dias = get_settings().HISTORIAL_DIAS_RECIENTES
    if dias < 1:
        raise InvalidStateError("El número de días debe ser mayor o igual a 1.")
    limite = _ahora() - datetime.timedelta(days=dias)
    rows = _newest_first(
        _base_query(db).filter(HistorialContrato.fecha_registro >= limite)
    ).all()
    logger.debug("find_recientes: dias=%d limite=%s -> %d", dias, limite, len(rows))
    return _build_list(rows)


def find_by_rango_fechas(
    db: Session,
    fecha_inicio: datetime.date,
    fecha_fin: datetime.date,
    contrato_id: int | None = None,
) -> list[HistorialContratoResponse]:
    """Entries recorded between two dates (both inclusive), optionally for one contract."""
    desde, hasta = _day_bounds(fecha_inicio, fecha_fin)
    query = _base_query(db).filter(
        HistorialContrato.fecha_registro >= desde,
        HistorialContrato.fecha_registro < hasta,
    )
    if contrato_id is not None:
        query = query.filter(HistorialContrato.contrato_id == contrato_id)
    return _build_list(_newest_first(query).all())


def obtener_ultima_accion(db: Session, contrato_id: int) -> HistorialContratoResponse:
    """Most recent entry for the contract.

    Raises:
        NotFoundError: If the contract has no entries.
    """
    entrada: HistorialContrato | None = _newest_first(
        _base_query(db).filter(HistorialContrato.contrato_id == contrato_id)
    ).first()
    if entrada is None:
        raise NotFoundError(
            f"No se encontraron acciones para el contrato con ID {contrato_id}."
        )
    return _build_response(entrada)


def obtener_resumen_actividad(db: Session, contrato_id: int) -> ResumenActividadResponse:
    """Count per action type plus first/last timestamps for one contract."""
    rows = (
        db.query(
            HistorialContrato.tipo_accion.label("tipo_accion"),
            func.count(HistorialContrato.id).label("cantidad"),
            func.min(HistorialContrato.fecha_registro).label("primera"),
            func.max(HistorialContrato.fecha_registro).label("ultima"),
        )
        .filter(HistorialContrato.contrato_id == contrato_id)
        .group_by(HistorialContrato.tipo_accion)
        .order_by(HistorialContrato.tipo_accion)
        .all()
    )

    acciones = [
        AccionPorTipo(
            tipo_accion=row.tipo_accion,
            cantidad=row.cantidad,
            primera_accion=row.primera,
            ultima_accion=row.ultima,
        )
        for row in rows
    ]
    return ResumenActividadResponse(
        contrato_id=contrato_id,
        total_acciones=sum(a.cantidad for a in acciones),
        acciones_por_tipo=acciones,
        primera_actividad=min((a.primera_accion for a in acciones), default=None),
        ultima_actividad=max((a.ultima_accion for a in acciones), default=None),
    )


def obtener_estadisticas(db: Session) -> EstadisticasAccionesResponse:
    """Ledger-wide totals: actions, distinct contracts touched, per-type breakdown."""
    total_acciones: int = db.query(func.count(HistorialContrato.id)).scalar() or 0
    contratos_con_historial: int = (
        db.query(func.count(distinct(HistorialContrato.contrato_id))).scalar() or 0
    )
    rows = (
        db.query(
            HistorialContrato.tipo_accion.label("tipo_accion"),
            func.count(HistorialContrato.id).label("total"),
            func.count(distinct(HistorialContrato.contrato_id)).label("contratos"),
        )
        .group_by(HistorialContrato.tipo_accion)
        .order_by(func.count(HistorialContrato.id).desc())
        .all()
    )

    logger.debug(
        "obtener_estadisticas: total=%d contratos=%d tipos=%d",
        total_acciones, contratos_con_historial, len(rows),
    )
    return EstadisticasAccionesResponse(
        total_acciones=total_acciones,
        contratos_con_historial=contratos_con_historial,
        estadisticas_por_tipo=[
            EstadisticaTipoAccion(
                tipo_accion=row.tipo_accion,
                total=row.total,
                contratos_afectados=row.contratos,
            )
            for row in rows
        ],
    )
