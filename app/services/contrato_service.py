"""
Contract lifecycle service layer.

All database access for ``/api/contratos`` lives here. Functions receive a
SQLAlchemy ``Session`` and raise ``app.utils.exceptions`` errors; routers
wrap the results in the ``ApiResponse`` envelope.

Design notes
------------
- A worker has at most one ``ACTIVO`` contract. ``crear_contrato`` keeps it
  that way in one transaction: the worker row is locked
  (``SELECT ... FOR UPDATE``), the previous ACTIVO contract is flushed as
  ``RENOVADO`` before the new row is inserted, and the partial unique index
  ``uq_contrato_activo_trabajador`` turns any race that slips through into
  an ``IntegrityError`` (reported as ``ConflictError``).
- ``Trabajador.salario_actual`` mirrors the ACTIVO contract's remuneration.
  It is written here only: inline during creation/renewal, and through
  ``sincronizar_salario_trabajador`` for on-demand repair.
- Every state transition appends ledger rows through
  ``historial_contrato_service.agregar_entrada`` inside the same
  transaction, so a rollback never leaves a ledger row without its change.
- ``determinar_estado_logico`` is a pure date calculation used for
  reporting; it never overwrites the persisted ``estado``.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.contrato import UQ_CONTRATO_ACTIVO, Contrato
from app.models.trabajador import Trabajador
from app.schemas.contrato import (
    ConsistenciaDetalle,
    ConsistenciaSalarialResponse,
    ContratoActivoResumen,
    ContratoConEstadoResponse,
    ContratoCreate,
    ContratoResponse,
    ContratosPorEstado,
    DetalleSincronizacion,
    EstadisticasContratosResponse,
    EstadoLogicoResponse,
    RangoRemuneracion,
    SincronizacionMasivaResponse,
    SincronizacionSalarioResponse,
)
from app.services import historial_contrato_service, trabajador_service
from app.utils.constants import (
    MOTIVO_REEMPLAZO,
    PRECISION_MONTO,
    EstadoContrato,
    TipoAccionHistorial,
)
from app.utils.exceptions import (
    ConflictError,
    DomainError,
    InternalError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _iso(value: datetime.date | None) -> str | None:
    return value.isoformat() if value is not None else None


def snapshot_contrato(contrato: Contrato) -> dict[str, Any]:
    """JSON-safe picture of the fields the ledger tracks for a contract."""
    estado = contrato.estado
    return {
        "id": contrato.id,
        "tipo_contrato_id": contrato.tipo_contrato_id,
        "remuneracion": _to_float(contrato.remuneracion),
        "fecha_inicio": _iso(contrato.fecha_inicio),
        "fecha_fin": _iso(contrato.fecha_fin),
        "estado": estado.value if estado is not None else None,
        "estado_renovacion": bool(contrato.estado_renovacion),
        "fecha_renovacion": _iso(contrato.fecha_renovacion),
    }


def _salario_vigente(trabajador: Trabajador) -> Decimal:
    """Return the worker's ``salario_actual`` as a positive 2-decimal amount.

    Raises:
        InvalidStateError: If the salary is missing, unparseable, or <= 0.
    """
    valor = trabajador.salario_actual
    if valor is None:
        raise InvalidStateError(
            f"El trabajador {trabajador.id} no tiene un salario actual válido definido."
        )
    try:
        monto = Decimal(str(valor))
    except InvalidOperation as exc:
        raise InvalidStateError(
            f"El salario actual del trabajador {trabajador.id} no es un número válido."
        ) from exc
    if not monto.is_finite() or monto <= 0:
        raise InvalidStateError(
            f"El salario actual del trabajador {trabajador.id} debe ser mayor que cero."
        )
    return monto.quantize(PRECISION_MONTO)


def _build_response(contrato: Contrato) -> ContratoResponse:
    return ContratoResponse(
        id=contrato.id,
        trabajador_id=contrato.trabajador_id,
        trabajador_nombre=(
            contrato.trabajador.nombre_completo if contrato.trabajador is not None else None
        ),
        tipo_contrato_id=contrato.tipo_contrato_id,
        tipo_contrato_nombre=(
            contrato.tipo_contrato.nombre if contrato.tipo_contrato is not None else None
        ),
        documento_url=contrato.documento_url,
        remuneracion=float(contrato.remuneracion),
        fecha_inicio=contrato.fecha_inicio,
        fecha_fin=contrato.fecha_fin,
        estado=contrato.estado,
        estado_renovacion=contrato.estado_renovacion,
        fecha_renovacion=contrato.fecha_renovacion,
        motivo_terminacion=contrato.motivo_terminacion,
        created_at=contrato.created_at,
        updated_at=contrato.updated_at,
    )


def _viola_contrato_activo_unico(exc: IntegrityError) -> bool:
    """Whether the violation comes from the single-ACTIVO partial index.

    PostgreSQL names the index in the message; SQLite only names the column
    (``UNIQUE constraint failed: contrato.trabajador_id``).
    """
    mensaje = str(exc.orig)
    if UQ_CONTRATO_ACTIVO in mensaje:
        return True
    return "UNIQUE" in mensaje.upper() and "contrato.trabajador_id" in mensaje


def _rollback_and_wrap(db: Session, exc: SQLAlchemyError, operacion: str) -> DomainError:
    """Roll back and translate a database error into a domain error.

    Only a violation of ``uq_contrato_activo_trabajador`` is a conflict; any
    other integrity error (FK, NOT NULL) is an internal failure.
    """
    db.rollback()
    if isinstance(exc, IntegrityError) and _viola_contrato_activo_unico(exc):
        logger.warning("%s: integrity violation, rolled back: %s", operacion, exc.orig)
        return ConflictError(
            "El trabajador ya tiene un contrato ACTIVO registrado por otra operación."
        )
    logger.exception("%s: database error, rolled back", operacion)
    return InternalError(f"Error de base de datos en {operacion}: {exc}")


# ---------------------------------------------------------------------------
# Logical state
# ---------------------------------------------------------------------------


def determinar_estado_logico(
    contrato: Contrato, hoy: datetime.date | None = None
) -> EstadoContrato:
    """Derive the contract's state from the calendar.

    - ``hoy`` within ``[fecha_inicio, fecha_fin]`` → ACTIVO
    - past ``fecha_fin`` → RENOVADO if it was renewed, else VENCIDO
    - not started yet → VENCIDO
    """
    hoy = hoy or datetime.date.today()
    if contrato.fecha_inicio <= hoy <= contrato.fecha_fin:
        return EstadoContrato.ACTIVO
    if hoy > contrato.fecha_fin:
        return EstadoContrato.RENOVADO if contrato.estado_renovacion else EstadoContrato.VENCIDO
    return EstadoContrato.VENCIDO


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


def get_contrato(db: Session, contrato_id: int) -> Contrato:
    contrato: Contrato | None = db.query(Contrato).filter(Contrato.id == contrato_id).first()
    if contrato is None:
        raise NotFoundError(f"Contrato con ID {contrato_id} no encontrado.")
    return contrato


def get_detalle(db: Session, contrato_id: int) -> ContratoResponse:
    return _build_response(get_contrato(db, contrato_id))


def obtener_contrato_activo(db: Session, trabajador_id: int) -> Contrato | None:
    """Return the worker's ACTIVO contract, or ``None``.

    Ordered by ``fecha_inicio`` descending so that, should legacy data hold
    more than one ACTIVO row, the most recent one wins.
    """
    return (
        db.query(Contrato)
        .filter(
            Contrato.trabajador_id == trabajador_id,
            Contrato.estado == EstadoContrato.ACTIVO,
        )
        .order_by(Contrato.fecha_inicio.desc(), Contrato.id.desc())
        .first()
    )


def get_contrato_activo(db: Session, trabajador_id: int) -> ContratoResponse | None:
    trabajador_service.get_trabajador(db, trabajador_id)
    contrato = obtener_contrato_activo(db, trabajador_id)
    return _build_response(contrato) if contrato is not None else None


def listar_contratos_trabajador(
    db: Session, trabajador_id: int, hoy: datetime.date | None = None
) -> list[ContratoConEstadoResponse]:
    """Every contract of the worker, newest first, with its logical state."""
    trabajador_service.get_trabajador(db, trabajador_id)
    contratos = (
        db.query(Contrato)
        .filter(Contrato.trabajador_id == trabajador_id)
        .order_by(Contrato.fecha_inicio.desc(), Contrato.id.desc())
        .all()
    )

    result: list[ContratoConEstadoResponse] = []
    for contrato in contratos:
        estado_logico = determinar_estado_logico(contrato, hoy)
        result.append(
            ContratoConEstadoResponse(
                **_build_response(contrato).model_dump(),
                estado_logico=estado_logico,
                es_activo=estado_logico is EstadoContrato.ACTIVO,
            )
        )
    logger.debug(
        "listar_contratos_trabajador: trabajador_id=%d -> %d", trabajador_id, len(result)
    )
    return result


def estado_logico(
    db: Session, contrato_id: int, hoy: datetime.date | None = None
) -> EstadoLogicoResponse:
    contrato = get_contrato(db, contrato_id)
    hoy = hoy or datetime.date.today()
    return EstadoLogicoResponse(
        contrato_id=contrato.id,
        estado_persistido=contrato.estado,
        estado_logico=determinar_estado_logico(contrato, hoy),
        fecha_referencia=hoy,
    )


def obtener_estadisticas(
    db: Session, hoy: datetime.date | None = None
) -> EstadisticasContratosResponse:
    """Contract counts per logical state and the remuneration range."""
    contratos = db.query(Contrato).all()

    por_estado = ContratosPorEstado()
    for contrato in contratos:
        estado = determinar_estado_logico(contrato, hoy)
        if estado is EstadoContrato.ACTIVO:
            por_estado.activos += 1
        elif estado is EstadoContrato.VENCIDO:
            por_estado.vencidos += 1
        else:
            por_estado.renovados += 1

    rango = RangoRemuneracion()
    if contratos:
        montos = [float(c.remuneracion) for c in contratos]
        rango = RangoRemuneracion(
            minima=min(montos),
            maxima=max(montos),
            promedio=round(sum(montos) / len(montos), 2),
        )

    return EstadisticasContratosResponse(
        total_contratos=len(contratos),
        por_estado=por_estado,
        rangos_remuneracion=rango,
    )


# ---------------------------------------------------------------------------
# Write operations - contract lifecycle
# ---------------------------------------------------------------------------


def crear_contrato(
    db: Session,
    data: ContratoCreate,
    usuario_accion: str | None = None,
    ip_usuario: str | None = None,
) -> Contrato:
    """Hire or re-contract a worker, superseding their ACTIVO contract.

    Runs as one transaction:

    1. Lock and load the worker (``NotFoundError`` if missing).
    2. Take ``salario_actual`` as the remuneration (``InvalidStateError``
       if missing or not positive).
    3. If an ACTIVO contract exists, mark it ``RENOVADO`` and log a
       ``TERMINACION`` entry.
    4. Insert the new ACTIVO contract and log ``CREACION``.
    5. Log ``CAMBIO_SALARIO`` when the remuneration differs from the
       superseded contract's.
    6. Mirror the remuneration onto the worker and commit.

    Any failure rolls everything back.

    Returns:
        The newly persisted ``Contrato``.

    Raises:
        NotFoundError: Unknown worker or contract type.
        InvalidStateError: Invalid salary or ``fecha_fin < fecha_inicio``.
        ConflictError: A concurrent request already created an ACTIVO contract.
        InternalError: Any other database failure.
    """
    if data.fecha_fin < data.fecha_inicio:
        raise InvalidStateError(
            f"La fecha de fin ({data.fecha_fin}) es anterior a la fecha de inicio "
            f"({data.fecha_inicio})."
        )

    hoy = datetime.date.today()
    try:
        trabajador = trabajador_service.get_trabajador(db, data.trabajador_id, bloquear=True)
        remuneracion = _salario_vigente(trabajador)
        trabajador_service.get_tipo_contrato(db, data.tipo_contrato_id)

        anterior = obtener_contrato_activo(db, trabajador.id)
        remuneracion_anterior: Decimal | None = None

        if anterior is not None:
            remuneracion_anterior = anterior.remuneracion
            previo = snapshot_contrato(anterior)
            anterior.estado = EstadoContrato.RENOVADO
            anterior.estado_renovacion = True
            anterior.fecha_renovacion = hoy
            anterior.motivo_terminacion = MOTIVO_REEMPLAZO
            # Free the ACTIVO slot before the new row hits the unique index
            db.flush()
            historial_contrato_service.agregar_entrada(
                db,
                anterior,
                TipoAccionHistorial.TERMINACION,
                f"Contrato {anterior.id} finalizado por la creación de un nuevo contrato.",
                estado_anterior=previo,
                estado_nuevo={
                    "estado": EstadoContrato.RENOVADO.value,
                    "estado_renovacion": True,
                    "fecha_renovacion": hoy.isoformat(),
                    "motivo_terminacion": MOTIVO_REEMPLAZO,
                },
                usuario_accion=usuario_accion,
                ip_usuario=ip_usuario,
            )

        nuevo = Contrato(
            trabajador_id=trabajador.id,
            tipo_contrato_id=data.tipo_contrato_id,
            documento_url=data.documento_url,
            remuneracion=remuneracion,
            fecha_inicio=data.fecha_inicio,
            fecha_fin=data.fecha_fin,
            estado=EstadoContrato.ACTIVO,
            estado_renovacion=False,
            fecha_renovacion=None,
            motivo_terminacion=None,
        )
        db.add(nuevo)
        db.flush()

        historial_contrato_service.agregar_entrada(
            db,
            nuevo,
            TipoAccionHistorial.CREACION,
            (
                f"Contrato creado en reemplazo del contrato {anterior.id}."
                if anterior is not None
                else "Primer contrato del trabajador."
            ),
            estado_anterior=(
                {
                    "contrato_reemplazado_id": anterior.id,
                    "remuneracion": _to_float(remuneracion_anterior),
                }
                if anterior is not None
                else {"primer_contrato": True}
            ),
            estado_nuevo=snapshot_contrato(nuevo),
            usuario_accion=usuario_accion,
            ip_usuario=ip_usuario,
        )

        if remuneracion_anterior is not None and remuneracion_anterior != remuneracion:
            historial_contrato_service.agregar_entrada(
                db,
                nuevo,
                TipoAccionHistorial.CAMBIO_SALARIO,
                f"Remuneración modificada de {remuneracion_anterior} a {remuneracion}.",
                estado_anterior={"remuneracion": _to_float(remuneracion_anterior)},
                estado_nuevo={"remuneracion": _to_float(remuneracion)},
                usuario_accion=usuario_accion,
                ip_usuario=ip_usuario,
            )

        trabajador.salario_actual = remuneracion
        db.commit()
    except DomainError:
        db.rollback()
        logger.warning(
            "crear_contrato: rejected trabajador_id=%d", data.trabajador_id
        )
        raise
    except SQLAlchemyError as exc:
        raise _rollback_and_wrap(db, exc, "crear_contrato") from exc

    db.refresh(nuevo)
    logger.info(
        "crear_contrato: id=%d trabajador_id=%d remuneracion=%s reemplaza=%s user=%s",
        nuevo.id,
        nuevo.trabajador_id,
        nuevo.remuneracion,
        anterior.id if anterior is not None else None,
        usuario_accion,
    )
    return nuevo


def renovar_contrato(
    db: Session,
    contrato_id: int,
    nueva_fecha_fin: datetime.date,
    nueva_remuneracion: Decimal | None = None,
    usuario_accion: str | None = None,
    ip_usuario: str | None = None,
) -> Contrato:
    """Extend an ACTIVO contract and optionally change its remuneration.

    Sets ``estado_renovacion`` and ``fecha_renovacion``; the persisted state
    stays ACTIVO. Logs ``RENOVACION`` and, when the pay changes,
    ``CAMBIO_SALARIO`` plus a re-sync of the worker's salary mirror, all in
    one transaction under a row lock on the contract.

    Raises:
        NotFoundError: Unknown contract.
        InvalidStateError: Contract not ACTIVO, or end date before start date.
        InternalError: Database failure.
    """
    hoy = datetime.date.today()
    try:
        contrato: Contrato | None = (
            db.query(Contrato)
            .filter(Contrato.id == contrato_id)
            .with_for_update()
            .first()
        )
        if contrato is None:
            raise NotFoundError(f"Contrato con ID {contrato_id} no encontrado.")
        if contrato.estado is not EstadoContrato.ACTIVO:
            raise InvalidStateError(
                f"El contrato {contrato_id} está en estado {contrato.estado.value} "
                "y no puede renovarse; cree un nuevo contrato."
            )
        if nueva_fecha_fin < contrato.fecha_inicio:
            raise InvalidStateError(
                f"La nueva fecha de fin ({nueva_fecha_fin}) es anterior al inicio "
                f"del contrato ({contrato.fecha_inicio})."
            )

        previo = snapshot_contrato(contrato)
        remuneracion_anterior = contrato.remuneracion
        cambia_remuneracion = False
        if nueva_remuneracion is not None:
            nueva_remuneracion = Decimal(nueva_remuneracion).quantize(PRECISION_MONTO)
            cambia_remuneracion = nueva_remuneracion != remuneracion_anterior
            contrato.remuneracion = nueva_remuneracion

        contrato.fecha_fin = nueva_fecha_fin
        contrato.estado_renovacion = True
        contrato.fecha_renovacion = hoy
        db.flush()

        historial_contrato_service.agregar_entrada(
            db,
            contrato,
            TipoAccionHistorial.RENOVACION,
            f"Contrato renovado hasta {nueva_fecha_fin.isoformat()}.",
            estado_anterior=previo,
            estado_nuevo=snapshot_contrato(contrato),
            usuario_accion=usuario_accion,
            ip_usuario=ip_usuario,
        )

        if cambia_remuneracion:
            historial_contrato_service.agregar_entrada(
                db,
                contrato,
                TipoAccionHistorial.CAMBIO_SALARIO,
                f"Remuneración modificada de {remuneracion_anterior} a {nueva_remuneracion}.",
                estado_anterior={"remuneracion": _to_float(remuneracion_anterior)},
                estado_nuevo={"remuneracion": _to_float(nueva_remuneracion)},
                usuario_accion=usuario_accion,
                ip_usuario=ip_usuario,
            )
            _aplicar_sincronizacion(db, contrato.trabajador)

        db.commit()
    except DomainError:
        db.rollback()
        logger.warning("renovar_contrato: rejected contrato_id=%d", contrato_id)
        raise
    except SQLAlchemyError as exc:
        raise _rollback_and_wrap(db, exc, "renovar_contrato") from exc

    db.refresh(contrato)
    logger.info(
        "renovar_contrato: id=%d fecha_fin=%s remuneracion=%s user=%s",
        contrato.id, contrato.fecha_fin, contrato.remuneracion, usuario_accion,
    )
    return contrato


# ---------------------------------------------------------------------------
# Salary mirror
# ---------------------------------------------------------------------------


def _aplicar_sincronizacion(
    db: Session, trabajador: Trabajador
) -> SincronizacionSalarioResponse:
    """Copy the ACTIVO contract's remuneration onto the worker (no commit)."""
    activo = obtener_contrato_activo(db, trabajador.id)
    anterior = trabajador.salario_actual
    nuevo = activo.remuneracion if activo is not None else None
    trabajador.salario_actual = nuevo
    return SincronizacionSalarioResponse(
        trabajador_id=trabajador.id,
        salario_anterior=_to_float(anterior),
        salario_nuevo=_to_float(nuevo),
        contrato_activo_id=activo.id if activo is not None else None,
        actualizado=anterior != nuevo,
    )


def sincronizar_salario_trabajador(
    db: Session, trabajador_id: int
) -> SincronizacionSalarioResponse:
    """Set ``salario_actual`` to the ACTIVO contract's remuneration, or ``None``."""
    try:
        trabajador = trabajador_service.get_trabajador(db, trabajador_id, bloquear=True)
        resultado = _aplicar_sincronizacion(db, trabajador)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        raise _rollback_and_wrap(db, exc, "sincronizar_salario_trabajador") from exc

    logger.info(
        "sincronizar_salario_trabajador: trabajador_id=%d %s -> %s",
        trabajador_id, resultado.salario_anterior, resultado.salario_nuevo,
    )
    return resultado


def sincronizar_todos_los_salarios(db: Session) -> SincronizacionMasivaResponse:
    """Re-sync every worker, recording (not raising) individual failures."""
    trabajadores = db.query(Trabajador.id, Trabajador.nombre, Trabajador.apellido).order_by(
        Trabajador.id
    ).all()

    actualizados = 0
    sin_cambios = 0
    errores = 0
    detalles: list[DetalleSincronizacion] = []

    for row in trabajadores:
        nombre = f"{row.nombre} {row.apellido}"
        try:
            resultado = sincronizar_salario_trabajador(db, row.id)
        except DomainError as exc:
            errores += 1
            detalles.append(
                DetalleSincronizacion(
                    trabajador_id=row.id, trabajador=nombre, estado="error", razon=exc.message
                )
            )
            continue

        if resultado.actualizado:
            actualizados += 1
            estado = "actualizado"
        else:
            sin_cambios += 1
            estado = "sin_cambios"
        detalles.append(
            DetalleSincronizacion(
                trabajador_id=row.id,
                trabajador=nombre,
                estado=estado,
                salario_nuevo=resultado.salario_nuevo,
            )
        )

    logger.info(
        "sincronizar_todos_los_salarios: procesados=%d actualizados=%d sin_cambios=%d errores=%d",
        len(trabajadores), actualizados, sin_cambios, errores,
    )
    return SincronizacionMasivaResponse(
        total_procesados=len(trabajadores),
        actualizados=actualizados,
        sin_cambios=sin_cambios,
        errores=errores,
        detalles=detalles,
    )


def validar_consistencia_salarial(
    db: Session, trabajador_id: int
) -> ConsistenciaSalarialResponse:
    """Compare ``salario_actual`` with the ACTIVO contract's remuneration.

    Read-only. Amounts within ``SALARIO_TOLERANCIA`` (0.01) are consistent;
    without an ACTIVO contract the salary must be ``None``.
    """
    trabajador = trabajador_service.get_trabajador(db, trabajador_id)
    activo = obtener_contrato_activo(db, trabajador_id)
    salario = trabajador.salario_actual

    if activo is None:
        consistente = salario is None
        return ConsistenciaSalarialResponse(
            es_consistente=consistente,
            detalle=ConsistenciaDetalle(
                trabajador_id=trabajador_id,
                salario_trabajador=_to_float(salario),
                contrato_activo=None,
                razon=(
                    "Sin contrato activo y sin salario registrado."
                    if consistente
                    else "Sin contrato activo, el salario debe ser nulo."
                ),
            ),
        )

    resumen = ContratoActivoResumen(
        id=activo.id,
        remuneracion=float(activo.remuneracion),
        fecha_inicio=activo.fecha_inicio,
        fecha_fin=activo.fecha_fin,
    )
    if salario is None:
        return ConsistenciaSalarialResponse(
            es_consistente=False,
            detalle=ConsistenciaDetalle(
                trabajador_id=trabajador_id,
                salario_trabajador=None,
                contrato_activo=resumen,
                razon="El trabajador no tiene salario registrado pese a tener contrato activo.",
            ),
        )

    tolerancia = Decimal(str(get_settings().SALARIO_TOLERANCIA))
    diferencia = abs(Decimal(str(salario)) - Decimal(str(activo.remuneracion)))
    consistente = diferencia < tolerancia
    return ConsistenciaSalarialResponse(
        es_consistente=consistente,
        detalle=ConsistenciaDetalle(
            trabajador_id=trabajador_id,
            salario_trabajador=float(salario),
            contrato_activo=resumen,
            diferencia=float(diferencia),
            razon="Salarios coinciden." if consistente else "Diferencia encontrada.",
        ),
    )
