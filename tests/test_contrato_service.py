"""Service-level tests for the contract lifecycle."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.models.contrato import Contrato
from app.models.historial_contrato import HistorialContrato
from app.services import contrato_service, historial_contrato_service, trabajador_service
from app.utils.constants import MOTIVO_REEMPLAZO, EstadoContrato, TipoAccionHistorial
from app.utils.exceptions import (
    ConflictError,
    InternalError,
    InvalidStateError,
    NotFoundError,
)


def _acciones(db, contrato_id):
    return [
        e.tipo_accion
        for e in db.query(HistorialContrato)
        .filter(HistorialContrato.contrato_id == contrato_id)
        .order_by(HistorialContrato.id)
        .all()
    ]


def _activos(db, trabajador_id):
    return (
        db.query(Contrato)
        .filter(
            Contrato.trabajador_id == trabajador_id,
            Contrato.estado == EstadoContrato.ACTIVO,
        )
        .count()
    )


# ---------------------------------------------------------------------------
# crear_contrato
# ---------------------------------------------------------------------------


class TestCrearContrato:
    def test_first_contract_takes_worker_salary(self, db, trabajador, datos_contrato):
        contrato = contrato_service.crear_contrato(
            db, datos_contrato(trabajador.id), usuario_accion="rrhh", ip_usuario="10.0.0.5"
        )

        assert contrato.estado is EstadoContrato.ACTIVO
        assert contrato.remuneracion == Decimal("1500.00")
        assert contrato.estado_renovacion is False
        assert contrato.fecha_renovacion is None

        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("1500.00")

        entradas = db.query(HistorialContrato).filter_by(contrato_id=contrato.id).all()
        assert [e.tipo_accion for e in entradas] == [TipoAccionHistorial.CREACION]
        assert entradas[0].estado_anterior == {"primer_contrato": True}
        assert entradas[0].estado_nuevo["remuneracion"] == 1500.0
        assert entradas[0].usuario_accion == "rrhh"
        assert entradas[0].ip_usuario == "10.0.0.5"

    def test_new_contract_supersedes_active_one(self, db, trabajador, datos_contrato):
        primero = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        trabajador_service.actualizar_salario(db, trabajador.id, Decimal("1800.00"))

        segundo = contrato_service.crear_contrato(
            db, datos_contrato(trabajador.id, date(2027, 1, 1), date(2027, 12, 31))
        )

        db.refresh(primero)
        assert primero.estado is EstadoContrato.RENOVADO
        assert primero.estado_renovacion is True
        assert primero.fecha_renovacion == date.today()
        assert primero.motivo_terminacion == MOTIVO_REEMPLAZO

        assert segundo.estado is EstadoContrato.ACTIVO
        assert segundo.remuneracion == Decimal("1800.00")
        assert _activos(db, trabajador.id) == 1

        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("1800.00")

        assert _acciones(db, primero.id) == [
            TipoAccionHistorial.CREACION,
            TipoAccionHistorial.TERMINACION,
        ]
        assert _acciones(db, segundo.id) == [
            TipoAccionHistorial.CREACION,
            TipoAccionHistorial.CAMBIO_SALARIO,
        ]

        terminacion = (
            db.query(HistorialContrato)
            .filter_by(contrato_id=primero.id, tipo_accion=TipoAccionHistorial.TERMINACION)
            .one()
        )
        assert terminacion.estado_anterior["estado"] == "ACTIVO"
        assert terminacion.estado_nuevo["estado"] == "RENOVADO"

        cambio = (
            db.query(HistorialContrato)
            .filter_by(contrato_id=segundo.id, tipo_accion=TipoAccionHistorial.CAMBIO_SALARIO)
            .one()
        )
        assert cambio.estado_anterior == {"remuneracion": 1500.0}
        assert cambio.estado_nuevo == {"remuneracion": 1800.0}

    def test_same_salary_writes_no_salary_change(self, db, trabajador, datos_contrato):
        contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        segundo = contrato_service.crear_contrato(
            db, datos_contrato(trabajador.id, date(2027, 1, 1), date(2027, 12, 31))
        )
        assert _acciones(db, segundo.id) == [TipoAccionHistorial.CREACION]

    def test_missing_salary_is_rejected_without_writes(
        self, db, crear_trabajador, datos_contrato
    ):
        sin_salario = crear_trabajador(salario=None)

        with pytest.raises(InvalidStateError):
            contrato_service.crear_contrato(db, datos_contrato(sin_salario.id))

        assert db.query(Contrato).count() == 0
        assert db.query(HistorialContrato).count() == 0

    def test_non_positive_salary_is_rejected(self, db, crear_trabajador, datos_contrato):
        cero = crear_trabajador(salario="0")
        with pytest.raises(InvalidStateError):
            contrato_service.crear_contrato(db, datos_contrato(cero.id))

    def test_unknown_worker(self, db, datos_contrato):
        with pytest.raises(NotFoundError):
            contrato_service.crear_contrato(db, datos_contrato(9999))

    def test_unknown_contract_type(self, db, trabajador, datos_contrato):
        data = datos_contrato(trabajador.id).model_copy(update={"tipo_contrato_id": 9999})
        with pytest.raises(NotFoundError):
            contrato_service.crear_contrato(db, data)
        assert db.query(Contrato).count() == 0

    def test_end_before_start(self, db, trabajador, datos_contrato):
        data = datos_contrato(trabajador.id, date(2026, 6, 1), date(2026, 5, 31))
        with pytest.raises(InvalidStateError):
            contrato_service.crear_contrato(db, data)

    def test_ledger_failure_rolls_back_everything(
        self, db, trabajador, datos_contrato, monkeypatch
    ):
        primero = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        trabajador_service.actualizar_salario(db, trabajador.id, Decimal("2100.00"))
        agregar_real = historial_contrato_service.agregar_entrada

        def _falla_en_creacion(db_, contrato, tipo_accion, *args, **kwargs):
            if tipo_accion is TipoAccionHistorial.CREACION:
                raise SQLAlchemyError("ledger write failed")
            return agregar_real(db_, contrato, tipo_accion, *args, **kwargs)

        monkeypatch.setattr(historial_contrato_service, "agregar_entrada", _falla_en_creacion)

        with pytest.raises(InternalError):
            contrato_service.crear_contrato(
                db, datos_contrato(trabajador.id, date(2027, 1, 1), date(2027, 12, 31))
            )

        db.refresh(primero)
        assert primero.estado is EstadoContrato.ACTIVO
        assert primero.estado_renovacion is False
        assert db.query(Contrato).count() == 1
        assert _acciones(db, primero.id) == [TipoAccionHistorial.CREACION]
        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("2100.00")

    def test_concurrent_hire_hits_unique_index(
        self, db, trabajador, datos_contrato, monkeypatch
    ):
        primero = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        trabajador_service.actualizar_salario(db, trabajador.id, Decimal("2100.00"))
        # The other transaction's ACTIVO row is invisible to the lookup
        monkeypatch.setattr(contrato_service, "obtener_contrato_activo", lambda db_, _id: None)

        with pytest.raises(ConflictError):
            contrato_service.crear_contrato(
                db, datos_contrato(trabajador.id, date(2027, 1, 1), date(2027, 12, 31))
            )

        db.refresh(primero)
        assert primero.estado is EstadoContrato.ACTIVO
        assert db.query(Contrato).count() == 1
        assert db.query(HistorialContrato).count() == 1
        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("2100.00")

    def test_at_most_one_active_contract_after_many_hires(
        self, db, trabajador, datos_contrato
    ):
        for anio in (2024, 2025, 2026, 2027):
            contrato_service.crear_contrato(
                db, datos_contrato(trabajador.id, date(anio, 1, 1), date(anio, 12, 31))
            )
        assert _activos(db, trabajador.id) == 1
        assert db.query(Contrato).filter_by(trabajador_id=trabajador.id).count() == 4


class TestErroresIntegridad:
    @pytest.mark.parametrize(
        "mensaje",
        [
            "UNIQUE constraint failed: contrato.trabajador_id",
            'duplicate key value violates unique constraint "uq_contrato_activo_trabajador"',
        ],
    )
    def test_active_index_violation_is_conflict(self, db, mensaje):
        exc = IntegrityError("INSERT INTO contrato", {}, Exception(mensaje))
        error = contrato_service._rollback_and_wrap(db, exc, "crear_contrato")
        assert isinstance(error, ConflictError)
        assert error.status_code == 409

    @pytest.mark.parametrize(
        "mensaje",
        [
            "NOT NULL constraint failed: contrato.trabajador_id",
            "FOREIGN KEY constraint failed",
            'insert or update on table "contrato" violates foreign key constraint '
            '"contrato_tipo_contrato_id_fkey"',
        ],
    )
    def test_other_integrity_errors_are_internal(self, db, mensaje):
        exc = IntegrityError("INSERT INTO contrato", {}, Exception(mensaje))
        error = contrato_service._rollback_and_wrap(db, exc, "sincronizar_salario_trabajador")
        assert isinstance(error, InternalError)


# ---------------------------------------------------------------------------
# renovar_contrato
# ---------------------------------------------------------------------------


class TestRenovarContrato:
    def test_extends_end_date_and_keeps_active(self, db, trabajador, datos_contrato):
        contrato = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))

        renovado = contrato_service.renovar_contrato(db, contrato.id, date(2027, 6, 30))

        assert renovado.fecha_fin == date(2027, 6, 30)
        assert renovado.estado is EstadoContrato.ACTIVO
        assert renovado.estado_renovacion is True
        assert renovado.fecha_renovacion == date.today()
        assert _acciones(db, contrato.id) == [
            TipoAccionHistorial.CREACION,
            TipoAccionHistorial.RENOVACION,
        ]

    def test_new_remuneration_updates_worker_salary(self, db, trabajador, datos_contrato):
        contrato = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))

        renovado = contrato_service.renovar_contrato(
            db, contrato.id, date(2027, 12, 31), nueva_remuneracion=Decimal("2000")
        )

        assert renovado.remuneracion == Decimal("2000.00")
        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("2000.00")
        assert _acciones(db, contrato.id) == [
            TipoAccionHistorial.CREACION,
            TipoAccionHistorial.RENOVACION,
            TipoAccionHistorial.CAMBIO_SALARIO,
        ]

    def test_superseded_contract_cannot_be_renewed(self, db, trabajador, datos_contrato):
        primero = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        contrato_service.crear_contrato(
            db, datos_contrato(trabajador.id, date(2027, 1, 1), date(2027, 12, 31))
        )
        with pytest.raises(InvalidStateError):
            contrato_service.renovar_contrato(db, primero.id, date(2028, 1, 1))

    def test_end_before_start_is_rejected(self, db, trabajador, datos_contrato):
        contrato = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        with pytest.raises(InvalidStateError):
            contrato_service.renovar_contrato(db, contrato.id, date(2025, 12, 31))
        db.refresh(contrato)
        assert contrato.fecha_fin == date(2026, 12, 31)

    def test_unknown_contract(self, db):
        with pytest.raises(NotFoundError):
            contrato_service.renovar_contrato(db, 4242, date(2027, 1, 1))


# ---------------------------------------------------------------------------
# Salary mirror
# ---------------------------------------------------------------------------


class TestSincronizacionSalarial:
    def test_sync_copies_active_remuneration(self, db, trabajador, datos_contrato):
        contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        trabajador.salario_actual = Decimal("999.00")
        db.commit()

        resultado = contrato_service.sincronizar_salario_trabajador(db, trabajador.id)

        assert resultado.actualizado is True
        assert resultado.salario_anterior == 999.0
        assert resultado.salario_nuevo == 1500.0
        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("1500.00")

    def test_sync_without_active_contract_clears_salary(self, db, trabajador):
        resultado = contrato_service.sincronizar_salario_trabajador(db, trabajador.id)

        assert resultado.salario_nuevo is None
        assert resultado.contrato_activo_id is None
        db.refresh(trabajador)
        assert trabajador.salario_actual is None

    def test_sync_unknown_worker(self, db):
        with pytest.raises(NotFoundError):
            contrato_service.sincronizar_salario_trabajador(db, 777)

    def test_bulk_sync_counts(self, db, crear_trabajador, datos_contrato):
        desalineado = crear_trabajador()
        alineado = crear_trabajador()
        sin_contrato = crear_trabajador(salario="1200.00")
        contrato_service.crear_contrato(db, datos_contrato(desalineado.id))
        contrato_service.crear_contrato(db, datos_contrato(alineado.id))
        desalineado.salario_actual = Decimal("10.00")
        db.commit()

        resultado = contrato_service.sincronizar_todos_los_salarios(db)

        assert resultado.total_procesados == 3
        assert resultado.actualizados == 2
        assert resultado.sin_cambios == 1
        assert resultado.errores == 0
        estados = {d.trabajador_id: d.estado for d in resultado.detalles}
        assert estados == {
            desalineado.id: "actualizado",
            alineado.id: "sin_cambios",
            sin_contrato.id: "actualizado",
        }

    def test_consistency_within_tolerance(self, db, trabajador, datos_contrato):
        contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        trabajador.salario_actual = Decimal("1500.01")
        db.commit()

        # A difference of exactly 0.01 is outside the strict tolerance
        resultado = contrato_service.validar_consistencia_salarial(db, trabajador.id)
        assert resultado.es_consistente is False
        assert resultado.detalle.diferencia == pytest.approx(0.01)

    def test_consistency_is_read_only_and_repeatable(self, db, trabajador, datos_contrato):
        contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        trabajador.salario_actual = Decimal("1400.00")
        db.commit()

        primero = contrato_service.validar_consistencia_salarial(db, trabajador.id)
        segundo = contrato_service.validar_consistencia_salarial(db, trabajador.id)

        assert primero == segundo
        assert primero.es_consistente is False
        db.refresh(trabajador)
        assert trabajador.salario_actual == Decimal("1400.00")

    def test_consistency_after_sync(self, db, trabajador, datos_contrato):
        contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        resultado = contrato_service.validar_consistencia_salarial(db, trabajador.id)
        assert resultado.es_consistente is True
        assert resultado.detalle.contrato_activo.remuneracion == 1500.0

    def test_consistency_without_contract(self, db, crear_trabajador):
        con_salario = crear_trabajador()
        sin_salario = crear_trabajador(salario=None)
        assert (
            contrato_service.validar_consistencia_salarial(db, con_salario.id).es_consistente
            is False
        )
        assert (
            contrato_service.validar_consistencia_salarial(db, sin_salario.id).es_consistente
            is True
        )


# ---------------------------------------------------------------------------
# Logical state and reads
# ---------------------------------------------------------------------------


class TestEstadoLogico:
    def _contrato(self, renovado=False):
        return Contrato(
            fecha_inicio=date(2026, 1, 1),
            fecha_fin=date(2026, 6, 30),
            estado_renovacion=renovado,
        )

    @pytest.mark.parametrize(
        "hoy, renovado, esperado",
        [
            (date(2026, 1, 1), False, EstadoContrato.ACTIVO),
            (date(2026, 6, 30), False, EstadoContrato.ACTIVO),
            (date(2026, 7, 1), False, EstadoContrato.VENCIDO),
            (date(2026, 7, 1), True, EstadoContrato.RENOVADO),
            (date(2025, 12, 31), False, EstadoContrato.VENCIDO),
        ],
    )
    def test_derivation(self, hoy, renovado, esperado):
        contrato = self._contrato(renovado)
        assert contrato_service.determinar_estado_logico(contrato, hoy) is esperado

    def test_does_not_touch_persisted_state(self, db, trabajador, datos_contrato):
        contrato = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        respuesta = contrato_service.estado_logico(db, contrato.id, hoy=date(2030, 1, 1))
        assert respuesta.estado_logico is EstadoContrato.VENCIDO
        assert respuesta.estado_persistido is EstadoContrato.ACTIVO
        db.refresh(contrato)
        assert contrato.estado is EstadoContrato.ACTIVO


class TestLecturas:
    def test_active_contract_lookup(self, db, trabajador, datos_contrato):
        assert contrato_service.get_contrato_activo(db, trabajador.id) is None
        contrato = contrato_service.crear_contrato(db, datos_contrato(trabajador.id))
        activo = contrato_service.get_contrato_activo(db, trabajador.id)
        assert activo.id == contrato.id
        assert activo.tipo_contrato_nombre == "Plazo fijo"

    def test_list_worker_contracts_newest_first(self, db, trabajador, datos_contrato):
        viejo = contrato_service.crear_contrato(
            db, datos_contrato(trabajador.id, date(2025, 1, 1), date(2025, 12, 31))
        )
        nuevo = contrato_service.crear_contrato(
            db, datos_contrato(trabajador.id, date(2026, 1, 1), date(2026, 12, 31))
        )
        contratos = contrato_service.listar_contratos_trabajador(
            db, trabajador.id, hoy=date(2026, 3, 1)
        )
        assert [c.id for c in contratos] == [nuevo.id, viejo.id]
        assert contratos[0].es_activo is True
        assert contratos[1].estado_logico is EstadoContrato.RENOVADO

    def test_statistics(self, db, crear_trabajador, datos_contrato):
        a = crear_trabajador(salario="1000.00")
        b = crear_trabajador(salario="3000.00")
        contrato_service.crear_contrato(db, datos_contrato(a.id))
        contrato_service.crear_contrato(
            db, datos_contrato(b.id, date(2020, 1, 1), date(2020, 12, 31))
        )

        stats = contrato_service.obtener_estadisticas(db, hoy=date(2026, 5, 1))

        assert stats.total_contratos == 2
        assert stats.por_estado.activos == 1
        assert stats.por_estado.vencidos == 1
        assert stats.rangos_remuneracion.minima == 1000.0
        assert stats.rangos_remuneracion.maxima == 3000.0
        assert stats.rangos_remuneracion.promedio == 2000.0

    def test_get_unknown_contract(self, db):
        with pytest.raises(NotFoundError):
            contrato_service.get_detalle(db, 31337)
