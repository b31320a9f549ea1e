"""
Worker and contract-type lookups used by the contract lifecycle.

Worker CRUD belongs to another module; this is only the narrow surface the
lifecycle needs: fetch a worker, set the salary HR agreed on, and resolve
contract types.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.tipo_contrato import TipoContrato
from app.models.trabajador import Trabajador
from app.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def get_trabajador(db: Session, trabajador_id: int, *, bloquear: bool = False) -> Trabajador:
    """Return the worker or raise ``NotFoundError``.

    With ``bloquear=True`` the row is read with ``SELECT ... FOR UPDATE`` so
    concurrent contract operations on the same worker serialise (SQLite
    ignores the clause; its writer lock already serialises).
    """
    query = db.query(Trabajador).filter(Trabajador.id == trabajador_id)
    if bloquear:
        query = query.with_for_update()
    trabajador: Trabajador | None = query.first()
    if trabajador is None:
        raise NotFoundError(f"Trabajador con ID {trabajador_id} no encontrado.")
    return trabajador


def actualizar_salario(db: Session, trabajador_id: int, salario: Decimal) -> Trabajador:
    """Set the salary the worker's next contract will be created with."""
    trabajador = get_trabajador(db, trabajador_id)
    anterior = trabajador.salario_actual
    trabajador.salario_actual = salario
    db.commit()
    db.refresh(trabajador)
    logger.info(
        "actualizar_salario: trabajador_id=%d %s -> %s", trabajador_id, anterior, salario
    )
    return trabajador


def get_tipo_contrato(db: Session, tipo_contrato_id: int) -> TipoContrato:
    tipo: TipoContrato | None = (
        db.query(TipoContrato).filter(TipoContrato.id == tipo_contrato_id).first()
    )
    if tipo is None:
        raise NotFoundError(f"Tipo de contrato con ID {tipo_contrato_id} no encontrado.")
    return tipo


def list_tipos_contrato(db: Session) -> list[TipoContrato]:
    return db.query(TipoContrato).order_by(TipoContrato.nombre).all()
