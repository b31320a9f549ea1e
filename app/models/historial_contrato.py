"""HistorialContrato model - append-only audit trail of contract actions."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Integer, String, Text, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.constants import TipoAccionHistorial
from app.utils.exceptions import LedgerImmutableError

# jsonb on PostgreSQL, plain JSON text elsewhere (SQLite in tests)
_Snapshot = JSON().with_variant(JSONB(), "postgresql")


class HistorialContrato(Base):
    """One immutable ledger entry describing a state-changing contract action.

    ``estado_anterior`` / ``estado_nuevo`` are free-form JSON snapshots taken
    when the entry is written; later changes to the contract never touch
    them. Rows are only inserted; the ``before_update`` listener below
    rejects ORM updates, and deletion only happens by cascade when the
    owning contract is hard-deleted.

    Attributes:
        id: Primary key.
        contrato_id: FK to the Contrato this entry belongs to.
        fecha_registro: Server time when the entry was written.
        tipo_accion: ``TipoAccionHistorial`` value.
        descripcion_accion: Human-readable summary.
        estado_anterior: JSON snapshot before the action (nullable).
        estado_nuevo: JSON snapshot after the action (nullable).
        observaciones: Free-text remarks.
        usuario_accion: Username of the acting user, if known.
        ip_usuario: Client IP of the acting user, if known (IPv6-safe length).
    """

    __tablename__ = "historial_contrato"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contrato_id = Column(
        Integer,
        ForeignKey("contrato.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fecha_registro = Column(DateTime, default=datetime.now, nullable=False, index=True)
    tipo_accion = Column(
        Enum(TipoAccionHistorial, name="tipo_accion_historial", native_enum=False, length=30),
        nullable=False,
        index=True,
    )
    descripcion_accion = Column(Text, nullable=False)
    estado_anterior = Column(_Snapshot, nullable=True)
    estado_nuevo = Column(_Snapshot, nullable=True)
    observaciones = Column(Text, nullable=True)
    usuario_accion = Column(String(100), nullable=True)
    ip_usuario = Column(String(45), nullable=True)

    contrato = relationship("Contrato", back_populates="historial", lazy="select")


@event.listens_for(HistorialContrato, "before_update")
def _rechazar_modificacion(mapper, connection, target):  # noqa: ARG001
    raise LedgerImmutableError(
        f"El registro de historial {target.id} es inmutable y no puede modificarse."
    )
