"""Contrato model - employment contract held by a Trabajador."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.utils.constants import EstadoContrato

UQ_CONTRATO_ACTIVO = "uq_contrato_activo_trabajador"


class Contrato(Base):
    """Employment contract between the building and one worker.

    At most one contract per worker may be ``ACTIVO``; the partial unique
    index ``uq_contrato_activo_trabajador`` enforces it at the database level
    on both PostgreSQL and SQLite.

    Attributes:
        id: Primary key.
        trabajador_id: FK to Trabajador (owner, never cascaded).
        tipo_contrato_id: FK to TipoContrato.
        documento_url: Location of the signed contract document.
        remuneracion: Monthly pay, copied from the worker's salary at creation.
        fecha_inicio: First day the contract is in force.
        fecha_fin: Last day the contract is in force.
        estado: Persisted lifecycle state (``EstadoContrato``).
        estado_renovacion: ``True`` once renewed or superseded.
        fecha_renovacion: Date of the last renewal / supersession.
        motivo_terminacion: Why the contract stopped being ACTIVO.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "contrato"
    __table_args__ = (
        Index(
            UQ_CONTRATO_ACTIVO,
            "trabajador_id",
            unique=True,
            postgresql_where=text("estado = 'ACTIVO'"),
            sqlite_where=text("estado = 'ACTIVO'"),
        ),
        Index("ix_contrato_trabajador_estado", "trabajador_id", "estado"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    trabajador_id = Column(Integer, ForeignKey("trabajador.id"), nullable=False)
    tipo_contrato_id = Column(Integer, ForeignKey("tipo_contrato.id"), nullable=False)
    documento_url = Column(Text, nullable=False)
    remuneracion = Column(Numeric(10, 2), nullable=False)
    fecha_inicio = Column(Date, nullable=False)
    fecha_fin = Column(Date, nullable=False)
    estado = Column(
        Enum(EstadoContrato, name="estado_contrato", native_enum=False, length=20),
        default=EstadoContrato.ACTIVO,
        nullable=False,
    )
    estado_renovacion = Column(Boolean, default=False, nullable=False)
    fecha_renovacion = Column(Date, nullable=True)
    motivo_terminacion = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    trabajador = relationship("Trabajador", back_populates="contratos", lazy="select")
    tipo_contrato = relationship("TipoContrato", back_populates="contratos", lazy="select")
    historial = relationship(
        "HistorialContrato",
        back_populates="contrato",
        order_by="HistorialContrato.fecha_registro",
        lazy="select",
        cascade="all, delete-orphan",
    )
