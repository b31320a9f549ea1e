"""Trabajador model - building staff member who can hold employment contracts."""

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Trabajador(Base):
    """Worker employed by the building administration.

    ``salario_actual`` is a denormalised mirror of the remuneration of the
    worker's single ACTIVO contract (``None`` when there is none). Only
    ``contrato_service`` writes it once a contract exists; HR sets it up
    front to define the pay the next contract will carry.

    Attributes:
        id: Primary key.
        nombre: First name(s).
        apellido: Last name(s).
        correo: Contact email.
        esta_activo: Whether the worker is currently part of the staff.
        telefono: Optional phone number.
        fecha_ingreso: Date the worker joined.
        salario_actual: Mirror of the active contract's remuneration.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "trabajador"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(150), nullable=False)
    apellido = Column(String(150), nullable=False)
    correo = Column(String(200), nullable=False, index=True)
    esta_activo = Column(Boolean, default=True, nullable=False)
    telefono = Column(String(30), nullable=True)
    fecha_ingreso = Column(Date, nullable=True)
    salario_actual = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    contratos = relationship(
        "Contrato",
        back_populates="trabajador",
        order_by="Contrato.fecha_inicio.desc()",
        lazy="select",
    )

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido}"
