"""TipoContrato model - catalogue of contract modalities."""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base


class TipoContrato(Base):
    """Contract modality, e.g. "Plazo fijo", "Indeterminado", "Locación".

    Attributes:
        id: Primary key.
        nombre: Display name.
        descripcion: Optional longer description.
    """

    __tablename__ = "tipo_contrato"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre = Column(String(100), unique=True, nullable=False)
    descripcion = Column(Text, nullable=True)

    contratos = relationship("Contrato", back_populates="tipo_contrato", lazy="select")
