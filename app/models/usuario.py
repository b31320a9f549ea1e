"""Usuario model - application login account with role-based access."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.database import Base


class Usuario(Base):
    """System user whose role gates the write endpoints.

    Roles:
        - ADMIN: Full access.
        - ADMINISTRACION: Building administration staff.
        - RRHH: Human resources; hires and renews workers.
        - CONSULTA: Read-only.

    The ``username`` is what the contract ledger stores as ``usuario_accion``.
    """

    __tablename__ = "usuario"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    password_hash = Column(String(200), nullable=False)
    nombre_completo = Column(String(300), nullable=True)
    rol = Column(String(50), nullable=False, default="CONSULTA")
    activo = Column(Boolean, default=True, nullable=False)
    ultimo_acceso = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
