"""SQLAlchemy models package.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from app.models import Contrato, Trabajador
"""

# Leaf tables
from app.models.usuario import Usuario  # noqa: F401
from app.models.tipo_contrato import TipoContrato  # noqa: F401
from app.models.trabajador import Trabajador  # noqa: F401

# Contract lifecycle
from app.models.contrato import Contrato  # noqa: F401
from app.models.historial_contrato import HistorialContrato  # noqa: F401

__all__ = [
    "Usuario",
    "TipoContrato",
    "Trabajador",
    "Contrato",
    "HistorialContrato",
]
