"""
Shared fixtures: an in-memory SQLite database per test, a TestClient wired
to it through the ``get_db`` override, and JWT headers for each role.
"""

import os

# Point the application at SQLite before any ``app`` module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, get_db  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.models.tipo_contrato import TipoContrato  # noqa: E402
from app.models.trabajador import Trabajador  # noqa: E402
from app.models.usuario import Usuario  # noqa: E402
from app.schemas.contrato import ContratoCreate  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users and tokens
# ---------------------------------------------------------------------------


def _crear_usuario(db, username: str, rol: str) -> Usuario:
    usuario = Usuario(
        username=username,
        email=f"{username}@edificio.test",
        password_hash=hash_password("Secreto123!"),
        nombre_completo=username.title(),
        rol=rol,
        activo=True,
    )
    db.add(usuario)
    db.commit()
    db.refresh(usuario)
    return usuario


def _headers(usuario: Usuario) -> dict[str, str]:
    token = create_access_token({"sub": str(usuario.id), "username": usuario.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db) -> Usuario:
    return _crear_usuario(db, "admin", "ADMIN")


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return _headers(admin)


@pytest.fixture
def consulta_headers(db) -> dict[str, str]:
    return _headers(_crear_usuario(db, "consulta", "CONSULTA"))


# ---------------------------------------------------------------------------
# Domain data
# ---------------------------------------------------------------------------


@pytest.fixture
def tipo_contrato(db) -> TipoContrato:
    tipo = TipoContrato(nombre="Plazo fijo", descripcion="Contrato sujeto a modalidad")
    db.add(tipo)
    db.commit()
    db.refresh(tipo)
    return tipo


@pytest.fixture
def crear_trabajador(db):
    """Factory: ``crear_trabajador(salario="1500.00")``."""
    contador = {"n": 0}

    def _crear(salario: str | None = "1500.00", nombre: str = "Rosa") -> Trabajador:
        contador["n"] += 1
        trabajador = Trabajador(
            nombre=nombre,
            apellido=f"Quispe {contador['n']}",
            correo=f"trabajador{contador['n']}@edificio.test",
            esta_activo=True,
            fecha_ingreso=date(2024, 1, 1),
            salario_actual=Decimal(salario) if salario is not None else None,
        )
        db.add(trabajador)
        db.commit()
        db.refresh(trabajador)
        return trabajador

    return _crear


@pytest.fixture
def trabajador(crear_trabajador) -> Trabajador:
    return crear_trabajador()


@pytest.fixture
def datos_contrato(tipo_contrato):
    """Factory building a ``ContratoCreate`` for the given worker."""

    def _datos(
        trabajador_id: int,
        fecha_inicio: date = date(2026, 1, 1),
        fecha_fin: date = date(2026, 12, 31),
    ) -> ContratoCreate:
        return ContratoCreate(
            trabajador_id=trabajador_id,
            tipo_contrato_id=tipo_contrato.id,
            fecha_inicio=fecha_inicio,
            fecha_fin=fecha_fin,
            documento_url=f"https://docs.edificio.test/{trabajador_id}-{fecha_inicio}.pdf",
        )

    return _datos
