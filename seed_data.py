"""Seed data script for the building-management database.

Creates users, contract types, workers and one initial contract per worker
(through ``contrato_service`` so the history ledger is populated too). The
script is idempotent: each step skips tables that already hold data.

Usage (from the repository root):
    python seed_data.py
"""

from __future__ import annotations

import os
import sys
from datetime import date
from decimal import Decimal

# Make the ``app`` package importable when run as a script
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.models import Contrato, TipoContrato, Trabajador, Usuario  # noqa: E402
from app.schemas.contrato import ContratoCreate  # noqa: E402
from app.services import contrato_service  # noqa: E402
from app.utils.exceptions import DomainError  # noqa: E402
from app.utils.security import hash_password  # noqa: E402

ANIO = 2026

_USUARIOS = [
    ("admin", "admin@edificio.local", "Administrador", "ADMIN", "Admin123!"),
    ("administracion", "administracion@edificio.local", "Oficina de Administración", "ADMINISTRACION", "Admin123!"),
    ("rrhh", "rrhh@edificio.local", "Recursos Humanos", "RRHH", "Rrhh123!"),
    ("consulta", "consulta@edificio.local", "Usuario de Consulta", "CONSULTA", "Consulta123!"),
]

_TIPOS_CONTRATO = [
    ("Plazo fijo", "Contrato sujeto a modalidad con fecha de término."),
    ("Indeterminado", "Contrato a plazo indeterminado."),
    ("Locación de servicios", "Servicio independiente sin vínculo laboral."),
    ("Part time", "Jornada parcial menor a cuatro horas diarias."),
]

# (nombre, apellido, correo, telefono, fecha_ingreso, salario)
_TRABAJADORES = [
    ("Rosa", "Quispe Huamán", "rquispe@edificio.local", "987654321", date(2021, 3, 1), "1800.00"),
    ("Luis", "Mendoza Torres", "lmendoza@edificio.local", "987111222", date(2022, 6, 15), "1500.00"),
    ("Carmen", "Flores Ríos", "cflores@edificio.local", "986333444", date(2023, 1, 9), "2200.00"),
    ("Jorge", "Salazar Paredes", "jsalazar@edificio.local", "985555666", date(2024, 2, 1), "1300.00"),
    ("Ana", "Ccori Mamani", "accori@edificio.local", None, date(2025, 8, 4), "1650.00"),
]


def seed_usuarios(session) -> None:
    if session.query(Usuario).count() > 0:
        print("  [SKIP] Usuario - table already has data.")
        return
    for username, email, nombre, rol, password in _USUARIOS:
        session.add(
            Usuario(
                username=username,
                email=email,
                password_hash=hash_password(password),
                nombre_completo=nombre,
                rol=rol,
                activo=True,
            )
        )
    session.commit()
    print(f"  [OK] Usuario - {len(_USUARIOS)} registros insertados.")


def seed_tipos_contrato(session) -> list[TipoContrato]:
    if session.query(TipoContrato).count() > 0:
        print("  [SKIP] TipoContrato - table already has data.")
        return session.query(TipoContrato).order_by(TipoContrato.id).all()
    tipos = [TipoContrato(nombre=n, descripcion=d) for n, d in _TIPOS_CONTRATO]
    session.add_all(tipos)
    session.commit()
    print(f"  [OK] TipoContrato - {len(tipos)} registros insertados.")
    return tipos


def seed_trabajadores(session) -> list[Trabajador]:
    if session.query(Trabajador).count() > 0:
        print("  [SKIP] Trabajador - table already has data.")
        return session.query(Trabajador).order_by(Trabajador.id).all()
    trabajadores = [
        Trabajador(
            nombre=nombre,
            apellido=apellido,
            correo=correo,
            telefono=telefono,
            fecha_ingreso=ingreso,
            salario_actual=Decimal(salario),
            esta_activo=True,
        )
        for nombre, apellido, correo, telefono, ingreso, salario in _TRABAJADORES
    ]
    session.add_all(trabajadores)
    session.commit()
    print(f"  [OK] Trabajador - {len(trabajadores)} registros insertados.")
    return trabajadores


def seed_contratos(session, trabajadores: list[Trabajador], tipos: list[TipoContrato]) -> None:
    """One ACTIVO contract per worker for the current year."""
    if session.query(Contrato).count() > 0:
        print("  [SKIP] Contrato - table already has data.")
        return
    creados = 0
    for i, trabajador in enumerate(trabajadores):
        tipo = tipos[i % len(tipos)]
        data = ContratoCreate(
            trabajador_id=trabajador.id,
            tipo_contrato_id=tipo.id,
            fecha_inicio=date(ANIO, 1, 1),
            fecha_fin=date(ANIO, 12, 31),
            documento_url=f"https://docs.edificio.local/contratos/{ANIO}-{trabajador.id:03d}.pdf",
        )
        try:
            contrato_service.crear_contrato(session, data, usuario_accion="seed")
            creados += 1
        except DomainError as exc:
            print(f"  [WARN] Trabajador {trabajador.id}: {exc.message}")
    print(f"  [OK] Contrato - {creados} registros insertados (con historial).")


def main() -> None:
    print("=" * 60)
    print("  Gestión de Edificio - Seed Data Script")
    print("=" * 60)

    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        print("\n[1/4] Usuarios...")
        seed_usuarios(session)

        print("\n[2/4] Tipos de contrato...")
        tipos = seed_tipos_contrato(session)

        print("\n[3/4] Trabajadores...")
        trabajadores = seed_trabajadores(session)

        print("\n[4/4] Contratos...")
        seed_contratos(session, trabajadores, tipos)

        print("\n" + "=" * 60)
        print("  Seed completado exitosamente.")
        print("=" * 60)
    except Exception as exc:
        session.rollback()
        print("\n[ERROR] Seed fallido - se hizo rollback.")
        print(f"  Detalle: {exc}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
