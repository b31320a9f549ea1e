"""contratos_historial

Crea las tablas de usuarios, trabajadores, tipos de contrato, contratos e
historial de contratos. El índice único parcial
``uq_contrato_activo_trabajador`` garantiza un solo contrato ACTIVO por
trabajador.

Revision ID: 4c2d8e1a7b90
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4c2d8e1a7b90'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_SNAPSHOT = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        'usuario',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=200), nullable=False),
        sa.Column('password_hash', sa.String(length=200), nullable=False),
        sa.Column('nombre_completo', sa.String(length=300), nullable=True),
        sa.Column('rol', sa.String(length=50), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=False),
        sa.Column('ultimo_acceso', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'trabajador',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=150), nullable=False),
        sa.Column('apellido', sa.String(length=150), nullable=False),
        sa.Column('correo', sa.String(length=200), nullable=False),
        sa.Column('esta_activo', sa.Boolean(), nullable=False),
        sa.Column('telefono', sa.String(length=30), nullable=True),
        sa.Column('fecha_ingreso', sa.Date(), nullable=True),
        sa.Column('salario_actual', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_trabajador_correo', 'trabajador', ['correo'])

    op.create_table(
        'tipo_contrato',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('nombre'),
    )

    op.create_table(
        'contrato',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('trabajador_id', sa.Integer(), nullable=False),
        sa.Column('tipo_contrato_id', sa.Integer(), nullable=False),
        sa.Column('documento_url', sa.Text(), nullable=False),
        sa.Column('remuneracion', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('fecha_inicio', sa.Date(), nullable=False),
        sa.Column('fecha_fin', sa.Date(), nullable=False),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('estado_renovacion', sa.Boolean(), nullable=False),
        sa.Column('fecha_renovacion', sa.Date(), nullable=True),
        sa.Column('motivo_terminacion', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['trabajador_id'], ['trabajador.id']),
        sa.ForeignKeyConstraint(['tipo_contrato_id'], ['tipo_contrato.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_contrato_trabajador_estado', 'contrato', ['trabajador_id', 'estado']
    )
    op.create_index(
        'uq_contrato_activo_trabajador',
        'contrato',
        ['trabajador_id'],
        unique=True,
        postgresql_where=sa.text("estado = 'ACTIVO'"),
        sqlite_where=sa.text("estado = 'ACTIVO'"),
    )

    op.create_table(
        'historial_contrato',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('contrato_id', sa.Integer(), nullable=False),
        sa.Column('fecha_registro', sa.DateTime(), nullable=False),
        sa.Column('tipo_accion', sa.String(length=30), nullable=False),
        sa.Column('descripcion_accion', sa.Text(), nullable=False),
        sa.Column('estado_anterior', _SNAPSHOT, nullable=True),
        sa.Column('estado_nuevo', _SNAPSHOT, nullable=True),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('usuario_accion', sa.String(length=100), nullable=True),
        sa.Column('ip_usuario', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['contrato_id'], ['contrato.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_historial_contrato_contrato_id', 'historial_contrato', ['contrato_id'])
    op.create_index(
        'ix_historial_contrato_fecha_registro', 'historial_contrato', ['fecha_registro']
    )
    op.create_index('ix_historial_contrato_tipo_accion', 'historial_contrato', ['tipo_accion'])


def downgrade() -> None:
    op.drop_table('historial_contrato')
    op.drop_index('uq_contrato_activo_trabajador', table_name='contrato')
    op.drop_index('ix_contrato_trabajador_estado', table_name='contrato')
    op.drop_table('contrato')
    op.drop_table('tipo_contrato')
    op.drop_index('ix_trabajador_correo', table_name='trabajador')
    op.drop_table('trabajador')
    op.drop_table('usuario')
