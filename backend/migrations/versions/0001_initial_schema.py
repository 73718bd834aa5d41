"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-06-01 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLite sólo autoincrementa INTEGER PRIMARY KEY
BigIntPK = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')

SPECIALTIES = ["Terapia individual", "Terapia familiar", "Terapia grupal"]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', BigIntPK, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='patient'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("role in ('patient','psychologist','admin')", name='ck_users_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    specialties = op.create_table(
        'specialties',
        sa.Column('id', BigIntPK, primary_key=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
    )

    op.create_table(
        'patients',
        sa.Column('id', BigIntPK, primary_key=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('registered_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'psychologists',
        sa.Column('id', BigIntPK, primary_key=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True, unique=True),
        sa.Column('specialty_id', sa.BigInteger(), sa.ForeignKey('specialties.id', ondelete='SET NULL'), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(30), nullable=True),
    )
    op.create_index('ix_psychologists_specialty_id', 'psychologists', ['specialty_id'])

    op.create_table(
        'appointments',
        sa.Column('id', BigIntPK, primary_key=True),
        sa.Column('patient_id', sa.BigInteger(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('psychologist_id', sa.BigInteger(), sa.ForeignKey('psychologists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('status', sa.String(16), nullable=False, server_default='Pendiente'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status in ('Pendiente','Confirmada','Completada','Cancelada')",
            name='ck_appointments_status',
        ),
        sa.CheckConstraint('duration_minutes > 0', name='ck_appointments_duration'),
    )
    op.create_index('idx_appointments_patient', 'appointments', ['patient_id'])
    op.create_index('idx_appointments_psychologist_start', 'appointments', ['psychologist_id', 'start_time'])
    # un solo turno activo por psicólogo y hora de inicio
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['psychologist_id', 'start_time'],
        unique=True,
        postgresql_where=sa.text("status <> 'Cancelada'"),
        sqlite_where=sa.text("status <> 'Cancelada'"),
    )

    op.create_table(
        'clinical_notes',
        sa.Column('id', BigIntPK, primary_key=True),
        sa.Column('patient_id', sa.BigInteger(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('psychologist_id', sa.BigInteger(), sa.ForeignKey('psychologists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('appointment_id', sa.BigInteger(), sa.ForeignKey('appointments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('summary', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_notes_patient_psychologist', 'clinical_notes', ['patient_id', 'psychologist_id'])

    # datos de referencia
    op.bulk_insert(specialties, [{'name': name} for name in SPECIALTIES])


def downgrade() -> None:
    op.drop_table('clinical_notes')
    op.drop_index('uq_appointments_active_slot', table_name='appointments')
    op.drop_index('idx_appointments_psychologist_start', table_name='appointments')
    op.drop_index('idx_appointments_patient', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('psychologists')
    op.drop_table('patients')
    op.drop_table('specialties')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
