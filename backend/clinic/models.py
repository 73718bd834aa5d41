from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Optional, Literal

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    BigInteger, String, Text, Integer, Date, DateTime, CheckConstraint,
    ForeignKey, Index,
)
from sqlalchemy.sql import func
from sqlalchemy.sql.expression import text

from clinic.db import Base

# SQLite sólo autoincrementa INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

Role = Literal["patient", "psychologist", "admin"]


class AppointmentStatus(str, Enum):
    PENDING = "Pendiente"
    CONFIRMED = "Confirmada"
    COMPLETED = "Completada"
    CANCELLED = "Cancelada"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role in ('patient','psychologist','admin')",
            name="ck_users_role",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(16), default="patient", nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    patient: Mapped[Optional["Patient"]] = relationship(back_populates="user", uselist=False)
    psychologist: Mapped[Optional["Psychologist"]] = relationship(back_populates="user", uselist=False)


class Specialty(Base):
    __tablename__ = "specialties"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    # perfil 1:1 con users; nullable para pacientes dados de alta sin cuenta
    user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    registered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[Optional["User"]] = relationship(back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Psychologist(Base):
    __tablename__ = "psychologists"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=True
    )
    specialty_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("specialties.id", ondelete="SET NULL"), nullable=True, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    user: Mapped[Optional["User"]] = relationship(back_populates="psychologist")
    specialty: Mapped[Optional["Specialty"]] = relationship()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Appointment(Base):
    """
    Cita entre un paciente y un psicólogo.

    Cancelar es un borrado lógico: start_time pasa a NULL y status a Cancelada,
    la fila queda como historial y el horario queda libre.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint(
            "status in ('Pendiente','Confirmada','Completada','Cancelada')",
            name="ck_appointments_status",
        ),
        CheckConstraint("duration_minutes > 0", name="ck_appointments_duration"),
        Index("idx_appointments_patient", "patient_id"),
        Index("idx_appointments_psychologist_start", "psychologist_id", "start_time"),
        # un solo turno activo por psicólogo y hora de inicio
        Index(
            "uq_appointments_active_slot",
            "psychologist_id", "start_time",
            unique=True,
            postgresql_where=text("status <> 'Cancelada'"),
            sqlite_where=text("status <> 'Cancelada'"),
        ),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    patient_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    psychologist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("psychologists.id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), default=AppointmentStatus.PENDING.value, nullable=False
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    patient: Mapped["Patient"] = relationship()
    psychologist: Mapped["Psychologist"] = relationship()


class ClinicalNote(Base):
    __tablename__ = "clinical_notes"
    __table_args__ = (
        Index("idx_notes_patient_psychologist", "patient_id", "psychologist_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, index=True)
    patient_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    psychologist_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("psychologists.id", ondelete="CASCADE"), nullable=False
    )
    appointment_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True
    )
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    patient: Mapped["Patient"] = relationship()
    psychologist: Mapped["Psychologist"] = relationship()
