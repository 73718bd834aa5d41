from __future__ import annotations
import re
from datetime import date, datetime, time
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator

from clinic.models import AppointmentStatus, Role

PHONE_RE = re.compile(r"^[0-9+\-()\s]{6,}$")
MIN_AGE = 18
MIN_PASSWORD_LENGTH = 6


def _blank_to_none(v):
    # los formularios mandan "" o 0 para "sin valor"
    if v == "" or v == 0:
        return None
    return v


def _check_email(v: str) -> str:
    try:
        validate_email(v.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Ingrese un correo electrónico válido.")
    return v.strip().lower()


def _check_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Nombre y apellido obligatorios.")
    return v.strip()


def _check_age(v: int) -> int:
    if v < MIN_AGE:
        raise ValueError("Debes ser mayor de 18 años para crear una cuenta.")
    return v


# --- Autenticación ---
class LoginRequest(BaseModel):
    email: str
    password: str


class UsuarioOut(BaseModel):
    """Usuario tal como lo consume el frontend tras el login."""
    id: int
    email: str
    Rol: str


class LoginResponse(BaseModel):
    success: bool = True
    usuario: UsuarioOut


class RegisterRequest(BaseModel):
    """
    /register (alta de pacientes).
    Los mensajes de validación se devuelven tal cual al usuario.
    """
    first: str
    last: str
    age: int
    phone: str
    email: str
    password: str

    @field_validator("first", "last")
    @classmethod
    def names_not_empty(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("age")
    @classmethod
    def adult_only(cls, v: int) -> int:
        return _check_age(v)

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        if not PHONE_RE.match(v.strip()):
            raise ValueError("Ingrese un número de teléfono válido.")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        # el login también recorta espacios
        v = v.strip()
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError("La contraseña debe tener al menos 6 caracteres.")
        return v


# --- Citas ---
class BookRequest(BaseModel):
    fecha: Optional[date] = None
    hora: Optional[time] = None
    id_psicologo: Optional[int] = None
    motivo: Optional[str] = None
    duracion: Optional[int] = Field(None, gt=0, le=480)

    @field_validator("fecha", "hora", "id_psicologo", "duracion", mode="before")
    @classmethod
    def blanks_as_missing(cls, v):
        return _blank_to_none(v)


class BookResponse(BaseModel):
    success: bool = True
    id_cita: int


class EditAppointmentRequest(BaseModel):
    id: int
    id_psicologo: Optional[int] = None
    fecha: Optional[date] = None
    hora: Optional[time] = None

    @field_validator("id_psicologo", "fecha", "hora", mode="before")
    @classmethod
    def blanks_as_missing(cls, v):
        return _blank_to_none(v)


class StatusUpdateRequest(BaseModel):
    estado: AppointmentStatus


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CalendarEvent(BaseModel):
    """Evento en el formato que espera FullCalendar."""
    id: int
    title: str
    start: str
    end: str
    estado: str
    paciente: Optional[str] = None
    psicologo: Optional[str] = None
    motivo: Optional[str] = None
    fecha: str
    hora: str


class NextAppointment(BaseModel):
    id_cita: int
    fecha_cita: datetime
    especialidad: Optional[str] = None
    estado: str
    duracion: int
    psicologo: str


class AppointmentSummary(BaseModel):
    id_cita: int
    fecha: Optional[date] = None
    hora: Optional[str] = None
    tipo: Optional[str] = None
    psicologo: str
    estado: str


class PsychologistAppointment(BaseModel):
    id_cita: int
    id_paciente: int
    fecha_cita: Optional[datetime] = None
    motivo: Optional[str] = None
    estado: str
    duracion: int
    paciente: str
    telefono: Optional[str] = None
    correo: Optional[str] = None


class RosterEntry(BaseModel):
    id_paciente: int
    nombre: str
    apellido: str
    nombre_completo: str
    telefono: Optional[str] = None
    edad: Optional[int] = None
    fecha_registro: Optional[datetime] = None
    ultima_sesion: Optional[date] = None
    ultima_cita: Optional[datetime] = None


class PsychologistOption(BaseModel):
    id: int
    nombre: str


class SpecialtyOut(BaseModel):
    id: int
    nombre: str


# --- Perfil ---
class PatientProfile(BaseModel):
    id_usuario: int
    email: str
    id_paciente: Optional[int] = None
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    edad: Optional[int] = None
    telefono: Optional[str] = None
    fecha_registro: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    nombre: str
    apellido: str
    edad: int
    telefono: str

    @field_validator("nombre", "apellido")
    @classmethod
    def names_not_empty(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("edad")
    @classmethod
    def adult_only(cls, v: int) -> int:
        if v < MIN_AGE:
            raise ValueError("Edad inválida. Debe ser mayor de 18 años.")
        return v

    @field_validator("telefono")
    @classmethod
    def phone_length(cls, v: str) -> str:
        if len(v.strip()) < 6:
            raise ValueError("Teléfono inválido (mínimo 6 caracteres).")
        return v.strip()


# --- Notas clínicas ---
class NoteCreate(BaseModel):
    id_paciente: int
    fecha_sesion: date
    contenido: str = Field(..., min_length=1)
    resumen: Optional[str] = Field(None, max_length=255)
    id_cita: Optional[int] = None

    @field_validator("id_cita", mode="before")
    @classmethod
    def blanks_as_missing(cls, v):
        return _blank_to_none(v)


class NoteUpdate(BaseModel):
    contenido: str = Field(..., min_length=1)
    resumen: Optional[str] = Field(None, max_length=255)
    fecha_sesion: Optional[date] = None

    @field_validator("fecha_sesion", mode="before")
    @classmethod
    def blanks_as_missing(cls, v):
        return _blank_to_none(v)


class NoteOut(BaseModel):
    id_nota: int
    id_paciente: int
    id_psicologo: int
    id_cita: Optional[int] = None
    fecha_sesion: date
    contenido: str
    resumen: Optional[str] = None
    fecha_creacion: Optional[datetime] = None
    fecha_actualizacion: Optional[datetime] = None
    nombre_paciente: str
    nombre_psicologo: str


# --- Contacto ---
class ContactRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str
    phone: str = Field(..., min_length=1, max_length=30)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _check_email(v)


# --- Administración ---
class AdminUserRow(BaseModel):
    id_usuario: int
    email: str
    rol: str
    id_paciente: Optional[int] = None
    nombre_paciente: Optional[str] = None
    apellido_paciente: Optional[str] = None
    telefono_paciente: Optional[str] = None
    id_psicologo: Optional[int] = None
    nombre_psicologo: Optional[str] = None
    apellido_psicologo: Optional[str] = None
    telefono_psicologo: Optional[str] = None


class RoleUpdate(BaseModel):
    rol_nuevo: Role
