"""Resolución usuario autenticado -> perfil de paciente / psicólogo."""
import logging
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.errors import NotFound, ProfileNotFound
from clinic.models import Patient, Psychologist, User
from clinic.schemas import PatientProfile, ProfileUpdate

logger = logging.getLogger(__name__)


async def resolve_patient_id(db: AsyncSession, user_id: int) -> Optional[int]:
    res = await db.execute(select(Patient.id).where(Patient.user_id == user_id))
    return res.scalar_one_or_none()


async def resolve_psychologist_id(db: AsyncSession, user_id: int) -> Optional[int]:
    res = await db.execute(select(Psychologist.id).where(Psychologist.user_id == user_id))
    return res.scalar_one_or_none()


async def require_patient_id(db: AsyncSession, user_id: int) -> int:
    patient_id = await resolve_patient_id(db, user_id)
    if patient_id is None:
        raise ProfileNotFound("Perfil de paciente no encontrado.")
    return patient_id


async def require_psychologist_id(db: AsyncSession, user_id: int) -> int:
    psychologist_id = await resolve_psychologist_id(db, user_id)
    if psychologist_id is None:
        raise ProfileNotFound("No se encontró el perfil del psicólogo.")
    return psychologist_id


async def get_patient_profile(db: AsyncSession, user_id: int):
    """Datos del usuario con su perfil de paciente (None si aún no existe)."""
    res = await db.execute(
        select(User, Patient)
        .outerjoin(Patient, Patient.user_id == User.id)
        .where(User.id == user_id)
    )
    row = res.first()
    if row is None:
        raise NotFound("Usuario no encontrado.")
    user, patient = row
    return PatientProfile(
        id_usuario=user.id,
        email=user.email,
        id_paciente=patient.id if patient else None,
        nombre=patient.first_name if patient else None,
        apellido=patient.last_name if patient else None,
        edad=patient.age if patient else None,
        telefono=patient.phone if patient else None,
        fecha_registro=patient.registered_at if patient else None,
    )


async def save_patient_profile(db: AsyncSession, user_id: int, data: ProfileUpdate) -> bool:
    """Actualiza el perfil o lo crea si falta. Devuelve True si fue creado."""
    patient_id = await resolve_patient_id(db, user_id)
    values = dict(
        first_name=data.nombre,
        last_name=data.apellido,
        age=data.edad,
        phone=data.telefono,
    )
    if patient_id is None:
        await db.execute(insert(Patient).values(user_id=user_id, **values))
        created = True
    else:
        await db.execute(
            update(Patient)
            .where(Patient.id == patient_id, Patient.user_id == user_id)
            .values(**values)
        )
        created = False
    await db.commit()
    logger.info("Patient profile %s for user_id=%s", "created" if created else "updated", user_id)
    return created
