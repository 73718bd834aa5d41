import logging
from typing import List, Optional

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.errors import Conflict, NotFound
from clinic.models import Psychologist, Patient, Specialty, User
from clinic.schemas import AdminUserRow

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "Pendiente"


async def list_users(
    db: AsyncSession,
    name: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[str] = None,
) -> List[AdminUserRow]:
    q = (
        select(User, Patient, Psychologist)
        .outerjoin(Patient, Patient.user_id == User.id)
        .outerjoin(Psychologist, Psychologist.user_id == User.id)
        .order_by(User.id.asc())
    )
    if name:
        like = f"%{name}%"
        q = q.where(
            or_(
                Patient.first_name.like(like),
                Patient.last_name.like(like),
                Psychologist.first_name.like(like),
                Psychologist.last_name.like(like),
            )
        )
    if email:
        q = q.where(User.email.like(f"%{email.lower()}%"))
    if role:
        q = q.where(User.role == role)

    rows = (await db.execute(q)).all()
    return [
        AdminUserRow(
            id_usuario=user.id,
            email=user.email,
            rol=user.role,
            id_paciente=patient.id if patient else None,
            nombre_paciente=patient.first_name if patient else None,
            apellido_paciente=patient.last_name if patient else None,
            telefono_paciente=patient.phone if patient else None,
            id_psicologo=psy.id if psy else None,
            nombre_psicologo=psy.first_name if psy else None,
            apellido_psicologo=psy.last_name if psy else None,
            telefono_psicologo=psy.phone if psy else None,
        )
        for user, patient, psy in rows
    ]


async def change_role(db: AsyncSession, user_id: int, new_role: str) -> None:
    """
    Cambia el rol de un usuario. Al promover a psicólogo se crea un perfil
    provisional ("Pendiente") en la misma transacción.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("Usuario no encontrado.")
    if user.role == new_role:
        raise Conflict("Ya tiene ese rol.")

    old_role = user.role
    await db.execute(update(User).where(User.id == user_id).values(role=new_role))

    if new_role == "psychologist":
        existing = await db.execute(select(Psychologist.id).where(Psychologist.user_id == user_id))
        if existing.scalar_one_or_none() is None:
            first_specialty = await db.execute(select(Specialty.id).order_by(Specialty.id).limit(1))
            await db.execute(
                insert(Psychologist).values(
                    user_id=user_id,
                    specialty_id=first_specialty.scalar_one_or_none(),
                    first_name=PLACEHOLDER_NAME,
                    last_name=PLACEHOLDER_NAME,
                )
            )
    await db.commit()
    logger.info("User %s role changed %s -> %s", user_id, old_role, new_role)


async def delete_user(db: AsyncSession, user_id: int) -> None:
    res = await db.execute(delete(User).where(User.id == user_id))
    if res.rowcount == 0:
        await db.rollback()
        raise NotFound("Usuario no encontrado.")
    await db.commit()
    logger.info("User %s deleted", user_id)
