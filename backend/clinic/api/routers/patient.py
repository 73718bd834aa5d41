from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db import get_db
from clinic.errors import Forbidden
from clinic.schemas import MessageResponse, ProfileUpdate
from clinic.services import listing_service
from clinic.services.auth_service import RequestContext, get_current_user
from clinic.services.profile_service import (
    get_patient_profile, require_patient_id, resolve_patient_id, save_patient_profile,
)

router = APIRouter(tags=["patient"])

NO_UPCOMING_MESSAGE = "No hay próximas citas"


async def target_patient_id(db: AsyncSession, ctx: RequestContext, requested: Optional[int]) -> int:
    """
    Paciente sobre el que se consulta. Sin idPaciente es el propio.
    Un paciente no puede consultar a otro; psicólogos y admin sí.
    """
    if not requested:
        return await require_patient_id(db, ctx.user_id)
    if ctx.role == "patient":
        own_id = await resolve_patient_id(db, ctx.user_id)
        if own_id != requested:
            raise Forbidden("Solo puedes consultar tus propias citas.")
    return requested


@router.get("/next-appointment")
async def next_appointment(
    idPaciente: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    patient_id = await target_patient_id(db, ctx, idPaciente)
    appointment = await listing_service.next_appointment(db, patient_id)
    if appointment is None:
        return {"message": NO_UPCOMING_MESSAGE}
    return appointment


@router.get("/patient-calendar")
async def patient_calendar(
    idPaciente: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    patient_id = await target_patient_id(db, ctx, idPaciente)
    return await listing_service.patient_calendar(db, patient_id)


@router.get("/profile")
async def read_profile(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    return {"success": True, "data": await get_patient_profile(db, ctx.user_id)}


@router.put("/profile", response_model=MessageResponse)
async def update_profile(
    req: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    created = await save_patient_profile(db, ctx.user_id, req)
    message = "Perfil creado correctamente." if created else "Perfil actualizado correctamente."
    return MessageResponse(message=message)
