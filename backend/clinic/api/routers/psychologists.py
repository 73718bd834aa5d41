from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db import get_db
from clinic.errors import Forbidden
from clinic.services import listing_service
from clinic.services.auth_service import RequestContext, get_current_user
from clinic.services.profile_service import require_psychologist_id

router = APIRouter(tags=["psychologists"])


async def current_psychologist_id(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
) -> int:
    """(dependencia) id de psicólogo del usuario autenticado, o 403."""
    return await require_psychologist_id(db, ctx.user_id)


@router.get("/specialties")
async def list_specialties(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    return {"success": True, "especialidades": await listing_service.list_specialties(db)}


@router.get("/psychologists")
async def psychologists_by_specialty(
    especialidad: int = Query(...),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    psicologos = await listing_service.psychologists_by_specialty(db, especialidad)
    return {"success": True, "psicologos": psicologos}


@router.get("/psychologist/me")
async def my_psychologist_id(psychologist_id: int = Depends(current_psychologist_id)):
    return {"success": True, "id_psicologo": psychologist_id}


@router.get("/psychologist/appointments")
async def my_psychologist_appointments(
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    data = await listing_service.psychologist_appointments(db, psychologist_id)
    return {"success": True, "data": data}


@router.get("/calendar")
async def psychologist_calendar(
    idDoctor: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    """Eventos del calendario de un psicólogo (lista sin sobre)."""
    if ctx.is_admin and idDoctor:
        return await listing_service.psychologist_calendar(db, idDoctor)

    own_id = await require_psychologist_id(db, ctx.user_id)
    # el calendario lleva nombres de pacientes: solo el propio
    if idDoctor and idDoctor != own_id:
        raise Forbidden("Solo puedes ver tu propio calendario.")
    return await listing_service.psychologist_calendar(db, own_id)


@router.get("/patients-roster")
async def patients_roster(
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    data = await listing_service.patient_roster(db, psychologist_id)
    return {"success": True, "data": data}
