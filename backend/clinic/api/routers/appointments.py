from datetime import date

from fastapi import APIRouter, Depends, Form, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db import get_db
from clinic.schemas import BookRequest, BookResponse, EditAppointmentRequest, MessageResponse, StatusUpdateRequest
from clinic.services import appointment_service, listing_service
from clinic.services.auth_service import RequestContext, get_current_user
from clinic.services.profile_service import require_patient_id

router = APIRouter(tags=["appointments"])


@router.post("/book", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    req: BookRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    appointment_id = await appointment_service.book(
        db,
        ctx,
        psychologist_id=req.id_psicologo,
        day=req.fecha,
        at=req.hora,
        reason=req.motivo,
        duration_minutes=req.duracion,
    )
    return BookResponse(id_cita=appointment_id)


@router.post("/edit-appointment", response_model=MessageResponse)
async def edit_appointment(
    req: EditAppointmentRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    await appointment_service.edit(
        db,
        ctx,
        req.id,
        psychologist_id=req.id_psicologo,
        day=req.fecha,
        at=req.hora,
    )
    return MessageResponse(message="Cita actualizada correctamente.")


@router.post("/cancel-appointment", response_model=MessageResponse)
async def cancel_appointment(
    id: int = Form(...),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    await appointment_service.cancel(db, ctx, id)
    return MessageResponse(message="Cita cancelada correctamente.")


@router.get("/my-appointments")
async def my_appointments(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    patient_id = await require_patient_id(db, ctx.user_id)
    data = await listing_service.patient_appointments(db, patient_id)
    return {"success": True, "data": data}


@router.get("/occupied-hours")
async def occupied_hours(
    id_psicologo: int = Query(...),
    fecha: date = Query(...),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    """Horas ya reservadas, para bloquearlas en el selector del calendario."""
    horas = await appointment_service.occupied_hours(db, id_psicologo, fecha)
    return {"success": True, "horas": horas}


@router.patch("/appointments/{appointment_id}/status", response_model=MessageResponse)
async def update_appointment_status(
    appointment_id: int,
    req: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_current_user),
):
    await appointment_service.update_status(db, ctx, appointment_id, req.estado)
    return MessageResponse(message=f"Estado actualizado a {req.estado.value}.")
