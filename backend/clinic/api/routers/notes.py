from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.routers.psychologists import current_psychologist_id
from clinic.db import get_db
from clinic.schemas import MessageResponse, NoteCreate, NoteUpdate
from clinic.services import note_service

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("")
async def list_notes(
    id_paciente: Optional[int] = Query(None),
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    data = await note_service.list_notes(db, psychologist_id, patient_id=id_paciente)
    return {"success": True, "data": data}


# antes de /{note_id} para que "search" no se lea como id
@router.get("/search")
async def search_notes(
    q: str = Query(..., min_length=1),
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    data = await note_service.search_notes(db, psychologist_id, q.strip())
    return {"success": True, "data": data}


@router.get("/{note_id}")
async def get_note(
    note_id: int,
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await note_service.get_note(db, psychologist_id, note_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_note(
    req: NoteCreate,
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    note_id = await note_service.create_note(
        db,
        psychologist_id,
        patient_id=req.id_paciente,
        session_date=req.fecha_sesion,
        content=req.contenido,
        summary=req.resumen,
        appointment_id=req.id_cita,
    )
    return {"success": True, "id_nota": note_id}


@router.put("/{note_id}", response_model=MessageResponse)
async def update_note(
    note_id: int,
    req: NoteUpdate,
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    await note_service.update_note(
        db,
        psychologist_id,
        note_id,
        content=req.contenido,
        summary=req.resumen,
        session_date=req.fecha_sesion,
    )
    return MessageResponse(message="Nota actualizada correctamente.")


@router.delete("/{note_id}", response_model=MessageResponse)
async def delete_note(
    note_id: int,
    psychologist_id: int = Depends(current_psychologist_id),
    db: AsyncSession = Depends(get_db),
):
    await note_service.delete_note(db, psychologist_id, note_id)
    return MessageResponse(message="Nota eliminada correctamente.")
