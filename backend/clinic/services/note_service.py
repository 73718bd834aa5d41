"""Notas clínicas; cada psicólogo sólo ve y toca las suyas."""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.errors import NotFound
from clinic.models import ClinicalNote, Patient, Psychologist
from clinic.schemas import NoteOut

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 255


def _note_query(psychologist_id: int):
    return (
        select(ClinicalNote, Patient, Psychologist)
        .join(Patient, ClinicalNote.patient_id == Patient.id)
        .join(Psychologist, ClinicalNote.psychologist_id == Psychologist.id)
        .where(ClinicalNote.psychologist_id == psychologist_id)
        .order_by(ClinicalNote.session_date.desc(), ClinicalNote.updated_at.desc())
    )


def _to_out(note: ClinicalNote, patient: Patient, psy: Psychologist) -> NoteOut:
    return NoteOut(
        id_nota=note.id,
        id_paciente=note.patient_id,
        id_psicologo=note.psychologist_id,
        id_cita=note.appointment_id,
        fecha_sesion=note.session_date,
        contenido=note.content,
        resumen=note.summary,
        fecha_creacion=note.created_at,
        fecha_actualizacion=note.updated_at,
        nombre_paciente=patient.full_name,
        nombre_psicologo=psy.full_name,
    )


async def list_notes(db: AsyncSession, psychologist_id: int, patient_id: Optional[int] = None) -> List[NoteOut]:
    q = _note_query(psychologist_id)
    if patient_id:
        q = q.where(ClinicalNote.patient_id == patient_id)
    rows = (await db.execute(q)).all()
    return [_to_out(*row) for row in rows]


async def get_note(db: AsyncSession, psychologist_id: int, note_id: int) -> NoteOut:
    row = (await db.execute(_note_query(psychologist_id).where(ClinicalNote.id == note_id))).first()
    if row is None:
        raise NotFound("Nota no encontrada.")
    return _to_out(*row)


async def search_notes(db: AsyncSession, psychologist_id: int, text: str) -> List[NoteOut]:
    like = f"%{text}%"
    full_name = Patient.first_name + " " + Patient.last_name
    q = _note_query(psychologist_id).where(
        or_(
            full_name.like(like),
            ClinicalNote.summary.like(like),
            ClinicalNote.content.like(like),
        )
    )
    rows = (await db.execute(q)).all()
    return [_to_out(*row) for row in rows]


async def create_note(
    db: AsyncSession,
    psychologist_id: int,
    *,
    patient_id: int,
    session_date: date,
    content: str,
    summary: Optional[str] = None,
    appointment_id: Optional[int] = None,
) -> int:
    if await db.get(Patient, patient_id) is None:
        raise NotFound("Paciente no encontrado.")
    note = ClinicalNote(
        patient_id=patient_id,
        psychologist_id=psychologist_id,
        appointment_id=appointment_id,
        session_date=session_date,
        content=content,
        summary=summary if summary is not None else content[:SUMMARY_LENGTH],
    )
    db.add(note)
    await db.commit()
    logger.info("Clinical note %s created by psychologist %s", note.id, psychologist_id)
    return note.id


async def update_note(
    db: AsyncSession,
    psychologist_id: int,
    note_id: int,
    *,
    content: str,
    summary: Optional[str] = None,
    session_date: Optional[date] = None,
) -> None:
    values = {
        "content": content,
        "summary": summary if summary is not None else content[:SUMMARY_LENGTH],
        "updated_at": func.now(),
    }
    if session_date:
        values["session_date"] = session_date
    res = await db.execute(
        update(ClinicalNote)
        .where(ClinicalNote.id == note_id, ClinicalNote.psychologist_id == psychologist_id)
        .values(**values)
    )
    if res.rowcount == 0:
        await db.rollback()
        raise NotFound("Nota no encontrada.")
    await db.commit()


async def delete_note(db: AsyncSession, psychologist_id: int, note_id: int) -> None:
    res = await db.execute(
        delete(ClinicalNote).where(
            ClinicalNote.id == note_id, ClinicalNote.psychologist_id == psychologist_id
        )
    )
    if res.rowcount == 0:
        await db.rollback()
        raise NotFound("Nota no encontrada.")
    await db.commit()
    logger.info("Clinical note %s deleted by psychologist %s", note_id, psychologist_id)
