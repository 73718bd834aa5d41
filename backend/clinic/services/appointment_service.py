"""
Reserva, reprogramación y cancelación de citas.

Política de horarios: una cita ocupa únicamente su instante de inicio.
No se comprueba solapamiento por duración; dos citas de duraciones distintas
que se solapan pero empiezan a distinta hora NO se consideran en conflicto.
El índice único parcial uq_appointments_active_slot respalda la comprobación
cuando dos peticiones compiten por el mismo horario.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.errors import Conflict, IncompleteData, NotFound, NotFoundOrForbidden, SlotTaken
from clinic.models import Appointment, AppointmentStatus, Psychologist
from clinic.services.auth_service import RequestContext
from clinic.services.profile_service import require_patient_id, require_psychologist_id

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60
CANCELLED = AppointmentStatus.CANCELLED.value
COMPLETED = AppointmentStatus.COMPLETED.value


def combine_slot(day: date, at: time) -> datetime:
    """fecha + hora -> instante de inicio (sin zona horaria ni microsegundos)."""
    return datetime.combine(day, at.replace(tzinfo=None, microsecond=0))


async def has_conflict(
    db: AsyncSession,
    psychologist_id: int,
    candidate_start: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    q = select(Appointment.id).where(
        Appointment.psychologist_id == psychologist_id,
        Appointment.start_time == candidate_start,
        Appointment.status != CANCELLED,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    res = await db.execute(q.limit(1))
    return res.first() is not None


async def _ensure_psychologist_exists(db: AsyncSession, psychologist_id: int) -> None:
    if await db.get(Psychologist, psychologist_id) is None:
        raise NotFound("Psicólogo no encontrado.")


async def _commit_slot(db: AsyncSession) -> None:
    # el índice único detecta a quien perdió la carrera por el horario
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise SlotTaken()


async def book(
    db: AsyncSession,
    ctx: RequestContext,
    psychologist_id: Optional[int],
    day: Optional[date],
    at: Optional[time],
    reason: Optional[str] = None,
    duration_minutes: Optional[int] = None,
) -> int:
    if not day or not at or not psychologist_id:
        raise IncompleteData("Datos incompletos: fecha, hora y psicólogo son obligatorios.")

    patient_id = await require_patient_id(db, ctx.user_id)
    await _ensure_psychologist_exists(db, psychologist_id)

    start = combine_slot(day, at)
    if await has_conflict(db, psychologist_id, start):
        raise SlotTaken()

    appointment = Appointment(
        patient_id=patient_id,
        psychologist_id=psychologist_id,
        start_time=start,
        reason=reason or None,
        duration_minutes=duration_minutes or DEFAULT_DURATION_MINUTES,
        status=AppointmentStatus.PENDING.value,
    )
    db.add(appointment)
    await _commit_slot(db)

    logger.info(
        "Appointment %s booked: patient=%s psychologist=%s start=%s",
        appointment.id, patient_id, psychologist_id, start,
    )
    return appointment.id


async def edit(
    db: AsyncSession,
    ctx: RequestContext,
    appointment_id: int,
    psychologist_id: Optional[int] = None,
    day: Optional[date] = None,
    at: Optional[time] = None,
) -> None:
    """Reprogramación parcial: lo que no llega conserva su valor actual."""
    patient_id = await require_patient_id(db, ctx.user_id)

    res = await db.execute(
        select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.patient_id == patient_id,
        )
    )
    appointment = res.scalar_one_or_none()
    # inexistente, ajena o cancelada: misma respuesta
    if appointment is None or appointment.status == CANCELLED:
        raise NotFoundOrForbidden("Cita no encontrada o no tienes permiso para editarla.")
    if appointment.status == COMPLETED:
        raise Conflict("Una cita completada no se puede reprogramar.")

    new_psychologist_id = psychologist_id or appointment.psychologist_id
    if new_psychologist_id != appointment.psychologist_id:
        await _ensure_psychologist_exists(db, new_psychologist_id)

    current = appointment.start_time
    if current is None and (day is None or at is None):
        raise IncompleteData("Indica fecha y hora para reprogramar la cita.")
    new_start = combine_slot(
        day or current.date(),
        at or current.time(),
    )

    if await has_conflict(db, new_psychologist_id, new_start, exclude_appointment_id=appointment.id):
        raise SlotTaken()

    appointment.psychologist_id = new_psychologist_id
    appointment.start_time = new_start
    await _commit_slot(db)

    logger.info(
        "Appointment %s rescheduled: psychologist=%s start=%s",
        appointment_id, new_psychologist_id, new_start,
    )


async def cancel(db: AsyncSession, ctx: RequestContext, appointment_id: int) -> None:
    """Cancelación lógica: libera el horario y conserva la fila."""
    patient_id = await require_patient_id(db, ctx.user_id)

    res = await db.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment_id,
            Appointment.patient_id == patient_id,
            Appointment.status != CANCELLED,
        )
        .values(start_time=None, status=CANCELLED)
    )
    if res.rowcount == 0:
        await db.rollback()
        raise NotFoundOrForbidden("No se encontró la cita o no tienes permiso para cancelarla.")
    await db.commit()
    logger.info("Appointment %s cancelled by patient %s", appointment_id, patient_id)


async def update_status(
    db: AsyncSession,
    ctx: RequestContext,
    appointment_id: int,
    status: AppointmentStatus,
) -> None:
    """Cambio de estado hecho por el psicólogo dueño de la cita."""
    psychologist_id = await require_psychologist_id(db, ctx.user_id)

    res = await db.execute(
        select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.psychologist_id == psychologist_id,
        )
    )
    appointment = res.scalar_one_or_none()
    if appointment is None:
        raise NotFoundOrForbidden("No tienes permiso para actualizar esta cita.")

    if appointment.status == status.value:
        raise Conflict("No se realizaron cambios.")
    if appointment.status == CANCELLED:
        raise Conflict("Una cita cancelada no se puede reactivar.")

    appointment.status = status.value
    if status is AppointmentStatus.CANCELLED:
        appointment.start_time = None
    await db.commit()
    logger.info("Appointment %s status -> %s (psychologist %s)", appointment_id, status.value, psychologist_id)


async def occupied_hours(db: AsyncSession, psychologist_id: int, day: date) -> List[str]:
    """Horas HH:MM ya tomadas de un psicólogo en un día."""
    day_start = datetime.combine(day, time.min)
    res = await db.execute(
        select(Appointment.start_time)
        .where(
            Appointment.psychologist_id == psychologist_id,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_start + timedelta(days=1),
            Appointment.status != CANCELLED,
        )
        .order_by(Appointment.start_time.asc())
    )
    return [start.strftime("%H:%M") for start in res.scalars().all()]
