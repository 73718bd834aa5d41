"""Consultas de solo lectura: calendarios, próxima cita, listado de pacientes."""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.models import Appointment, ClinicalNote, Patient, Psychologist, Specialty, User
from clinic.schemas import (
    AppointmentSummary, CalendarEvent, NextAppointment, PsychologistAppointment,
    PsychologistOption, RosterEntry, SpecialtyOut,
)


def _event(appointment: Appointment, title: str, **names) -> CalendarEvent:
    start = appointment.start_time
    end = start + timedelta(minutes=appointment.duration_minutes)
    return CalendarEvent(
        id=appointment.id,
        title=title,
        start=start.strftime("%Y-%m-%d %H:%M:%S"),
        end=end.strftime("%Y-%m-%d %H:%M:%S"),
        estado=appointment.status,
        motivo=appointment.reason,
        fecha=start.strftime("%d/%m/%Y"),
        hora=start.strftime("%H:%M"),
        **names,
    )


async def psychologist_calendar(db: AsyncSession, psychologist_id: int) -> List[CalendarEvent]:
    # las canceladas no tienen hora: no se pintan
    q = (
        select(Appointment, Patient)
        .join(Patient, Appointment.patient_id == Patient.id)
        .where(
            Appointment.psychologist_id == psychologist_id,
            Appointment.start_time.is_not(None),
        )
        .order_by(Appointment.start_time.asc())
    )
    rows = (await db.execute(q)).all()
    return [_event(appt, patient.full_name, paciente=patient.full_name) for appt, patient in rows]


async def patient_calendar(db: AsyncSession, patient_id: int) -> List[CalendarEvent]:
    q = (
        select(Appointment, Psychologist)
        .join(Psychologist, Appointment.psychologist_id == Psychologist.id)
        .where(
            Appointment.patient_id == patient_id,
            Appointment.start_time.is_not(None),
        )
        .order_by(Appointment.start_time.asc())
    )
    rows = (await db.execute(q)).all()
    return [_event(appt, psy.full_name, psicologo=psy.full_name) for appt, psy in rows]


async def next_appointment(
    db: AsyncSession, patient_id: int, now: Optional[datetime] = None
) -> Optional[NextAppointment]:
    now = now or datetime.now()
    q = (
        select(Appointment, Psychologist, Specialty.name)
        .join(Psychologist, Appointment.psychologist_id == Psychologist.id)
        .outerjoin(Specialty, Psychologist.specialty_id == Specialty.id)
        .where(
            Appointment.patient_id == patient_id,
            Appointment.start_time >= now,
        )
        .order_by(Appointment.start_time.asc())
        .limit(1)
    )
    row = (await db.execute(q)).first()
    if row is None:
        return None
    appt, psy, specialty_name = row
    return NextAppointment(
        id_cita=appt.id,
        fecha_cita=appt.start_time,
        especialidad=specialty_name,
        estado=appt.status,
        duracion=appt.duration_minutes,
        psicologo=psy.full_name,
    )


async def patient_roster(db: AsyncSession, psychologist_id: int) -> List[RosterEntry]:
    """
    Pacientes que alguna vez tuvieron cita con el psicólogo, con la fecha de la
    última nota clínica y de la última cita (subconsultas correlacionadas).
    """
    last_session = (
        select(func.max(ClinicalNote.session_date))
        .where(
            ClinicalNote.patient_id == Patient.id,
            ClinicalNote.psychologist_id == psychologist_id,
        )
        .correlate(Patient)
        .scalar_subquery()
    )
    last_appointment = (
        select(func.max(Appointment.start_time))
        .where(
            Appointment.patient_id == Patient.id,
            Appointment.psychologist_id == psychologist_id,
        )
        .correlate(Patient)
        .scalar_subquery()
    )
    seen_by_psychologist = select(Appointment.patient_id).where(
        Appointment.psychologist_id == psychologist_id
    )
    q = (
        select(Patient, last_session.label("last_session"), last_appointment.label("last_appointment"))
        .where(Patient.id.in_(seen_by_psychologist))
        .order_by(Patient.first_name, Patient.last_name)
    )
    rows = (await db.execute(q)).all()
    return [
        RosterEntry(
            id_paciente=p.id,
            nombre=p.first_name,
            apellido=p.last_name,
            nombre_completo=p.full_name,
            telefono=p.phone,
            edad=p.age,
            fecha_registro=p.registered_at,
            ultima_sesion=last_sess,
            ultima_cita=last_appt,
        )
        for p, last_sess, last_appt in rows
    ]


async def patient_appointments(db: AsyncSession, patient_id: int) -> List[AppointmentSummary]:
    q = (
        select(Appointment, Psychologist, Specialty.name)
        .join(Psychologist, Appointment.psychologist_id == Psychologist.id)
        .outerjoin(Specialty, Psychologist.specialty_id == Specialty.id)
        .where(Appointment.patient_id == patient_id)
        .order_by(Appointment.start_time.asc(), Appointment.id.asc())
    )
    rows = (await db.execute(q)).all()
    return [
        AppointmentSummary(
            id_cita=appt.id,
            fecha=appt.start_time.date() if appt.start_time else None,
            hora=appt.start_time.strftime("%H:%M") if appt.start_time else None,
            tipo=specialty_name,
            psicologo=psy.full_name,
            estado=appt.status,
        )
        for appt, psy, specialty_name in rows
    ]


async def psychologist_appointments(db: AsyncSession, psychologist_id: int) -> List[PsychologistAppointment]:
    q = (
        select(Appointment, Patient, User.email)
        .join(Patient, Appointment.patient_id == Patient.id)
        .outerjoin(User, Patient.user_id == User.id)
        .where(Appointment.psychologist_id == psychologist_id)
        .order_by(Appointment.start_time.asc(), Appointment.id.asc())
    )
    rows = (await db.execute(q)).all()
    return [
        PsychologistAppointment(
            id_cita=appt.id,
            id_paciente=patient.id,
            fecha_cita=appt.start_time,
            motivo=appt.reason,
            estado=appt.status,
            duracion=appt.duration_minutes,
            paciente=patient.full_name,
            telefono=patient.phone,
            correo=email,
        )
        for appt, patient, email in rows
    ]


async def psychologists_by_specialty(db: AsyncSession, specialty_id: int) -> List[PsychologistOption]:
    q = (
        select(Psychologist)
        .where(Psychologist.specialty_id == specialty_id)
        .order_by(Psychologist.first_name, Psychologist.last_name)
    )
    psychologists = (await db.execute(q)).scalars().all()
    return [PsychologistOption(id=p.id, nombre=p.full_name) for p in psychologists]


async def list_specialties(db: AsyncSession) -> List[SpecialtyOut]:
    rows = (await db.execute(select(Specialty).order_by(Specialty.name))).scalars().all()
    return [SpecialtyOut(id=s.id, nombre=s.name) for s in rows]
