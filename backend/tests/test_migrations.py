import asyncio
from datetime import date, time
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clinic.models import Patient, Psychologist, Specialty, User
from clinic.services import appointment_service
from clinic.services.auth_service import RequestContext, hash_password

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def upgrade_to_head(db_url: str, monkeypatch):
    monkeypatch.setenv("ALEMBIC_DB_URL", db_url)
    # sin alembic.ini: no se toca la configuración de logging
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    command.upgrade(config, "head")


async def book_on_fresh_database(db_url: str):
    engine = create_async_engine(db_url)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        async with factory() as db:
            specialties = (await db.execute(select(func.count(Specialty.id)))).scalar_one()
            specialty_id = (await db.execute(select(Specialty.id).limit(1))).scalar_one()

            patient_user = User(email="paciente@example.com", password_hash=hash_password("secreto"), role="patient")
            psy_user = User(email="psico@example.com", password_hash=hash_password("secreto"), role="psychologist")
            db.add_all([patient_user, psy_user])
            await db.flush()
            db.add(Patient(user_id=patient_user.id, first_name="Ana", last_name="Torres"))
            psychologist = Psychologist(user_id=psy_user.id, specialty_id=specialty_id, first_name="Marta", last_name="Ruiz")
            db.add(psychologist)
            await db.commit()

            ctx = RequestContext(user_id=patient_user.id, email=patient_user.email, role="patient")
            appointment_id = await appointment_service.book(
                db, ctx, psychologist.id, date(2030, 6, 1), time(10, 0)
            )
            return specialties, appointment_id
    finally:
        await engine.dispose()


def test_upgrade_head_on_sqlite_then_book(tmp_path, monkeypatch):
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}"
    upgrade_to_head(db_url, monkeypatch)

    specialties, appointment_id = asyncio.run(book_on_fresh_database(db_url))
    assert specialties == 3
    assert appointment_id == 1
