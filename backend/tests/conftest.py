import asyncio
import os

# antes de importar clinic: sin Kafka y con clave fija
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["KAFKA_ENABLED"] = "false"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clinic.db import Base, get_db
from clinic.main import app
from clinic.models import Patient, Psychologist, Specialty, User
from clinic.services.auth_service import hash_password

TEST_DB_URL = "sqlite+aiosqlite://"

PASSWORDS = {
    "ana@example.com": "secreto-ana",
    "luis@example.com": "secreto-luis",
    "marta@example.com": "secreto-marta",
    "carlos@example.com": "secreto-carlos",
    "admin@example.com": "secreto-admin",
}


def make_engine():
    return create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


async def create_schema(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_database(session_factory) -> dict:
    """Dos pacientes, dos psicólogos (uno por especialidad) y un admin."""
    async with session_factory() as db:
        individual = Specialty(name="Terapia individual")
        familiar = Specialty(name="Terapia familiar")
        db.add_all([individual, familiar])

        users = {
            email: User(email=email, password_hash=hash_password(pw), role="patient")
            for email, pw in PASSWORDS.items()
        }
        users["marta@example.com"].role = "psychologist"
        users["carlos@example.com"].role = "psychologist"
        users["admin@example.com"].role = "admin"
        db.add_all(users.values())
        await db.flush()

        ana = Patient(user_id=users["ana@example.com"].id, first_name="Ana", last_name="Torres", age=30, phone="600111222")
        luis = Patient(user_id=users["luis@example.com"].id, first_name="Luis", last_name="Gómez", age=41, phone="600333444")
        marta = Psychologist(user_id=users["marta@example.com"].id, specialty_id=individual.id, first_name="Marta", last_name="Ruiz")
        carlos = Psychologist(user_id=users["carlos@example.com"].id, specialty_id=familiar.id, first_name="Carlos", last_name="Díaz")
        db.add_all([ana, luis, marta, carlos])
        await db.commit()

        return {
            "specialty_individual": individual.id,
            "specialty_familiar": familiar.id,
            "ana_user": users["ana@example.com"].id,
            "luis_user": users["luis@example.com"].id,
            "marta_user": users["marta@example.com"].id,
            "carlos_user": users["carlos@example.com"].id,
            "admin_user": users["admin@example.com"].id,
            "ana": ana.id,
            "luis": luis.id,
            "marta": marta.id,
            "carlos": carlos.id,
        }


# --- API (TestClient, síncrono) ---
@pytest.fixture
def session_factory():
    engine = make_engine()
    asyncio.run(create_schema(engine))
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    asyncio.run(engine.dispose())


@pytest.fixture
def ids(session_factory):
    return asyncio.run(seed_database(session_factory))


@pytest.fixture
def client(session_factory, ids):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login_as(client: TestClient, email: str):
    """Inicia sesión; la cookie queda guardada en el cliente."""
    res = client.post("/login", json={"email": email, "password": PASSWORDS[email]})
    assert res.status_code == 200, res.text
    return res


# --- servicios (pytest-asyncio) ---
@pytest_asyncio.fixture
async def db_factory():
    engine = make_engine()
    await create_schema(engine)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(db_factory):
    return await seed_database(db_factory)


def book(client: TestClient, psychologist_id, fecha="2030-06-01", hora="10:00", **extra):
    return client.post(
        "/book",
        json={"fecha": fecha, "hora": hora, "id_psicologo": psychologist_id, **extra},
    )
