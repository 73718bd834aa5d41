# backend/clinic/main.py
from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinic.config import CORS_ORIGINS, LOG_LEVEL
from clinic.errors import register_error_handlers
from clinic.kafka import start_kafka, stop_kafka
from clinic.api.routers import admin, appointments, auth, contact, notes, patient, psychologists

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # arranque: productor Kafka del formulario de contacto
    await start_kafka()
    try:
        yield
    finally:
        await stop_kafka()


app = FastAPI(
    title="Clinic Booking API",
    lifespan=lifespan,
)

# CORS primero, con credenciales para la cookie de sesión
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router)
app.include_router(appointments.router)
app.include_router(psychologists.router)
app.include_router(patient.router)
app.include_router(notes.router)
app.include_router(contact.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"ok": True}
