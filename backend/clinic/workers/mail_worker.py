# clinic/workers/mail_worker.py
import asyncio
import json
import logging
import smtplib

from aiokafka import AIOKafkaConsumer  # type: ignore

from clinic.config import KAFKA_BOOTSTRAP, KAFKA_GROUP_MAIL_WORKERS, KAFKA_TOPIC_CONTACT, LOG_LEVEL
from clinic.services.mail_service import send_contact_email

logger = logging.getLogger("clinic.mail_worker")

REQUIRED_FIELDS = ("name", "email", "phone", "message")


def decode_value(raw: bytes | None):
    """JSON del mensaje; None si no se puede leer."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Undecodable message value (%d bytes)", len(raw))
        return None


async def handle_message(payload) -> bool:
    """Entrega un mensaje del formulario de contacto. True si se envió."""
    if not isinstance(payload, dict):
        # se descarta; el offset se confirma igual
        logger.warning("Discarding contact message: expected object, got %s", type(payload).__name__)
        return False

    missing = [
        f for f in REQUIRED_FIELDS
        if not isinstance(payload.get(f), str) or not payload[f].strip()
    ]
    if missing:
        logger.warning("Discarding contact message without %s", ", ".join(missing))
        return False

    try:
        # smtplib es bloqueante
        await asyncio.to_thread(send_contact_email, payload)
    except (smtplib.SMTPException, OSError):
        # sin reintentos: el offset se confirma igual
        logger.exception("Contact email delivery failed for %s", payload.get("email"))
        return False
    return True


async def main():
    logger.info(
        "mail_worker starting: bootstrap=%s topic=%s group_id=%s",
        KAFKA_BOOTSTRAP, KAFKA_TOPIC_CONTACT, KAFKA_GROUP_MAIL_WORKERS,
    )
    consumer = AIOKafkaConsumer(
        KAFKA_TOPIC_CONTACT,
        bootstrap_servers=KAFKA_BOOTSTRAP,
        group_id=KAFKA_GROUP_MAIL_WORKERS,
        value_deserializer=decode_value,
        key_deserializer=lambda v: v.decode() if v is not None else None,
        enable_auto_commit=False,
        auto_offset_reset="earliest",
    )
    await consumer.start()
    try:
        while True:
            batch = await consumer.getmany(timeout_ms=1000)
            for tp, messages in batch.items():
                for msg in messages:
                    logger.info("Message received: offset=%s key=%s", msg.offset, msg.key)
                    await handle_message(msg.value)
                    await consumer.commit()
    finally:
        await consumer.stop()


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
