# clinic/kafka.py
import json
import logging
import uuid

from aiokafka import AIOKafkaProducer

from clinic.config import KAFKA_BOOTSTRAP, KAFKA_ENABLED, KAFKA_TOPIC_CONTACT
from clinic.errors import ServiceUnavailable

logger = logging.getLogger(__name__)

producer: AIOKafkaProducer | None = None


async def start_kafka():
    global producer
    if not KAFKA_ENABLED:
        logger.info("Kafka disabled; contact form will answer 503")
        return
    producer = AIOKafkaProducer(
        bootstrap_servers=KAFKA_BOOTSTRAP,
        value_serializer=lambda v: json.dumps(v).encode(),
        key_serializer=lambda v: str(v).encode(),
        linger_ms=5,
        acks="all",
        enable_idempotence=True,
    )
    await producer.start()
    logger.info("Kafka producer started (%s)", KAFKA_BOOTSTRAP)


async def stop_kafka():
    global producer
    if producer:
        await producer.stop()
        producer = None


async def publish_contact_message(payload: dict) -> str:
    """Encola un mensaje de contacto; devuelve la clave usada."""
    if not producer:
        raise ServiceUnavailable("El servicio de correo no está disponible. Inténtalo más tarde.")
    key = uuid.uuid4().hex
    await producer.send_and_wait(KAFKA_TOPIC_CONTACT, key=key, value=payload)
    logger.info("Contact message %s published to %s", key, KAFKA_TOPIC_CONTACT)
    return key
