from fastapi import APIRouter, status

import clinic.kafka as kafka
from clinic.schemas import MessageResponse, ContactRequest

router = APIRouter(tags=["contact"])


@router.post("/contact", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def send_contact(req: ContactRequest):
    """El envío real lo hace clinic.workers.mail_worker."""
    await kafka.publish_contact_message(req.model_dump())
    return MessageResponse(message="Mensaje enviado correctamente.")
