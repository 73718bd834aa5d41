"""Correo del formulario de contacto (lo usa el worker, no la API)."""
import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr

from clinic.config import (
    CONTACT_RECIPIENT, MAIL_FROM, SMTP_HOST, SMTP_PASSWORD, SMTP_PORT, SMTP_USE_TLS, SMTP_USERNAME,
)

logger = logging.getLogger(__name__)

CONTACT_SUBJECT = "Nuevo mensaje del formulario de contacto"


def build_contact_email(name: str, email: str, phone: str, message: str) -> str:
    """Cuerpo HTML; todo lo que escribe el visitante se escapa."""
    body = html.escape(message).replace("\n", "<br>")
    return (
        "<h2>Nuevo mensaje de contacto</h2>"
        f"<p><strong>Nombre:</strong> {html.escape(name)}</p>"
        f"<p><strong>Correo:</strong> {html.escape(email)}</p>"
        f"<p><strong>Teléfono:</strong> {html.escape(phone)}</p>"
        f"<p><strong>Mensaje:</strong><br>{body}</p>"
    )


def send_contact_email(payload: dict, to: str = CONTACT_RECIPIENT) -> None:
    html_content = build_contact_email(
        payload["name"], payload["email"], payload["phone"], payload["message"]
    )

    msg = MIMEMultipart("alternative")
    msg["Subject"] = CONTACT_SUBJECT
    msg["From"] = MAIL_FROM
    msg["To"] = to
    msg["Reply-To"] = payload["email"]
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    if SMTP_PORT == 465:
        connection = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=ssl.create_default_context(), timeout=30)
    else:
        connection = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)

    # el socket se cierra aunque falle starttls, login o sendmail
    with connection as server:
        if SMTP_PORT != 465 and SMTP_USE_TLS:
            server.starttls(context=ssl.create_default_context())
        if SMTP_USERNAME:
            server.login(SMTP_USERNAME, SMTP_PASSWORD or "")
        server.sendmail(parseaddr(MAIL_FROM)[1], [to], msg.as_string())
    logger.info("Contact email delivered to %s via %s", to, SMTP_HOST)
