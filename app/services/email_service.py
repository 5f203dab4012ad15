# app/services/email_service.py
from pathlib import Path
from typing import List, Optional
import logging

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

STATUS_SUBJECTS = {
    "verified": "AFP Personnel - Document Verified",
    "rejected": "AFP Personnel - Document Rejected",
    "pending": "AFP Personnel - Document Returned to Pending",
}


def _connection(port: int, use_ssl: bool) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.EMAIL_HOST_USER,
        MAIL_PASSWORD=settings.EMAIL_HOST_PASSWORD,
        MAIL_FROM=settings.EMAIL_FROM,
        MAIL_FROM_NAME="AFP Personnel Management",
        MAIL_PORT=port,
        MAIL_SERVER=settings.EMAIL_HOST,
        MAIL_STARTTLS=not use_ssl,
        MAIL_SSL_TLS=use_ssl,
        USE_CREDENTIALS=bool(settings.EMAIL_HOST_USER),
        VALIDATE_CERTS=True,
    )


class EmailService:
    """
    Notification mailer kept on ``app.state.mailer``.

    Sends over STARTTLS on the configured port first and retries over SSL on
    465. When no ``EMAIL_HOST`` is configured nothing is sent and the skip is
    logged.
    """

    def __init__(self, host: Optional[str] = None, port: Optional[int] = None):
        self.host = settings.EMAIL_HOST if host is None else host
        self.port = port or settings.EMAIL_PORT

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    # 🔁 Central retry wrapper
    async def send(self, subject: str, recipients: List[str], html: str) -> bool:
        recipients = [r for r in recipients if r]
        if not recipients:
            logger.info(f"No recipients for '{subject}', skipping")
            return False
        if not self.enabled:
            logger.info(f"📭 EMAIL_HOST not configured; skipped '{subject}' to {recipients}")
            return False

        message = MessageSchema(subject=subject, recipients=recipients, body=html, subtype="html")
        try:
            await FastMail(_connection(self.port, use_ssl=False)).send_message(message)
            logger.info(f"{subject} email sent to {recipients} via port {self.port}")
            return True
        except Exception as e:
            logger.warning(f"Failed to send {subject} via port {self.port}: {str(e)}")
            try:
                await FastMail(_connection(465, use_ssl=True)).send_message(message)
                logger.info(f"{subject} email sent to {recipients} via port 465")
                return True
            except Exception as e2:
                logger.error(f"Failed to send {subject} email via both ports: {str(e2)}")
                return False

    async def send_document_status(
        self,
        to_email: str,
        name: str,
        document_name: str,
        status: str,
        comments: Optional[str] = None,
    ) -> bool:
        html = env.get_template("document_status.html").render(
            name=name,
            document_name=document_name,
            status=status,
            comments=comments,
            link=f"{settings.BASE_URL}/documents",
        )
        subject = STATUS_SUBJECTS.get(status, "AFP Personnel - Document Update")
        return await self.send(subject, [to_email], html)

    async def send_rids_review(self, to_email: str, name: str, approved: bool, reason: Optional[str] = None) -> bool:
        html = env.get_template("rids_review.html").render(
            name=name,
            approved=approved,
            reason=reason,
            link=f"{settings.BASE_URL}/rids",
        )
        subject = "AFP Personnel - RIDS Approved" if approved else "AFP Personnel - RIDS Returned for Revision"
        return await self.send(subject, [to_email], html)
