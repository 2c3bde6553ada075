"""
Transactional email delivery through the Resend HTTP API.
"""

from dataclasses import dataclass

import httpx
from django.conf import settings
from django.template.loader import render_to_string

from apps.core.exceptions import ExternalServiceError
from apps.core.logging import get_logger

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
SEND_TIMEOUT = 10


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str


def render_email(template: str, to: str, subject: str, context: dict) -> EmailMessage:
    """Render ``notifications/<template>.html`` and ``.txt`` into a message."""
    return EmailMessage(
        to=to,
        subject=subject,
        html=render_to_string(f"notifications/{template}.html", context),
        text=render_to_string(f"notifications/{template}.txt", context),
    )


def send_email(to: str, subject: str, html: str, text: str, client: httpx.Client | None = None) -> str:
    """
    Send one email. Returns the provider message id.

    Raises:
        ExternalServiceError: If the API key is missing or the provider rejects the message
    """
    if not settings.RESEND_API_KEY:
        raise ExternalServiceError("Email provider is not configured")

    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
        "text": text,
    }
    headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}

    try:
        if client is not None:
            response = client.post(RESEND_API_URL, json=payload, headers=headers)
        else:
            with httpx.Client(timeout=SEND_TIMEOUT) as http:
                response = http.post(RESEND_API_URL, json=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("email_send_failed", to=to, subject=subject, error=str(e))
        raise ExternalServiceError("Email delivery failed") from e

    message_id = response.json().get("id", "")
    logger.info("email_sent", to=to, subject=subject, message_id=message_id)
    return message_id


def send_batch(messages: list[EmailMessage], client: httpx.Client | None = None) -> list[str]:
    """
    Attempt every message, then fail if any of them failed.

    Raises:
        ExternalServiceError: If at least one message could not be sent
    """
    sent: list[str] = []
    failures = 0
    for message in messages:
        try:
            sent.append(send_email(message.to, message.subject, message.html, message.text, client=client))
        except ExternalServiceError:
            failures += 1
    if failures:
        raise ExternalServiceError(f"{failures} of {len(messages)} emails failed to send")
    return sent
