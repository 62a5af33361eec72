"""Outbound notification channels.

- ``EmailNotifier``: Django's mail framework (``EMAIL_BACKEND``).
- ``WhatsAppNotifier``: posts to a WhatsApp HTTP API when
  ``WHATSAPP_API_URL`` is set; otherwise logs the click-to-chat link.

Both raise on delivery failure; ``NotificationDispatcher`` contains it.
"""

from __future__ import annotations

from typing import Optional

import httpx
import structlog
from django.conf import settings
from django.core.mail import send_mail

from modules.core.http import request_headers, send
from modules.notifications.messages import normalize_phone, whatsapp_link

logger = structlog.get_logger(__name__)


class NotificationError(Exception):
    """A channel could not deliver a message."""


class EmailNotifier:
    def __init__(self, from_email: Optional[str] = None) -> None:
        self._from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def send(self, to: str, subject: str, body: str) -> None:
        if not to:
            raise NotificationError("No recipient e-mail address.")
        send_mail(subject, body, self._from_email, [to], fail_silently=False)
        logger.info("notification.email_sent", to=to, subject=subject)


class WhatsAppNotifier:
    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_url = api_url if api_url is not None else settings.WHATSAPP_API_URL
        self._token = token if token is not None else settings.WHATSAPP_API_TOKEN
        self._transport = transport

    def send(self, phone: str, message: str) -> str:
        """Deliver *message* and return the click-to-chat link for it."""
        number = normalize_phone(phone)
        if not number:
            raise NotificationError("No recipient phone number.")
        link = whatsapp_link(number, message)

        if not self._api_url:
            logger.info("notification.whatsapp_link", phone=number, link=link)
            return link

        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        with httpx.Client(timeout=settings.HTTP_TIMEOUT_SECS, transport=self._transport) as client:
            try:
                resp = send(
                    client,
                    "POST",
                    self._api_url,
                    json={"phone": number, "message": message},
                    headers=request_headers(headers),
                )
            except httpx.RequestError as exc:
                raise NotificationError("WhatsApp API is unreachable.") from exc
        if resp.status_code >= 400:
            raise NotificationError(f"WhatsApp API answered HTTP {resp.status_code}.")

        logger.info("notification.whatsapp_sent", phone=number)
        return link
