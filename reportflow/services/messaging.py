# reportflow/services/messaging.py
import re
from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog

from reportflow.core.config import settings

logger = structlog.get_logger("reportflow.messaging")

JID_SUFFIX = "@s.whatsapp.net"


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None


class MessageSender(Protocol):
    async def send(self, phone: str, body: str) -> SendResult:
        ...


def normalize_phone(phone: str, country_code: str | None = None) -> str:
    """
    Canonical international form, digits only: ``0812...`` -> ``62812...``.
    """
    code = country_code or settings.PHONE_COUNTRY_CODE
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        return ""
    if digits.startswith("0"):
        digits = code + digits[1:]
    if not digits.startswith(code):
        digits = code + digits
    return digits


class HttpMessageSender:
    """
    Sends text messages through the WhatsApp HTTP gateway with Basic auth.
    Never raises: transport problems come back as a failed SendResult.
    """

    def __init__(
        self,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.MESSAGING_API_URL
        self.auth = httpx.BasicAuth(
            settings.MESSAGING_USERNAME if username is None else username,
            settings.MESSAGING_PASSWORD if password is None else password,
        )
        self.timeout = settings.MESSAGING_TIMEOUT_SECONDS if timeout is None else timeout
        self.transport = transport

    async def send(self, phone: str, body: str) -> SendResult:
        payload = {
            "phone": f"{phone}{JID_SUFFIX}",
            "message": body,
            "is_forwarded": False,
            "duration": 7200,
        }
        async with httpx.AsyncClient(auth=self.auth, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.url, json=payload)
            except httpx.TimeoutException:
                logger.warning("message_send_timeout", phone=phone, timeout=self.timeout)
                return SendResult(False, f"Request timeout after {self.timeout:g}s")
            except httpx.RequestError as exc:
                logger.warning("message_send_transport_error", phone=phone, error=str(exc))
                return SendResult(False, str(exc) or exc.__class__.__name__)

        if response.status_code == 401:
            return SendResult(False, "Authentication failed. Check username and password.")
        if response.is_error:
            logger.warning("message_send_rejected", phone=phone, status=response.status_code, body=response.text[:200])
            return SendResult(False, f"Messaging API error: {response.status_code}")

        logger.info("message_sent", phone=phone)
        return SendResult(True)


class DisabledMessageSender:
    async def send(self, phone: str, body: str) -> SendResult:
        return SendResult(False, "Messaging is disabled")


def get_message_sender() -> MessageSender:
    if not settings.MESSAGING_ENABLED:
        return DisabledMessageSender()
    return HttpMessageSender()
