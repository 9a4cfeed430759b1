"""
Alert Delivery Providers.

Each provider handles one way of getting a message out:
- SlackWebhookProvider: POST to a Slack incoming webhook
- SendGridEmailProvider: SendGrid v3 mail/send over HTTP
- SmtpEmailProvider: plain-text email via aiosmtplib
- NotionProvider: create a page in a Notion database
- LogOnlyProvider: log the alert and report success

Providers report every outcome as a DeliveryResult; transport errors are
caught here and turned into failures.
"""

import ipaddress
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Optional, Protocol
from urllib.parse import urlparse

import aiosmtplib
import httpx
import structlog

from agentledger.alerting.messages import AlertMessage

logger = structlog.get_logger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"
NOTION_API_URL = "https://api.notion.com/v1/pages"
NOTION_VERSION = "2022-06-28"


@dataclass(frozen=True)
class DeliveryResult:
    provider: str
    success: bool
    detail: str = ""


class DeliveryProvider(Protocol):
    name: str

    async def send(self, message: AlertMessage) -> DeliveryResult: ...


def validate_webhook_url(url: str) -> tuple[bool, str]:
    """Reject webhook targets that would let a config value reach internal hosts."""
    if not url:
        return False, "URL is empty"
    try:
        parsed = urlparse(url)
    except ValueError:
        return False, "Malformed URL"
    if parsed.scheme not in ("https", "http"):
        return False, f"Invalid scheme: {parsed.scheme}"
    if parsed.username or parsed.password:
        return False, "URLs with embedded credentials are not allowed"
    hostname = parsed.hostname
    if not hostname:
        return False, "No hostname in URL"
    if hostname.lower() in {"localhost", "0.0.0.0"}:
        return False, f"Localhost ({hostname}) is not allowed"
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return True, "OK"
    if ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved:
        return False, f"Private/reserved IP address: {hostname}"
    return True, "OK"


class _HTTPDeliveryProvider:
    name = "http"

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def _post(self, message: AlertMessage, url: str, payload: dict, headers: dict) -> DeliveryResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "alert_delivery_error",
                provider=self.name,
                alert_id=message.alert_id,
                error=str(e) or type(e).__name__,
            )
            return DeliveryResult(self.name, False, str(e) or type(e).__name__)

        if response.status_code < 400:
            logger.info(
                "alert_delivered",
                provider=self.name,
                alert_id=message.alert_id,
                status=response.status_code,
            )
            return DeliveryResult(self.name, True, f"HTTP {response.status_code}")

        logger.warning(
            "alert_delivery_failed",
            provider=self.name,
            alert_id=message.alert_id,
            status=response.status_code,
        )
        return DeliveryResult(self.name, False, f"HTTP {response.status_code}")


class SlackWebhookProvider(_HTTPDeliveryProvider):
    name = "slack_webhook"

    def __init__(self, webhook_url: str, **kwargs):
        super().__init__(**kwargs)
        self.webhook_url = webhook_url

    async def send(self, message: AlertMessage) -> DeliveryResult:
        is_valid, reason = validate_webhook_url(self.webhook_url)
        if not is_valid:
            logger.warning("webhook_url_blocked", provider=self.name, reason=reason)
            return DeliveryResult(self.name, False, f"Blocked: {reason}")
        return await self._post(
            message,
            self.webhook_url,
            message.slack_payload(),
            {"Content-Type": "application/json"},
        )


class SendGridEmailProvider(_HTTPDeliveryProvider):
    name = "sendgrid"

    def __init__(self, api_key: str, from_email: str, default_recipient: str = "", **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.from_email = from_email
        self.default_recipient = default_recipient

    async def send(self, message: AlertMessage) -> DeliveryResult:
        recipient = message.recipient or self.default_recipient
        if not recipient:
            return DeliveryResult(self.name, False, "No recipient email")
        payload = {
            "personalizations": [{"to": [{"email": recipient}]}],
            "from": {"email": self.from_email, "name": "AgentLedger AI"},
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.plain_body()}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        return await self._post(message, SENDGRID_API_URL, payload, headers)


class NotionProvider(_HTTPDeliveryProvider):
    name = "notion"

    def __init__(self, api_key: str, database_id: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.database_id = database_id

    async def send(self, message: AlertMessage) -> DeliveryResult:
        payload = {
            "parent": {"database_id": self.database_id},
            "properties": {
                "Name": {"title": [{"text": {"content": message.subject[:200]}}]},
            },
            "children": [
                {
                    "object": "block",
                    "type": "paragraph",
                    "paragraph": {
                        "rich_text": [{"type": "text", "text": {"content": message.plain_body()[:2000]}}],
                    },
                }
            ],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }
        return await self._post(message, NOTION_API_URL, payload, headers)


class SmtpEmailProvider:
    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_email: str = "alerts@agentledger.ai",
        default_recipient: str = "",
        start_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.default_recipient = default_recipient
        self.start_tls = start_tls
        self.timeout = timeout

    async def send(self, message: AlertMessage) -> DeliveryResult:
        recipient = message.recipient or self.default_recipient
        if not recipient:
            return DeliveryResult(self.name, False, "No recipient email")

        msg = MIMEText(message.plain_body(), _charset="utf-8")
        msg["Subject"] = message.subject
        msg["From"] = self.from_email
        msg["To"] = recipient

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("email_dispatch_error", alert_id=message.alert_id, error=str(e))
            return DeliveryResult(self.name, False, str(e))

        logger.info("email_alert_sent", alert_id=message.alert_id, to=recipient)
        return DeliveryResult(self.name, True, f"Sent to {recipient}")


class LogOnlyProvider:
    """Last resort: record the alert in the log and count it as delivered."""

    name = "log"

    async def send(self, message: AlertMessage) -> DeliveryResult:
        logger.info(
            "alert_logged",
            alert_id=message.alert_id,
            channel=message.channel,
            type=message.type,
            text=message.text[:500],
        )
        return DeliveryResult(self.name, True, "Logged (no external provider)")
