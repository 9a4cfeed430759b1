"""
Alert Dispatcher.

Alert lifecycle:
    PENDING --first provider succeeds--> DELIVERED (sent_at stamped)
    PENDING --every provider fails-----> FAILED

Providers for a channel are tried in order and the first success stops
the cascade. There is no queue and no backoff; a FAILED alert is only
ever re-sent as a new alert (see AlertDispatcher.retry).
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Sequence

import httpx
import structlog

from agentledger.alerting.messages import AlertMessage
from agentledger.alerting.providers import (
    DeliveryProvider,
    DeliveryResult,
    LogOnlyProvider,
    NotionProvider,
    SendGridEmailProvider,
    SlackWebhookProvider,
    SmtpEmailProvider,
)
from agentledger.config import Settings
from agentledger.db.compat import utcnow
from agentledger.db.repositories.base import FraudRepository
from agentledger.exceptions import InvalidStateTransition, NotFound
from agentledger.schemas.common import AlertChannel, AlertStatus
from agentledger.schemas.records import AlertRecord, UserRecord

logger = structlog.get_logger(__name__)

Cascades = dict[AlertChannel, Sequence[DeliveryProvider]]


def build_cascades(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Cascades:
    """Provider order per channel, from whatever is configured."""
    http = {"timeout": settings.alert_http_timeout_seconds, "transport": transport}

    slack: list[DeliveryProvider] = []
    if settings.slack_webhook_url:
        slack.append(SlackWebhookProvider(settings.slack_webhook_url, **http))

    email: list[DeliveryProvider] = []
    if settings.sendgrid_api_key:
        email.append(
            SendGridEmailProvider(
                settings.sendgrid_api_key,
                from_email=settings.alert_from_email,
                default_recipient=settings.alert_to_email,
                **http,
            )
        )
    if settings.alert_smtp_host:
        email.append(
            SmtpEmailProvider(
                host=settings.alert_smtp_host,
                port=settings.alert_smtp_port,
                username=settings.alert_smtp_username,
                password=settings.alert_smtp_password,
                from_email=settings.alert_from_email,
                default_recipient=settings.alert_to_email,
                start_tls=settings.alert_smtp_start_tls,
                timeout=settings.alert_http_timeout_seconds,
            )
        )

    notion: list[DeliveryProvider] = []
    if settings.notion_api_key and settings.notion_database_id:
        notion.append(NotionProvider(settings.notion_api_key, settings.notion_database_id, **http))

    cascades: Cascades = {
        AlertChannel.SLACK: slack,
        AlertChannel.EMAIL: email,
        AlertChannel.NOTION: notion,
    }
    if settings.alert_log_fallback:
        fallback = LogOnlyProvider()
        cascades = {channel: [*providers, fallback] for channel, providers in cascades.items()}

    logger.info(
        "alert_cascades_built",
        **{str(channel).lower(): [p.name for p in providers] for channel, providers in cascades.items()},
    )
    return cascades


class AlertDispatcher:
    """Creates alerts and drives each one to a terminal status."""

    def __init__(self, repository: FraudRepository, cascades: Cascades):
        self.repository = repository
        self.cascades = cascades

    async def dispatch(
        self,
        user: UserRecord,
        channel: AlertChannel,
        message: str,
        report_id: Optional[str] = None,
        type: str = "FRAUD_DETECTED",
    ) -> AlertRecord:
        report = None
        transaction = None
        if report_id is not None:
            report = await self.repository.get_report(report_id)
            if report is not None:
                transaction = await self.repository.get_transaction(report.transaction_id)
            # Reports on other users' transactions are indistinguishable from missing ones.
            if transaction is None or transaction.user_id != user.id:
                raise NotFound("Report not found")

        alert = await self.repository.add_alert(
            user_id=user.id,
            channel=channel,
            message=message,
            report_id=report_id,
            type=type,
        )
        outgoing = AlertMessage(
            alert_id=alert.id,
            channel=channel,
            type=type,
            text=message,
            recipient=user.email,
            report=report,
            transaction=transaction,
        )

        result = await self.deliver(outgoing)
        if result is not None:
            return await self.repository.finalize_alert(
                alert.id, AlertStatus.DELIVERED, sent_at=utcnow()
            )
        return await self.repository.finalize_alert(alert.id, AlertStatus.FAILED)

    async def deliver(self, message: AlertMessage) -> Optional[DeliveryResult]:
        """Walk the channel's cascade; the winning result, or None if all failed."""
        providers = self.cascades.get(message.channel, ())
        attempts: list[str] = []

        for provider in providers:
            try:
                result = await provider.send(message)
            except Exception as e:
                logger.error(
                    "alert_provider_error",
                    provider=provider.name,
                    alert_id=message.alert_id,
                    error=str(e),
                )
                result = DeliveryResult(provider.name, False, str(e))

            if result.success:
                logger.info(
                    "alert_dispatched",
                    alert_id=message.alert_id,
                    channel=message.channel,
                    provider=result.provider,
                    attempts=len(attempts) + 1,
                )
                return result
            attempts.append(f"{result.provider}: {result.detail}")

        logger.warning(
            "alert_dispatch_failed",
            alert_id=message.alert_id,
            channel=message.channel,
            attempts=attempts or ["no providers configured"],
        )
        return None

    async def retry(self, user: UserRecord, alert_id: str) -> AlertRecord:
        """Re-send a FAILED alert as a brand new alert."""
        original = await self.repository.get_alert(alert_id)
        if original is None or original.user_id != user.id:
            raise NotFound("Alert not found")
        if original.status is not AlertStatus.FAILED:
            raise InvalidStateTransition(
                f"Only FAILED alerts can be retried (alert is {original.status})"
            )
        logger.info("alert_retry", original_alert_id=alert_id)
        return await self.dispatch(
            user,
            channel=original.channel,
            message=original.message,
            report_id=original.report_id,
            type=original.type,
        )


class TestAlertSimulator:
    """Simulated delivery for the "send test alert" button.

    Waits `delay_seconds` then succeeds with probability `success_rate`.
    Both the random source and the sleep are injectable.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        repository: FraudRepository,
        rng: Optional[random.Random] = None,
        delay_seconds: float = 1.0,
        success_rate: float = 0.9,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.repository = repository
        self.rng = rng or random.Random()
        self.delay_seconds = delay_seconds
        self.success_rate = success_rate
        self.sleep = sleep

    async def send(
        self,
        user: UserRecord,
        channel: AlertChannel,
        message: str,
        type: Optional[str] = None,
    ) -> tuple[bool, AlertRecord]:
        alert = await self.repository.add_alert(
            user_id=user.id,
            channel=channel,
            message=message,
            type=type or "TEST",
        )
        await self.sleep(self.delay_seconds)

        success = self.rng.random() < self.success_rate
        if success:
            alert = await self.repository.finalize_alert(
                alert.id, AlertStatus.DELIVERED, sent_at=utcnow()
            )
        else:
            alert = await self.repository.finalize_alert(alert.id, AlertStatus.FAILED)

        logger.info("test_alert_sent", alert_id=alert.id, channel=channel, success=success)
        return success, alert
