"""
Alert message rendering.

One AlertMessage per delivery attempt; each provider renders the bits it
needs (Slack text, email subject/body, Notion page properties).
"""

from dataclasses import dataclass
from typing import Optional

from agentledger.schemas.common import AlertChannel, RiskLevel
from agentledger.schemas.records import ReportRecord, TransactionRecord

BOT_NAME = "AgentLedger AI"

RISK_ICONS = {
    RiskLevel.CRITICAL: "🔴",
    RiskLevel.HIGH: "🟠",
    RiskLevel.MEDIUM: "🟡",
    RiskLevel.LOW: "🟢",
}


@dataclass(frozen=True)
class AlertMessage:
    alert_id: str
    channel: AlertChannel
    type: str
    text: str
    recipient: Optional[str] = None
    report: Optional[ReportRecord] = None
    transaction: Optional[TransactionRecord] = None

    @property
    def risk_level(self) -> Optional[RiskLevel]:
        return self.transaction.risk_level if self.transaction else None

    @property
    def subject(self) -> str:
        if self.risk_level is not None:
            return f"🚨 Fraud Alert - {self.risk_level} Risk Transaction"
        return f"🚨 {BOT_NAME} Alert: {self.type}"

    def slack_payload(self) -> dict:
        lines = [f"🚨 {BOT_NAME} Alert", self.text]
        if self.report is not None:
            icon = RISK_ICONS.get(self.risk_level, "⚠️")
            lines.append(f"{icon} *{self.report.title}* (score {self.report.risk_score}/100)")
        return {
            "text": "\n".join(lines),
            "username": BOT_NAME,
            "icon_emoji": ":shield:",
        }

    def plain_body(self) -> str:
        body = (
            f"{BOT_NAME} — {self.type}\n"
            f"{'=' * 50}\n\n"
            f"{self.text}\n"
        )
        if self.transaction is not None:
            txn = self.transaction
            body += (
                f"\n{'─' * 50}\n"
                f"Risk level: {txn.risk_level}\n"
                f"Amount: ${txn.amount:,.2f}\n"
                f"Description: {txn.description}\n"
                f"Transaction ID: {txn.id}\n"
            )
        if self.report is not None:
            body += (
                f"Risk score: {self.report.risk_score}/100\n"
                f"\n{self.report.explanation}\n"
            )
        body += f"\n{'─' * 50}\nAlert ID: {self.alert_id}\n"
        return body
