"""
In-memory implementation of FraudRepository.

Used for local demos and tests. State lives in plain dicts on a single
event loop, so no locking is needed; nothing survives a restart.
"""

import uuid
from datetime import datetime
from typing import Iterable, Optional, Sequence

from agentledger.db.compat import utcnow
from agentledger.db.repositories.base import check_terminal, normalize_email
from agentledger.exceptions import Conflict, InvalidStateTransition, NotFound
from agentledger.schemas.common import AlertChannel, AlertStatus, RiskLevel, UserRole
from agentledger.schemas.records import (
    AlertRecord,
    ReportRecord,
    TransactionRecord,
    TransactionStats,
    UserRecord,
)


def _newest_first(records):
    return sorted(records, key=lambda r: r.created_at, reverse=True)


class InMemoryRepository:
    def __init__(self):
        self.users: dict[str, UserRecord] = {}
        self.transactions: dict[str, TransactionRecord] = {}
        self.reports: dict[str, ReportRecord] = {}
        self.alerts: dict[str, AlertRecord] = {}

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: Optional[str],
        role: UserRole = UserRole.COMPLIANCE,
        image: Optional[str] = None,
    ) -> UserRecord:
        email = normalize_email(email)
        if await self.get_user_by_email(email) is not None:
            raise Conflict("Email already registered")
        user = UserRecord(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            image=image,
            created_at=utcnow(),
        )
        self.users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        email = normalize_email(email)
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_users(self, user_ids: Iterable[str]) -> dict[str, UserRecord]:
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}

    # ── Transactions ──────────────────────────────────────────────────────

    async def add_transaction(
        self,
        user_id: str,
        amount: float,
        description: str,
        risk_level: RiskLevel,
        ip: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> TransactionRecord:
        txn = TransactionRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            amount=amount,
            description=description,
            ip=ip,
            risk_level=risk_level,
            is_fraudulent=risk_level.is_fraudulent,
            created_at=created_at or utcnow(),
        )
        self.transactions[txn.id] = txn
        return txn

    async def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        return self.transactions.get(transaction_id)

    async def list_transactions(
        self, user_id: Optional[str] = None, limit: int = 10
    ) -> Sequence[TransactionRecord]:
        rows = [
            t for t in self.transactions.values()
            if user_id is None or t.user_id == user_id
        ]
        return _newest_first(rows)[:limit]

    async def recent_transactions(
        self,
        since: datetime,
        limit: int,
        exclude_user_id: Optional[str] = None,
    ) -> Sequence[TransactionRecord]:
        rows = [
            t for t in self.transactions.values()
            if t.created_at >= since and t.user_id != exclude_user_id
        ]
        return _newest_first(rows)[:limit]

    async def transaction_stats(self, user_id: str, since: datetime) -> TransactionStats:
        rows = [
            t for t in self.transactions.values()
            if t.user_id == user_id and t.created_at >= since
        ]
        by_level: dict[RiskLevel, int] = {}
        for t in rows:
            by_level[t.risk_level] = by_level.get(t.risk_level, 0) + 1
        return TransactionStats(
            total=len(rows),
            fraudulent=sum(1 for t in rows if t.is_fraudulent),
            total_amount=sum(t.amount for t in rows),
            by_level=by_level,
        )

    # ── Reports ───────────────────────────────────────────────────────────

    async def add_report(
        self,
        transaction_id: str,
        title: str,
        explanation: str,
        risk_score: int,
        similar_cases: str = "[]",
    ) -> ReportRecord:
        if transaction_id not in self.transactions:
            raise NotFound("Transaction not found")
        report = ReportRecord(
            id=str(uuid.uuid4()),
            transaction_id=transaction_id,
            title=title,
            explanation=explanation,
            risk_score=risk_score,
            similar_cases=similar_cases,
            created_at=utcnow(),
        )
        self.reports[report.id] = report
        return report

    async def get_report(self, report_id: str) -> Optional[ReportRecord]:
        return self.reports.get(report_id)

    async def get_reports(self, report_ids: Iterable[str]) -> dict[str, ReportRecord]:
        return {rid: self.reports[rid] for rid in report_ids if rid in self.reports}

    # ── Alerts ────────────────────────────────────────────────────────────

    async def add_alert(
        self,
        user_id: str,
        channel: AlertChannel,
        message: str,
        report_id: Optional[str] = None,
        type: str = "FRAUD_DETECTED",
    ) -> AlertRecord:
        alert = AlertRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            report_id=report_id,
            channel=channel,
            type=type,
            message=message,
            status=AlertStatus.PENDING,
            created_at=utcnow(),
        )
        self.alerts[alert.id] = alert
        return alert

    async def finalize_alert(
        self,
        alert_id: str,
        status: AlertStatus,
        sent_at: Optional[datetime] = None,
    ) -> AlertRecord:
        check_terminal(status)
        alert = self.alerts.get(alert_id)
        if alert is None:
            raise NotFound("Alert not found")
        if alert.status.is_terminal:
            raise InvalidStateTransition(f"Alert {alert_id} is already {alert.status}")
        alert = alert.model_copy(update={"status": status, "sent_at": sent_at})
        self.alerts[alert_id] = alert
        return alert

    async def get_alert(self, alert_id: str) -> Optional[AlertRecord]:
        return self.alerts.get(alert_id)

    async def list_alerts(self, user_id: str, limit: int = 100) -> Sequence[AlertRecord]:
        rows = [a for a in self.alerts.values() if a.user_id == user_id]
        return _newest_first(rows)[:limit]

    async def close(self) -> None:
        return None
