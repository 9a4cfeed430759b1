"""
Repository interface.

Business logic talks to a FraudRepository only. Two implementations
exist, SqlRepository (SQLAlchemy async) and InMemoryRepository, and the
application picks one at startup from STORAGE_BACKEND.

Records returned are frozen pydantic models (agentledger.schemas.records).
"""

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from agentledger.schemas.common import AlertChannel, AlertStatus, RiskLevel, UserRole
from agentledger.schemas.records import (
    AlertRecord,
    ReportRecord,
    TransactionRecord,
    TransactionStats,
    UserRecord,
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class FraudRepository(Protocol):
    """Storage for users, transactions, reports and alerts."""

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: Optional[str],
        role: UserRole = UserRole.COMPLIANCE,
        image: Optional[str] = None,
    ) -> UserRecord:
        """Raises Conflict if the email is already registered."""
        ...

    async def get_user(self, user_id: str) -> Optional[UserRecord]: ...

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def get_users(self, user_ids: Iterable[str]) -> dict[str, UserRecord]: ...

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
        """Store a scored transaction; the fraud flag follows risk_level."""
        ...

    async def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]: ...

    async def list_transactions(
        self, user_id: Optional[str] = None, limit: int = 10
    ) -> Sequence[TransactionRecord]:
        """Newest first; all users when user_id is None."""
        ...

    async def recent_transactions(
        self,
        since: datetime,
        limit: int,
        exclude_user_id: Optional[str] = None,
    ) -> Sequence[TransactionRecord]:
        """Newest first, created at or after `since`."""
        ...

    async def transaction_stats(self, user_id: str, since: datetime) -> TransactionStats: ...

    # ── Reports ───────────────────────────────────────────────────────────

    async def add_report(
        self,
        transaction_id: str,
        title: str,
        explanation: str,
        risk_score: int,
        similar_cases: str = "[]",
    ) -> ReportRecord: ...

    async def get_report(self, report_id: str) -> Optional[ReportRecord]: ...

    async def get_reports(self, report_ids: Iterable[str]) -> dict[str, ReportRecord]: ...

    # ── Alerts ────────────────────────────────────────────────────────────

    async def add_alert(
        self,
        user_id: str,
        channel: AlertChannel,
        message: str,
        report_id: Optional[str] = None,
        type: str = "FRAUD_DETECTED",
    ) -> AlertRecord:
        """Create an alert in PENDING state."""
        ...

    async def finalize_alert(
        self,
        alert_id: str,
        status: AlertStatus,
        sent_at: Optional[datetime] = None,
    ) -> AlertRecord:
        """Move a PENDING alert to a terminal status.

        Raises NotFound for unknown ids and InvalidStateTransition when the
        alert is already terminal.
        """
        ...

    async def get_alert(self, alert_id: str) -> Optional[AlertRecord]: ...

    async def list_alerts(self, user_id: str, limit: int = 100) -> Sequence[AlertRecord]:
        """Newest first."""
        ...

    async def close(self) -> None: ...


def check_terminal(status: AlertStatus) -> None:
    if not status.is_terminal:
        raise ValueError("finalize_alert needs a terminal status")
