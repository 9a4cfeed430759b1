"""
SQLAlchemy implementation of FraudRepository.

Each call runs in its own session and commits on success.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Iterable, Optional, Sequence

import structlog
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from agentledger.db.compat import utcnow
from agentledger.db.engine import close_db
from agentledger.db.models import Alert, Report, Transaction, User
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

logger = structlog.get_logger(__name__)


class SqlRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self._engine = engine

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

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
        try:
            async with self._session() as session:
                user = User(
                    name=name,
                    email=email,
                    password_hash=password_hash,
                    role=str(role),
                    image=image,
                )
                session.add(user)
                await session.flush()
                record = UserRecord.model_validate(user)
        except IntegrityError:
            logger.warning("user_create_conflict", email=email)
            raise Conflict("Email already registered")
        return record

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        if not _looks_like_uuid(user_id):
            return None
        async with self._session() as session:
            user = await session.get(User, user_id)
            return UserRecord.model_validate(user) if user else None

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(User).where(User.email == normalize_email(email))
            )
            user = result.scalar_one_or_none()
            return UserRecord.model_validate(user) if user else None

    async def get_users(self, user_ids: Iterable[str]) -> dict[str, UserRecord]:
        ids = {uid for uid in user_ids if _looks_like_uuid(uid)}
        if not ids:
            return {}
        async with self._session() as session:
            result = await session.execute(select(User).where(User.id.in_(ids)))
            return {u.id: UserRecord.model_validate(u) for u in result.scalars()}

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
        async with self._session() as session:
            txn = Transaction(
                user_id=user_id,
                amount=amount,
                description=description,
                ip=ip,
                risk_level=str(risk_level),
                is_fraudulent=risk_level.is_fraudulent,
                created_at=created_at or utcnow(),
            )
            session.add(txn)
            await session.flush()
            return TransactionRecord.model_validate(txn)

    async def get_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        if not _looks_like_uuid(transaction_id):
            return None
        async with self._session() as session:
            txn = await session.get(Transaction, transaction_id)
            return TransactionRecord.model_validate(txn) if txn else None

    async def list_transactions(
        self, user_id: Optional[str] = None, limit: int = 10
    ) -> Sequence[TransactionRecord]:
        stmt = select(Transaction).order_by(Transaction.created_at.desc()).limit(limit)
        if user_id is not None:
            stmt = stmt.where(Transaction.user_id == user_id)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [TransactionRecord.model_validate(t) for t in result.scalars()]

    async def recent_transactions(
        self,
        since: datetime,
        limit: int,
        exclude_user_id: Optional[str] = None,
    ) -> Sequence[TransactionRecord]:
        stmt = (
            select(Transaction)
            .where(Transaction.created_at >= since)
            .order_by(Transaction.created_at.desc())
            .limit(limit)
        )
        if exclude_user_id is not None:
            stmt = stmt.where(Transaction.user_id != exclude_user_id)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [TransactionRecord.model_validate(t) for t in result.scalars()]

    async def transaction_stats(self, user_id: str, since: datetime) -> TransactionStats:
        stmt = (
            select(
                Transaction.risk_level,
                func.count(Transaction.id),
                func.coalesce(func.sum(Transaction.amount), 0.0),
                func.sum(case((Transaction.is_fraudulent.is_(True), 1), else_=0)),
            )
            .where(Transaction.user_id == user_id, Transaction.created_at >= since)
            .group_by(Transaction.risk_level)
        )
        async with self._session() as session:
            rows = (await session.execute(stmt)).all()

        by_level: dict[RiskLevel, int] = {}
        total = fraudulent = 0
        total_amount = 0.0
        for level, count, amount_sum, fraud_count in rows:
            by_level[RiskLevel(level)] = int(count)
            total += int(count)
            fraudulent += int(fraud_count or 0)
            total_amount += float(amount_sum or 0.0)
        return TransactionStats(
            total=total,
            fraudulent=fraudulent,
            total_amount=total_amount,
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
        if not _looks_like_uuid(transaction_id):
            raise NotFound("Transaction not found")
        async with self._session() as session:
            if await session.get(Transaction, transaction_id) is None:
                raise NotFound("Transaction not found")
            report = Report(
                transaction_id=transaction_id,
                title=title,
                explanation=explanation,
                risk_score=risk_score,
                similar_cases=similar_cases,
            )
            session.add(report)
            await session.flush()
            return ReportRecord.model_validate(report)

    async def get_report(self, report_id: str) -> Optional[ReportRecord]:
        if not _looks_like_uuid(report_id):
            return None
        async with self._session() as session:
            report = await session.get(Report, report_id)
            return ReportRecord.model_validate(report) if report else None

    async def get_reports(self, report_ids: Iterable[str]) -> dict[str, ReportRecord]:
        ids = {rid for rid in report_ids if rid and _looks_like_uuid(rid)}
        if not ids:
            return {}
        async with self._session() as session:
            result = await session.execute(select(Report).where(Report.id.in_(ids)))
            return {r.id: ReportRecord.model_validate(r) for r in result.scalars()}

    # ── Alerts ────────────────────────────────────────────────────────────

    async def add_alert(
        self,
        user_id: str,
        channel: AlertChannel,
        message: str,
        report_id: Optional[str] = None,
        type: str = "FRAUD_DETECTED",
    ) -> AlertRecord:
        async with self._session() as session:
            alert = Alert(
                user_id=user_id,
                report_id=report_id,
                channel=str(channel),
                type=type,
                message=message,
                status=str(AlertStatus.PENDING),
            )
            session.add(alert)
            await session.flush()
            return AlertRecord.model_validate(alert)

    async def finalize_alert(
        self,
        alert_id: str,
        status: AlertStatus,
        sent_at: Optional[datetime] = None,
    ) -> AlertRecord:
        check_terminal(status)
        if not _looks_like_uuid(alert_id):
            raise NotFound("Alert not found")
        async with self._session() as session:
            result = await session.execute(
                update(Alert)
                .where(Alert.id == alert_id, Alert.status == str(AlertStatus.PENDING))
                .values(status=str(status), sent_at=sent_at)
                .execution_options(synchronize_session=False)
            )
            alert = await session.get(Alert, alert_id, populate_existing=True)
            if alert is None:
                raise NotFound("Alert not found")
            if result.rowcount == 0:
                raise InvalidStateTransition(
                    f"Alert {alert_id} is already {alert.status}"
                )
            return AlertRecord.model_validate(alert)

    async def get_alert(self, alert_id: str) -> Optional[AlertRecord]:
        if not _looks_like_uuid(alert_id):
            return None
        async with self._session() as session:
            alert = await session.get(Alert, alert_id)
            return AlertRecord.model_validate(alert) if alert else None

    async def list_alerts(self, user_id: str, limit: int = 100) -> Sequence[AlertRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(Alert)
                .where(Alert.user_id == user_id)
                .order_by(Alert.created_at.desc())
                .limit(limit)
            )
            return [AlertRecord.model_validate(a) for a in result.scalars()]

    async def close(self) -> None:
        if self._engine is not None:
            await close_db(self._engine)


def _looks_like_uuid(value: str) -> bool:
    """GUID columns reject anything that is not a UUID; treat those as misses."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
