"""
Alert API Endpoints.

GET  /alerts                 — the current user's alerts, newest first
POST /alerts                 — create an alert and run its delivery cascade
POST /alerts/send            — simulated test alert
POST /alerts/{alert_id}/retry — re-send a FAILED alert as a new alert
"""

from fastapi import APIRouter, Depends

from agentledger.api.deps import get_registry
from agentledger.auth.dependencies import get_current_user
from agentledger.schemas.alerts import (
    AlertCreateRequest,
    AlertListResponse,
    AlertOut,
    AlertResponse,
    ReportSummary,
    TestAlertRequest,
    TestAlertResponse,
)
from agentledger.schemas.common import AlertStatus
from agentledger.schemas.records import AlertRecord, ReportRecord, UserRecord
from agentledger.services.registry import ServiceRegistry

router = APIRouter(prefix="/alerts", tags=["alerts"])


def _alert_out(alert: AlertRecord, report: ReportRecord | None = None) -> AlertOut:
    return AlertOut(
        id=alert.id,
        channel=alert.channel,
        type=alert.type,
        message=alert.message,
        status=alert.status,
        report_id=alert.report_id,
        sent_at=alert.sent_at,
        created_at=alert.created_at,
        report=ReportSummary(id=report.id, title=report.title) if report else None,
    )


async def _alert_response(registry: ServiceRegistry, alert: AlertRecord) -> AlertResponse:
    report = await registry.repository.get_report(alert.report_id) if alert.report_id else None
    return AlertResponse(
        success=alert.status is AlertStatus.DELIVERED,
        alert=_alert_out(alert, report),
    )


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    user: UserRecord = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    alerts = await registry.repository.list_alerts(user.id)
    reports = await registry.repository.get_reports(
        {a.report_id for a in alerts if a.report_id}
    )
    return AlertListResponse(
        alerts=[_alert_out(a, reports.get(a.report_id or "")) for a in alerts]
    )


@router.post("", response_model=AlertResponse)
async def create_alert(
    body: AlertCreateRequest,
    user: UserRecord = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    """The alert is stored PENDING, then ends DELIVERED or FAILED before we respond."""
    alert = await registry.dispatcher.dispatch(
        user,
        channel=body.channel,
        message=body.message,
        report_id=body.report_id,
        type=body.type,
    )
    return await _alert_response(registry, alert)


@router.post("/send", response_model=TestAlertResponse)
async def send_test_alert(
    body: TestAlertRequest,
    user: UserRecord = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    success, alert = await registry.test_alerts.send(
        user, channel=body.channel, message=body.message, type=body.type
    )
    return TestAlertResponse(
        success=success,
        alert_id=alert.id,
        message="Alert sent successfully" if success else "Alert failed to send",
    )


@router.post("/{alert_id}/retry", response_model=AlertResponse)
async def retry_alert(
    alert_id: str,
    user: UserRecord = Depends(get_current_user),
    registry: ServiceRegistry = Depends(get_registry),
):
    alert = await registry.dispatcher.retry(user, alert_id)
    return await _alert_response(registry, alert)
