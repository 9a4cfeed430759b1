"""
Alert API Schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from agentledger.schemas.common import AlertChannel, AlertStatus, CamelModel


class AlertCreateRequest(CamelModel):
    channel: AlertChannel
    message: str = Field(..., min_length=1, max_length=4000)
    report_id: Optional[str] = None
    type: str = Field(default="FRAUD_DETECTED", max_length=64)


class TestAlertRequest(CamelModel):
    channel: AlertChannel
    message: str = Field(..., min_length=1, max_length=4000)
    type: Optional[str] = None


class ReportSummary(CamelModel):
    id: str
    title: str


class AlertOut(CamelModel):
    id: str
    channel: AlertChannel
    type: str
    message: str
    status: AlertStatus
    report_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime
    report: Optional[ReportSummary] = None


class AlertResponse(CamelModel):
    success: bool
    alert: AlertOut


class AlertListResponse(CamelModel):
    success: bool = True
    alerts: List[AlertOut]


class TestAlertResponse(CamelModel):
    success: bool
    alert_id: str
    message: str
