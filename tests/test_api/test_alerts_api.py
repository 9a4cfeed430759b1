"""
Tests for /api/alerts.
"""

import random

import pytest

from agentledger.schemas.common import AlertChannel, RiskLevel

URL = "/api/alerts"


class FixedRandom(random.Random):
    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [("get", URL), ("post", URL), ("post", f"{URL}/send"), ("post", f"{URL}/abc/retry")],
)
async def test_requires_session(client, method, path):
    resp = await client.request(method, path, json={"channel": "SLACK", "message": "x"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    resp = await client.get(URL, headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_alert_delivered_via_log_fallback(auth_client):
    resp = await auth_client.post(URL, json={"channel": "SLACK", "message": "Check txn 42"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["alert"]["status"] == "DELIVERED"
    assert data["alert"]["sentAt"] is not None
    assert data["alert"]["type"] == "FRAUD_DETECTED"


@pytest.mark.asyncio
async def test_create_alert_with_unknown_report(auth_client):
    resp = await auth_client.post(URL, json={"channel": "EMAIL", "message": "x", "reportId": "nope"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_invalid_channel(auth_client):
    resp = await auth_client.post(URL, json={"channel": "SMS", "message": "x"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_includes_report_summary(auth_client, registry, user):
    txn = await registry.repository.add_transaction(user.id, 15000, "bitcoin", RiskLevel.HIGH)
    report = await registry.repository.add_report(txn.id, "HIGH risk transaction: bitcoin", "e", 70)
    await auth_client.post(URL, json={"channel": "NOTION", "message": "with report", "reportId": report.id})
    await auth_client.post(URL, json={"channel": "SLACK", "message": "no report"})

    resp = await auth_client.get(URL)
    alerts = resp.json()["alerts"]

    assert len(alerts) == 2
    by_message = {a["message"]: a for a in alerts}
    assert by_message["with report"]["report"] == {"id": report.id, "title": report.title}
    assert by_message["no report"]["report"] is None


@pytest.mark.asyncio
async def test_list_only_own_alerts(auth_client, registry):
    other = await registry.repository.create_user("Other", "other@example.com", None)
    await registry.repository.add_alert(other.id, AlertChannel.SLACK, "not yours")
    assert (await auth_client.get(URL)).json()["alerts"] == []


@pytest.mark.asyncio
async def test_send_test_alert_success(auth_client, registry):
    registry.test_alerts.rng = FixedRandom(0.1)
    resp = await auth_client.post(f"{URL}/send", json={"channel": "EMAIL", "message": "ping"})

    data = resp.json()
    assert data == {"success": True, "alertId": data["alertId"], "message": "Alert sent successfully"}
    alert = await registry.repository.get_alert(data["alertId"])
    assert alert.status == "DELIVERED"
    assert alert.type == "TEST"


@pytest.mark.asyncio
async def test_send_test_alert_failure(auth_client, registry):
    registry.test_alerts.rng = FixedRandom(0.99)
    resp = await auth_client.post(f"{URL}/send", json={"channel": "SLACK", "message": "ping"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is False
    assert data["message"] == "Alert failed to send"
    assert (await registry.repository.get_alert(data["alertId"])).status == "FAILED"


@pytest.mark.asyncio
async def test_retry_failed_alert(auth_client, registry):
    registry.test_alerts.rng = FixedRandom(0.99)
    failed_id = (
        await auth_client.post(f"{URL}/send", json={"channel": "SLACK", "message": "again"})
    ).json()["alertId"]

    resp = await auth_client.post(f"{URL}/{failed_id}/retry")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["alert"]["id"] != failed_id
    assert data["alert"]["message"] == "again"

    conflict = await auth_client.post(f"{URL}/{data['alert']['id']}/retry")
    assert conflict.status_code == 409


@pytest.mark.asyncio
async def test_retry_unknown_alert(auth_client):
    assert (await auth_client.post(f"{URL}/missing/retry")).status_code == 404


@pytest.mark.asyncio
async def test_create_alert_for_foreign_report(auth_client, registry):
    txn = await registry.repository.add_transaction("other-user", 15000, "bitcoin", RiskLevel.HIGH)
    report = await registry.repository.add_report(txn.id, "HIGH risk transaction: bitcoin", "e", 70)

    resp = await auth_client.post(URL, json={"channel": "SLACK", "message": "x", "reportId": report.id})

    assert resp.status_code == 404
    assert resp.json() == {"error": "Report not found"}
