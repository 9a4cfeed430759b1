"""
Tests for /api/search/vector.
"""

import pytest

from agentledger.schemas.common import RiskLevel

URL = "/api/search/vector"


@pytest.mark.asyncio
async def test_requires_session(client):
    assert (await client.post(URL, json={"query": "bitcoin"})).status_code == 401


@pytest.mark.asyncio
async def test_ranked_results(auth_client, registry):
    repo = registry.repository
    await repo.add_transaction("u-1", 5000, "bitcoin wallet funding", RiskLevel.MEDIUM)
    await repo.add_transaction("u-2", 40, "bookstore purchase", RiskLevel.LOW)

    resp = await auth_client.post(URL, json={"query": "bitcoin wallet funding", "limit": 1})

    assert resp.status_code == 200
    data = resp.json()
    assert data["query"] == "bitcoin wallet funding"
    assert len(data["results"]) == 1
    hit = data["results"][0]
    assert hit["transaction"]["description"] == "bitcoin wallet funding"
    assert hit["keywordOverlap"] == 1.0


@pytest.mark.asyncio
async def test_limit_validated(auth_client):
    resp = await auth_client.post(URL, json={"query": "x", "limit": 500})
    assert resp.status_code == 400
