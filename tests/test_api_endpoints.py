from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import (
    get_cache_service,
    get_consistency_coordinator,
    get_lead_service,
)
from app.core.cache import CacheService
from app.core.database import get_db
from app.core.rate_limit import limiter
from app.main import app

TENANT_HEADERS = {"X-Tenant-ID": "acme"}


@pytest_asyncio.fixture
async def api_client(coordinator, lead_service):
    """Client whose services run over the in-memory repositories."""
    session = MagicMock()
    session.execute = AsyncMock()

    async def override_db():
        return session

    app.dependency_overrides[get_consistency_coordinator] = lambda: coordinator
    app.dependency_overrides[get_lead_service] = lambda: lead_service
    app.dependency_overrides[get_cache_service] = lambda: CacheService(redis_client=None)
    app.dependency_overrides[get_db] = override_db
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    limiter.enabled = True
    app.dependency_overrides.clear()


class TestCORSMiddleware:
    """Verify that CORS headers are present on responses."""

    @pytest.mark.asyncio
    async def test_cors_headers_on_preflight(self, api_client):
        """OPTIONS request should return Access-Control-Allow-Origin."""
        response = await api_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" in response.headers

    @pytest.mark.asyncio
    async def test_cors_headers_on_get(self, api_client):
        """GET requests should include CORS response headers with configured origins."""
        response = await api_client.get(
            "/api/v1/health",
            headers={"Origin": "http://localhost:3000"},
        )
        assert response.status_code == 200
        # CORS should return the specific allowed origin, not wildcard "*"
        assert (
            response.headers.get("access-control-allow-origin")
            == "http://localhost:3000"
        )


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, api_client):
        response = await api_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "ok", "cache": "disabled"}


class TestScoringConfigEndpoints:
    @pytest.mark.asyncio
    async def test_get_returns_defaults_in_camel_case(self, api_client):
        response = await api_client.get("/api/v1/scoring-config", headers=TENANT_HEADERS)
        assert response.status_code == 200
        fields = response.json()["fields"]
        assert fields[0]["fieldName"] == "category"
        assert fields[0]["isActive"] is True

    @pytest.mark.asyncio
    async def test_put_replaces_and_rescans(self, api_client):
        await api_client.post(
            "/api/v1/leads", json={"name": "Q", "status": "Qualified"}, headers=TENANT_HEADERS
        )
        response = await api_client.put(
            "/api/v1/scoring-config",
            json={
                "fields": [
                    {
                        "fieldName": "status",
                        "weight": 100,
                        "rules": [
                            {"id": "q", "condition": "equals", "value": "Qualified", "points": 10}
                        ],
                    }
                ]
            },
            headers=TENANT_HEADERS,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["version"] == 2
        assert body["rescan"]["scanned"] == 1

        leads = await api_client.get("/api/v1/leads", headers=TENANT_HEADERS)
        assert leads.json()[0]["score"] == 100

    @pytest.mark.asyncio
    async def test_put_malformed_rule_returns_422(self, api_client):
        response = await api_client.put(
            "/api/v1/scoring-config",
            json={
                "fields": [
                    {
                        "fieldName": "status",
                        "weight": 100,
                        "rules": [
                            {"id": "q", "condition": "isOneOf", "value": "Qualified", "points": 10}
                        ],
                    }
                ]
            },
        )
        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"


class TestPipelineStageEndpoints:
    @pytest.mark.asyncio
    async def test_list_default_stages(self, api_client):
        response = await api_client.get("/api/v1/pipeline-stages", headers=TENANT_HEADERS)
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [
            "New",
            "Contacted",
            "Qualified",
            "Won",
            "Lost",
        ]

    @pytest.mark.asyncio
    async def test_create_stage(self, api_client):
        response = await api_client.post(
            "/api/v1/pipeline-stages",
            json={"name": "Proposal Sent", "color": "bg-pink-100"},
            headers=TENANT_HEADERS,
        )
        assert response.status_code == 201
        assert response.json()["id"] == "proposal-sent"
        assert response.json()["order"] == 5

    @pytest.mark.asyncio
    async def test_duplicate_stage_returns_409(self, api_client):
        await api_client.post("/api/v1/pipeline-stages", json={"name": "Demo"})
        response = await api_client.post("/api/v1/pipeline-stages", json={"name": "demo"})
        assert response.status_code == 409
        body = response.json()
        assert body["type"] == "conflict"
        assert body["detail"] == "Stage with ID demo already exists"

    @pytest.mark.asyncio
    async def test_blank_stage_name_returns_422(self, api_client):
        response = await api_client.post("/api/v1/pipeline-stages", json={"name": "  "})
        assert response.status_code == 422
        assert response.json()["type"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_rename_unknown_stage_returns_404(self, api_client):
        response = await api_client.put(
            "/api/v1/pipeline-stages/ghost", json={"name": "Boo"}
        )
        assert response.status_code == 404
        assert response.json()["context"] == {"stage_id": "ghost"}

    @pytest.mark.asyncio
    async def test_reorder(self, api_client):
        await api_client.get("/api/v1/pipeline-stages")
        response = await api_client.patch(
            "/api/v1/pipeline-stages",
            json=[{"id": "Lost", "order": -1}],
        )
        assert response.status_code == 200
        assert response.json()[0]["id"] == "Lost"

    @pytest.mark.asyncio
    async def test_delete_reassigns_leads(self, api_client):
        created = await api_client.post(
            "/api/v1/leads", json={"name": "N", "status": "New"}, headers=TENANT_HEADERS
        )
        lead_id = created.json()["leadId"]

        response = await api_client.delete(
            "/api/v1/pipeline-stages/New", headers=TENANT_HEADERS
        )
        assert response.status_code == 200
        body = response.json()
        assert body["deletedStageId"] == "New"
        assert body["fallbackStageId"] == "Contacted"
        assert body["reassignedLeadIds"] == [lead_id]

        lead = await api_client.get(f"/api/v1/leads/{lead_id}", headers=TENANT_HEADERS)
        assert lead.json()["status"] == "Contacted"


class TestLeadEndpoints:
    @pytest.mark.asyncio
    async def test_create_ignores_client_score(self, api_client):
        response = await api_client.post(
            "/api/v1/leads",
            json={"name": "Ann", "designation": "CEO", "status": "Qualified", "score": 99},
            headers=TENANT_HEADERS,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["score"] == 52
        assert body["scoreStale"] is False

    @pytest.mark.asyncio
    async def test_unknown_status_returns_422(self, api_client):
        response = await api_client.post(
            "/api/v1/leads", json={"name": "Ann", "status": "Limbo"}
        )
        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "invalid_input"
        assert body["context"]["field"] == "status"

    @pytest.mark.asyncio
    async def test_missing_name_returns_422(self, api_client):
        response = await api_client.post("/api/v1/leads", json={"status": "New"})
        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_lead_returns_404(self, api_client):
        response = await api_client.get(f"/api/v1/leads/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, api_client):
        created = await api_client.post("/api/v1/leads", json={"name": "Ann"})
        lead_id = created.json()["leadId"]

        updated = await api_client.put(
            f"/api/v1/leads/{lead_id}", json={"industry": "Technology"}
        )
        assert updated.status_code == 200
        assert updated.json()["score"] > created.json()["score"]

        deleted = await api_client.delete(f"/api/v1/leads/{lead_id}")
        assert deleted.status_code == 204
        missing = await api_client.get(f"/api/v1/leads/{lead_id}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_tenant_header_scopes_leads(self, api_client):
        created = await api_client.post(
            "/api/v1/leads", json={"name": "Ann"}, headers=TENANT_HEADERS
        )
        lead_id = created.json()["leadId"]
        response = await api_client.get(
            f"/api/v1/leads/{lead_id}", headers={"X-Tenant-ID": "globex"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_import(self, api_client):
        response = await api_client.post(
            "/api/v1/leads/import",
            json={
                "leads": [
                    {"name": "A", "email": "a@example.com"},
                    {"name": "A again", "email": "A@example.com"},
                ]
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["imported"] == 1
        assert body["skipped"] == 1

    @pytest.mark.asyncio
    async def test_score_breakdown(self, api_client):
        created = await api_client.post(
            "/api/v1/leads", json={"name": "Ann", "category": "MNC", "status": "Won"}
        )
        lead_id = created.json()["leadId"]

        response = await api_client.get(f"/api/v1/leads/{lead_id}/score-breakdown")
        assert response.status_code == 200
        body = response.json()
        assert body["score"] == created.json()["score"]
        category = next(f for f in body["fields"] if f["fieldName"] == "category")
        assert category["matchedRuleIds"] == ["cat1"]

    @pytest.mark.asyncio
    async def test_rescore_stale(self, api_client, lead_repo):
        created = await api_client.post("/api/v1/leads", json={"name": "Ann"})
        lead_repo.leads[0].score_stale = True

        response = await api_client.post("/api/v1/leads/rescore-stale")
        assert response.status_code == 200
        assert response.json()["scanned"] == 1
        assert lead_repo.leads[0].score == created.json()["score"]


class TestLeadActivityEndpoints:
    @pytest.mark.asyncio
    async def test_add_and_list_activity(self, api_client):
        created = await api_client.post(
            "/api/v1/leads", json={"name": "Ann"}, headers=TENANT_HEADERS
        )
        lead_id = created.json()["leadId"]

        empty = await api_client.get(
            f"/api/v1/leads/{lead_id}/activity", headers=TENANT_HEADERS
        )
        assert empty.status_code == 200
        assert empty.json() == []

        added = await api_client.post(
            f"/api/v1/leads/{lead_id}/activity",
            json={"type": "Call", "details": "Discussed needs.", "userId": "user1"},
            headers=TENANT_HEADERS,
        )
        assert added.status_code == 201
        body = added.json()
        assert body["leadId"] == lead_id
        assert body["type"] == "Call"
        assert body["userId"] == "user1"
        assert body["timestamp"] is not None

        listed = await api_client.get(
            f"/api/v1/leads/{lead_id}/activity", headers=TENANT_HEADERS
        )
        assert [entry["activityId"] for entry in listed.json()] == [body["activityId"]]

    @pytest.mark.asyncio
    async def test_missing_details_returns_422(self, api_client):
        created = await api_client.post("/api/v1/leads", json={"name": "Ann"})
        lead_id = created.json()["leadId"]

        response = await api_client.post(
            f"/api/v1/leads/{lead_id}/activity", json={"type": "Note"}
        )
        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "invalid_input"
        assert body["detail"] == "Missing type or details"

    @pytest.mark.asyncio
    async def test_unknown_lead_returns_404(self, api_client):
        response = await api_client.get(f"/api/v1/leads/{uuid4()}/activity")
        assert response.status_code == 404

        response = await api_client.post(
            f"/api/v1/leads/{uuid4()}/activity",
            json={"type": "Note", "details": "Hello"},
        )
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    @pytest.mark.asyncio
    async def test_status_change_appears_in_log(self, api_client):
        created = await api_client.post(
            "/api/v1/leads", json={"name": "Ann", "status": "New"}
        )
        lead_id = created.json()["leadId"]
        await api_client.put(f"/api/v1/leads/{lead_id}", json={"status": "Won"})

        listed = await api_client.get(f"/api/v1/leads/{lead_id}/activity")
        assert [entry["type"] for entry in listed.json()] == ["StageChange"]

    @pytest.mark.asyncio
    async def test_contact_dates_round_trip(self, api_client):
        created = await api_client.post(
            "/api/v1/leads",
            json={"name": "Ann", "lastContact": "2025-03-23", "nextFollowUp": "2025-03-29"},
        )
        assert created.status_code == 201
        body = created.json()
        assert body["lastContact"] == "2025-03-23"
        assert body["nextFollowUp"] == "2025-03-29"
