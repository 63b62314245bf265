"""Router tests: wiring, role gates, and the response envelope.

The service layer and authentication are replaced through FastAPI
dependency overrides; no database or Redis is touched.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from arbiter.app import create_app
from arbiter.database.session import get_db
from arbiter.exceptions import InvalidStateException, NotFoundException
from arbiter.models.enums import ActorRole, DisputeStatus
from arbiter.modules.authorization.auth import AuthenticatedActor, get_current_actor
from arbiter.modules.cache.cache import get_cache
from arbiter.modules.dispute.arbitration_router import get_arbitration_service
from arbiter.modules.dispute.arbitration_router import router as arbitration_router
from arbiter.modules.dispute.router import get_dispute_service
from arbiter.modules.dispute.router import router as dispute_router
from arbiter.modules.notifications.dispatcher import get_notifier
from arbiter.modules.statistics.schemas import (
    ArbitratorStats,
    ResolutionBreakdown,
    StatusBreakdown,
)
from factories import FakeCache, RecordingNotifier, dispute_record

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def actor():
    return AuthenticatedActor(
        id=uuid.uuid4(), email="a@x.com", role=ActorRole.USER, business_id=uuid.uuid4()
    )


@pytest.fixture
def dispute_svc():
    return MagicMock()


@pytest.fixture
def arbitration_svc():
    return MagicMock()


@pytest_asyncio.fixture
async def client(actor, dispute_svc, arbitration_svc) -> AsyncGenerator[AsyncClient, None]:
    app = create_app()

    async def override_get_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = lambda: actor
    app.dependency_overrides[get_cache] = FakeCache
    app.dependency_overrides[get_notifier] = RecordingNotifier
    app.dependency_overrides[get_dispute_service] = lambda: dispute_svc
    app.dependency_overrides[get_arbitration_service] = lambda: arbitration_svc

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


class TestRouterPaths:
    def test_dispute_paths(self):
        paths = {r.path for r in dispute_router.routes}
        assert {
            "/disputes/",
            "/disputes/stats",
            "/disputes/profiles/{profile_id}",
            "/disputes/{dispute_id}",
            "/disputes/{dispute_id}/evidence",
            "/disputes/{dispute_id}/comments",
            "/disputes/{dispute_id}/history",
            "/disputes/{dispute_id}/cancel",
        } == paths

    def test_arbitration_paths(self):
        paths = {r.path for r in arbitration_router.routes}
        assert {
            "/arbitration/cases",
            "/arbitration/cases/{dispute_id}",
            "/arbitration/cases/{dispute_id}/assign",
            "/arbitration/cases/{dispute_id}/review",
            "/arbitration/cases/{dispute_id}/resolve",
            "/arbitration/stats",
        } == paths


# ---------------------------------------------------------------------------
# Disputes
# ---------------------------------------------------------------------------


class TestDisputeEndpoints:
    @pytest.mark.asyncio
    async def test_create_returns_success_envelope(self, client, dispute_svc):
        record = dispute_record()
        dispute_svc.create_dispute = AsyncMock(return_value=record)

        response = await client.post(
            "/api/v1/disputes/",
            json={
                "transaction_id": str(uuid.uuid4()),
                "initiator_email": "a@x.com",
                "counterparty_email": "b@x.com",
                "reason": "Unauthorized debit",
                "amount": "100.00",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["id"] == str(record.id)
        assert body["data"]["status"] == "open"
        assert body["message"] == "Dispute created successfully"

    @pytest.mark.asyncio
    async def test_validation_error_envelope(self, client):
        response = await client.post(
            "/api/v1/disputes/",
            json={"initiator_email": "not-an-email", "counterparty_email": "b@x.com"},
            headers={"X-Request-ID": "req-123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "VALIDATION_ERROR"
        assert body["requestId"] == "req-123"
        assert response.headers["X-Request-ID"] == "req-123"
        fields = {d["field"] for d in body["details"]}
        assert "body.reason" in fields

    @pytest.mark.asyncio
    async def test_partial_evidence_rejected(self, client):
        response = await client.post(
            "/api/v1/disputes/",
            json={
                "initiator_email": "a@x.com",
                "counterparty_email": "b@x.com",
                "reason": "Unauthorized debit",
                "evidence_type": "receipt",
            },
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_paginates(self, client, dispute_svc):
        dispute_svc.list_disputes = AsyncMock(return_value=([dispute_record()], 21))

        response = await client.get("/api/v1/disputes/?page=2&limit=10&status=open")

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["items"]) == 1
        assert data["pagination"] == {
            "page": 2,
            "limit": 10,
            "totalItems": 21,
            "totalPages": 3,
        }
        kwargs = dispute_svc.list_disputes.await_args.kwargs
        assert kwargs["status"] == DisputeStatus.OPEN

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, client):
        response = await client.get("/api/v1/disputes/?limit=500")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_state_maps_to_400(self, client, dispute_svc):
        dispute_svc.cancel_dispute = AsyncMock(
            side_effect=InvalidStateException("Cannot move a dispute from 'canceled' to 'canceled'")
        )

        response = await client.post(f"/api/v1/disputes/{uuid.uuid4()}/cancel")

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_STATE"
        assert "canceled" in body["message"]

    @pytest.mark.asyncio
    async def test_not_found_maps_to_404(self, client, dispute_svc):
        dispute_svc.get_dispute = AsyncMock(side_effect=NotFoundException("Dispute x not found"))

        response = await client.get(f"/api/v1/disputes/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update_rejects_status_field(self, client):
        response = await client.put(
            f"/api/v1/disputes/{uuid.uuid4()}", json={"status": "resolved"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_rejects_null_reason(self, client, dispute_svc):
        dispute_svc.update_dispute = AsyncMock()

        response = await client.put(
            f"/api/v1/disputes/{uuid.uuid4()}", json={"reason": None}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        dispute_svc.update_dispute.assert_not_awaited()


# ---------------------------------------------------------------------------
# Arbitration
# ---------------------------------------------------------------------------


class TestArbitrationEndpoints:
    @pytest.mark.asyncio
    async def test_business_user_is_forbidden(self, client):
        response = await client.get("/api/v1/arbitration/cases")

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_arbitrator_resolves_case(self, client, actor, arbitration_svc):
        actor.role = ActorRole.ARBITRATOR
        actor.business_id = None
        record = dispute_record(status=DisputeStatus.RESOLVED, resolution="partial")
        arbitration_svc.resolve_case = AsyncMock(return_value=record)

        response = await client.post(
            f"/api/v1/arbitration/cases/{record.id}/resolve",
            json={"resolution": "partial", "resolution_notes": "split 50/50"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["resolution"] == "partial"

    @pytest.mark.asyncio
    async def test_unknown_resolution_rejected_before_service(
        self, client, actor, arbitration_svc
    ):
        actor.role = ActorRole.ADMIN
        arbitration_svc.resolve_case = AsyncMock()

        response = await client.post(
            f"/api/v1/arbitration/cases/{uuid.uuid4()}/resolve",
            json={"resolution": "coin_flip", "resolution_notes": "x"},
        )

        assert response.status_code == 400
        arbitration_svc.resolve_case.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_arbitrator_stats_are_own_caseload(self, client, actor):
        actor.role = ActorRole.ARBITRATOR
        stats = ArbitratorStats(
            total_assigned_disputes=4,
            pending_disputes=1,
            status_breakdown=StatusBreakdown(resolved=3, under_review=1),
            resolution_breakdown=ResolutionBreakdown(pending=1, partial=3),
            average_resolution_time_hours=12.0,
        )
        with patch("arbiter.modules.dispute.arbitration_router.StatisticsService") as svc_cls:
            svc_cls.return_value.arbitrator_stats = AsyncMock(return_value=stats)
            response = await client.get("/api/v1/arbitration/stats")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalAssignedDisputes"] == 4
        assert data["pendingDisputes"] == 1
        args = svc_cls.return_value.arbitrator_stats.await_args.args
        assert args[0] == actor.id
