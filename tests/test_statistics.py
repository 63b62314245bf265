"""Tests for StatisticsService rollups and their TTL-only caching."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from arbiter.models.enums import ActorRole, DisputeResolution, DisputeStatus
from arbiter.modules.statistics.service import StatisticsService
from factories import make_scope, rows_result, scalar_result


def _breakdown_results(total=5, avg=Decimal("36.25")):
    return [
        scalar_result(total),
        rows_result([(DisputeStatus.OPEN, 3), (DisputeStatus.RESOLVED, 2)]),
        rows_result([(None, 3), (DisputeResolution.PARTIAL, 2)]),
        scalar_result(avg),
    ]


class TestDisputeStats:
    @pytest.mark.asyncio
    async def test_breakdowns(self, mock_db, cache):
        mock_db.execute.side_effect = _breakdown_results()
        svc = StatisticsService(mock_db, cache)

        stats = await svc.dispute_stats(make_scope(business_id=uuid.uuid4()))

        assert stats.total_disputes == 5
        assert stats.status_breakdown.open == 3
        assert stats.status_breakdown.resolved == 2
        assert stats.status_breakdown.canceled == 0
        assert stats.resolution_breakdown.pending == 3
        assert stats.resolution_breakdown.partial == 2
        assert stats.average_resolution_time_hours == 36.25

    @pytest.mark.asyncio
    async def test_no_resolved_rows_gives_zero_average(self, mock_db):
        mock_db.execute.side_effect = _breakdown_results(total=0, avg=None)

        stats = await StatisticsService(mock_db).dispute_stats(make_scope(role=ActorRole.ADMIN))

        assert stats.average_resolution_time_hours == 0.0

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, mock_db, cache):
        mock_db.execute.side_effect = _breakdown_results()
        svc = StatisticsService(mock_db, cache)
        scope = make_scope(business_id=uuid.uuid4())

        await svc.dispute_stats(scope)
        again = await svc.dispute_stats(scope)

        assert mock_db.execute.await_count == 4
        assert again.total_disputes == 5
        (key,) = cache.store
        assert key.startswith(f"stats:disputes:{scope.business_id}:")
        assert cache.ttls[key] == 3600

    @pytest.mark.asyncio
    async def test_cached_payload_uses_camel_case(self, mock_db, cache):
        mock_db.execute.side_effect = _breakdown_results()

        await StatisticsService(mock_db, cache).dispute_stats(make_scope(role=ActorRole.ADMIN))

        payload = next(iter(cache.store.values()))
        assert set(payload) == {
            "totalDisputes",
            "statusBreakdown",
            "resolutionBreakdown",
            "averageResolutionTimeHours",
        }

    @pytest.mark.asyncio
    async def test_unbound_arbitrator_sees_only_own_caseload(self, mock_db, cache):
        mock_db.execute.side_effect = _breakdown_results()
        scope = make_scope(role=ActorRole.ARBITRATOR, business_id=None)

        await StatisticsService(mock_db, cache).dispute_stats(scope)

        for call in mock_db.execute.await_args_list:
            where = str(call.args[0].whereclause)
            assert "disputes.arbitrator_id" in where
            assert "disputes.business_id" not in where
        (key,) = cache.store
        assert key.startswith(f"stats:disputes:all:{scope.actor_id}:")

    @pytest.mark.asyncio
    async def test_business_user_stats_not_narrowed_to_arbitrator(self, mock_db):
        mock_db.execute.side_effect = _breakdown_results()

        await StatisticsService(mock_db).dispute_stats(make_scope(business_id=uuid.uuid4()))

        where = str(mock_db.execute.await_args_list[0].args[0].whereclause)
        assert "disputes.business_id" in where
        assert "arbitrator_id" not in where


class TestArbitratorStats:
    @pytest.mark.asyncio
    async def test_pending_counts_non_terminal_assigned(self, mock_db):
        arbitrator_id = uuid.uuid4()
        mock_db.execute.side_effect = [*_breakdown_results(), scalar_result(3)]
        scope = make_scope(role=ActorRole.ARBITRATOR, actor_id=arbitrator_id)

        stats = await StatisticsService(mock_db).arbitrator_stats(arbitrator_id, scope)

        assert stats.total_assigned_disputes == 5
        assert stats.pending_disputes == 3
        where = str(mock_db.execute.call_args_list[0].args[0].whereclause)
        assert "disputes.arbitrator_id" in where


class TestArbitrationStats:
    @pytest.mark.asyncio
    async def test_includes_arbitrator_performance(self, mock_db):
        arbitrator_id = uuid.uuid4()
        mock_db.execute.side_effect = [
            *_breakdown_results(),
            rows_result([(arbitrator_id, "arb@x.com", 4, 3, Decimal("10"))]),
        ]

        stats = await StatisticsService(mock_db).arbitration_stats(
            make_scope(role=ActorRole.ADMIN)
        )

        (perf,) = stats.arbitrator_performance
        assert perf.arbitrator_id == arbitrator_id
        assert perf.total_cases == 4
        assert perf.resolved_cases == 3
        assert perf.average_resolution_time_hours == 10.0
        dumped = stats.model_dump(by_alias=True)
        assert dumped["arbitratorPerformance"][0]["totalCases"] == 4
