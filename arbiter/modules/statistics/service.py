"""Statistics aggregator: tenant and arbitrator scoped dispute rollups.

Results are cached under a composite tenant/arbitrator/date-range key and
expire by TTL only; writes never invalidate them.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arbiter.config import settings
from arbiter.models.api_key import ApiKey
from arbiter.models.dispute import Dispute
from arbiter.models.enums import DisputeStatus
from arbiter.modules.authorization.scoper import ActorScope
from arbiter.modules.cache.cache import DisputeCache
from arbiter.modules.dispute.constants import CACHE_KEY_STATS, NON_TERMINAL_STATUSES
from arbiter.modules.statistics.schemas import (
    ArbitrationStats,
    ArbitratorPerformance,
    ArbitratorStats,
    DisputeStats,
    ResolutionBreakdown,
    StatusBreakdown,
)

logger = logging.getLogger(__name__)

_RESOLUTION_HOURS = func.extract("epoch", Dispute.resolution_date - Dispute.created_at) / 3600


def _hours(value: Any) -> float:
    return round(float(value), 2) if value is not None else 0.0


def _stamp(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


class StatisticsService:
    def __init__(self, db: AsyncSession, cache: DisputeCache | None = None):
        self.db = db
        self.cache = cache

    # ------------------------------------------------------------------
    # Public rollups
    # ------------------------------------------------------------------

    async def dispute_stats(
        self,
        scope: ActorScope,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> DisputeStats:
        """Tenant-wide breakdowns; admins see every tenant.

        Arbitrators only ever see their own caseload, whether or not their key
        is bound to a business.
        """
        arbitrator_id = scope.actor_id if scope.is_arbitrator else None
        conditions = self._conditions(scope.tenant_id, arbitrator_id, from_date, to_date)

        async def compute() -> dict:
            stats = DisputeStats(**await self._breakdowns(conditions))
            return stats.model_dump(mode="json", by_alias=True)

        key = self._key("disputes", scope.tenant_id, arbitrator_id, from_date, to_date)
        return DisputeStats.model_validate(await self._cached(key, compute))

    async def arbitrator_stats(
        self,
        arbitrator_id: uuid.UUID,
        scope: ActorScope,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> ArbitratorStats:
        conditions = self._conditions(scope.tenant_id, arbitrator_id, from_date, to_date)

        async def compute() -> dict:
            rollup = await self._breakdowns(conditions)
            pending = await self.db.execute(
                select(func.count(Dispute.id)).where(
                    *conditions, Dispute.status.in_(NON_TERMINAL_STATUSES)
                )
            )
            stats = ArbitratorStats(
                total_assigned_disputes=rollup["total_disputes"],
                pending_disputes=pending.scalar() or 0,
                status_breakdown=rollup["status_breakdown"],
                resolution_breakdown=rollup["resolution_breakdown"],
                average_resolution_time_hours=rollup["average_resolution_time_hours"],
            )
            return stats.model_dump(mode="json", by_alias=True)

        key = self._key("arbitrator", scope.tenant_id, arbitrator_id, from_date, to_date)
        return ArbitratorStats.model_validate(await self._cached(key, compute))

    async def arbitration_stats(
        self,
        scope: ActorScope,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> ArbitrationStats:
        """Admin view: dispute breakdowns plus per-arbitrator performance."""
        conditions = self._conditions(scope.tenant_id, None, from_date, to_date)

        async def compute() -> dict:
            rollup = await self._breakdowns(conditions)
            rollup["arbitrator_performance"] = await self._performance(conditions)
            return ArbitrationStats(**rollup).model_dump(mode="json", by_alias=True)

        key = self._key("arbitration", scope.tenant_id, None, from_date, to_date)
        return ArbitrationStats.model_validate(await self._cached(key, compute))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _conditions(
        tenant_id: uuid.UUID | None,
        arbitrator_id: uuid.UUID | None,
        from_date: datetime | None,
        to_date: datetime | None,
    ) -> list:
        conditions = []
        if tenant_id is not None:
            conditions.append(Dispute.business_id == tenant_id)
        if arbitrator_id is not None:
            conditions.append(Dispute.arbitrator_id == arbitrator_id)
        if from_date is not None:
            conditions.append(Dispute.created_at >= from_date)
        if to_date is not None:
            conditions.append(Dispute.created_at <= to_date)
        return conditions

    @staticmethod
    def _key(
        kind: str,
        tenant_id: uuid.UUID | None,
        arbitrator_id: uuid.UUID | None,
        from_date: datetime | None,
        to_date: datetime | None,
    ) -> str:
        return CACHE_KEY_STATS.format(
            kind=kind,
            tenant=tenant_id or "all",
            arbitrator=arbitrator_id or "all",
            from_date=_stamp(from_date),
            to_date=_stamp(to_date),
        )

    async def _cached(self, key: str, compute) -> dict:
        if self.cache is None:
            return await compute()
        return await self.cache.get_or_set(key, compute, ttl=settings.cache_ttl_stats_seconds)

    async def _breakdowns(self, conditions: list) -> dict:
        total = await self.db.execute(select(func.count(Dispute.id)).where(*conditions))

        status_rows = await self.db.execute(
            select(Dispute.status, func.count(Dispute.id))
            .where(*conditions)
            .group_by(Dispute.status)
        )
        statuses = StatusBreakdown(
            **{DisputeStatus(status).value: count for status, count in status_rows.all()}
        )

        resolution_rows = await self.db.execute(
            select(Dispute.resolution, func.count(Dispute.id))
            .where(*conditions)
            .group_by(Dispute.resolution)
        )
        resolutions: dict[str, int] = {}
        for resolution, count in resolution_rows.all():
            name = "pending" if resolution is None else resolution.value
            resolutions[name] = resolutions.get(name, 0) + count

        average = await self.db.execute(
            select(func.avg(_RESOLUTION_HOURS)).where(
                *conditions, Dispute.resolution_date.is_not(None)
            )
        )

        return {
            "total_disputes": total.scalar() or 0,
            "status_breakdown": statuses,
            "resolution_breakdown": ResolutionBreakdown(**resolutions),
            "average_resolution_time_hours": _hours(average.scalar()),
        }

    async def _performance(self, conditions: list) -> list[ArbitratorPerformance]:
        total_cases = func.count(Dispute.id)
        result = await self.db.execute(
            select(
                ApiKey.id,
                ApiKey.email,
                total_cases,
                func.sum(case((Dispute.status == DisputeStatus.RESOLVED, 1), else_=0)),
                func.avg(_RESOLUTION_HOURS),
            )
            .select_from(Dispute)
            .join(ApiKey, Dispute.arbitrator_id == ApiKey.id)
            .where(*conditions)
            .group_by(ApiKey.id, ApiKey.email)
            .order_by(total_cases.desc())
        )
        return [
            ArbitratorPerformance(
                arbitrator_id=arbitrator_id,
                email=email,
                total_cases=cases or 0,
                resolved_cases=int(resolved or 0),
                average_resolution_time_hours=_hours(avg_hours),
            )
            for arbitrator_id, email, cases, resolved, avg_hours in result.all()
        ]
