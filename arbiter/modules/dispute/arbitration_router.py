"""Arbitration API router: admin and arbitrator case management."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arbiter.database.session import get_db
from arbiter.models.enums import ActorRole, DisputeStatus
from arbiter.modules.authorization.dependencies import require_role
from arbiter.modules.authorization.scoper import ActorScope
from arbiter.modules.cache.cache import DisputeCache, get_cache
from arbiter.modules.dispute.arbitration_service import ArbitrationService
from arbiter.modules.dispute.schemas import (
    AssignArbitratorRequest,
    DisputeDetail,
    DisputeListResponse,
    DisputeResponse,
    ResolveRequest,
    ReviewRequest,
)
from arbiter.modules.notifications.dispatcher import NotificationDispatcher, get_notifier
from arbiter.modules.statistics.schemas import ArbitrationStats, ArbitratorStats
from arbiter.modules.statistics.service import StatisticsService
from arbiter.schemas.responses import ApiResponse, PaginationMeta

router = APIRouter(prefix="/arbitration", tags=["arbitration"])

require_arbitration_role = require_role(ActorRole.ADMIN, ActorRole.ARBITRATOR)


def get_arbitration_service(
    db: AsyncSession = Depends(get_db),
    cache: DisputeCache = Depends(get_cache),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ArbitrationService:
    return ArbitrationService(db, cache=cache, notifier=notifier)


@router.get("/cases", response_model=ApiResponse[DisputeListResponse])
async def list_cases(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: DisputeStatus | None = Query(None),
    scope: ActorScope = Depends(require_arbitration_role),
    svc: ArbitrationService = Depends(get_arbitration_service),
):
    items, total = await svc.list_cases(scope, page=page, limit=limit, status=status)
    return ApiResponse(
        data=DisputeListResponse(
            items=[DisputeResponse.model_validate(d) for d in items],
            pagination=PaginationMeta.build(page, limit, total),
        )
    )


@router.get("/cases/{dispute_id}", response_model=ApiResponse[DisputeDetail])
async def get_case(
    dispute_id: uuid.UUID,
    scope: ActorScope = Depends(require_arbitration_role),
    svc: ArbitrationService = Depends(get_arbitration_service),
):
    """Case detail with evidence, comments, and history."""
    return ApiResponse(data=await svc.get_case(dispute_id, scope))


@router.post("/cases/{dispute_id}/assign", response_model=ApiResponse[DisputeResponse])
async def assign_arbitrator(
    dispute_id: uuid.UUID,
    body: AssignArbitratorRequest,
    scope: ActorScope = Depends(require_arbitration_role),
    svc: ArbitrationService = Depends(get_arbitration_service),
):
    dispute = await svc.assign_arbitrator(dispute_id, body.arbitrator_id, scope)
    return ApiResponse(
        data=DisputeResponse.model_validate(dispute),
        message="Arbitrator assigned successfully",
    )


@router.post("/cases/{dispute_id}/review", response_model=ApiResponse[DisputeResponse])
async def review_case(
    dispute_id: uuid.UUID,
    body: ReviewRequest,
    scope: ActorScope = Depends(require_arbitration_role),
    svc: ArbitrationService = Depends(get_arbitration_service),
):
    dispute = await svc.review_case(dispute_id, scope, notes=body.notes)
    return ApiResponse(
        data=DisputeResponse.model_validate(dispute),
        message="Case moved to review",
    )


@router.post("/cases/{dispute_id}/resolve", response_model=ApiResponse[DisputeResponse])
async def resolve_case(
    dispute_id: uuid.UUID,
    body: ResolveRequest,
    scope: ActorScope = Depends(require_arbitration_role),
    svc: ArbitrationService = Depends(get_arbitration_service),
):
    dispute = await svc.resolve_case(dispute_id, body, scope)
    return ApiResponse(
        data=DisputeResponse.model_validate(dispute),
        message="Case resolved successfully",
    )


@router.get(
    "/stats",
    response_model=ApiResponse[ArbitrationStats | ArbitratorStats],
)
async def arbitration_stats(
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    scope: ActorScope = Depends(require_arbitration_role),
    db: AsyncSession = Depends(get_db),
    cache: DisputeCache = Depends(get_cache),
):
    """Admins get platform-wide figures; arbitrators get their own caseload."""
    svc = StatisticsService(db, cache)
    if scope.is_admin:
        stats = await svc.arbitration_stats(scope, from_date, to_date)
    else:
        stats = await svc.arbitrator_stats(scope.actor_id, scope, from_date, to_date)
    return ApiResponse(data=stats)
