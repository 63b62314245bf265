"""Dispute API router."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arbiter.database.session import get_db
from arbiter.models.enums import DisputeStatus
from arbiter.modules.authorization.dependencies import get_actor_scope
from arbiter.modules.authorization.scoper import ActorScope
from arbiter.modules.cache.cache import DisputeCache, get_cache
from arbiter.modules.dispute.schemas import (
    CommentCreate,
    CommentResponse,
    DisputeCreate,
    DisputeDetail,
    DisputeListResponse,
    DisputeResponse,
    DisputeUpdate,
    EvidenceCreate,
    EvidenceResponse,
    HistoryResponse,
)
from arbiter.modules.dispute.service import DisputeService
from arbiter.modules.notifications.dispatcher import NotificationDispatcher, get_notifier
from arbiter.modules.statistics.schemas import DisputeStats
from arbiter.modules.statistics.service import StatisticsService
from arbiter.schemas.responses import ApiResponse, PaginationMeta

router = APIRouter(prefix="/disputes", tags=["disputes"])


def get_dispute_service(
    db: AsyncSession = Depends(get_db),
    cache: DisputeCache = Depends(get_cache),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> DisputeService:
    return DisputeService(db, cache=cache, notifier=notifier)


def _page(items, total: int, page: int, limit: int) -> DisputeListResponse:
    return DisputeListResponse(
        items=[DisputeResponse.model_validate(d) for d in items],
        pagination=PaginationMeta.build(page, limit, total),
    )


# ---------------------------------------------------------------------------
# Dispute CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=ApiResponse[DisputeResponse], status_code=201)
async def create_dispute(
    body: DisputeCreate,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    """Open a dispute, optionally against a transaction."""
    dispute = await svc.create_dispute(body, scope)
    return ApiResponse(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute created successfully",
    )


@router.get("/", response_model=ApiResponse[DisputeListResponse])
async def list_disputes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: DisputeStatus | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    items, total = await svc.list_disputes(
        scope, page=page, limit=limit, status=status, from_date=from_date, to_date=to_date
    )
    return ApiResponse(data=_page(items, total, page, limit))


@router.get("/stats", response_model=ApiResponse[DisputeStats])
async def dispute_stats(
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    scope: ActorScope = Depends(get_actor_scope),
    db: AsyncSession = Depends(get_db),
    cache: DisputeCache = Depends(get_cache),
):
    stats = await StatisticsService(db, cache).dispute_stats(scope, from_date, to_date)
    return ApiResponse(data=stats)


@router.get("/profiles/{profile_id}", response_model=ApiResponse[DisputeListResponse])
async def list_profile_disputes(
    profile_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    """Disputes where the profile is initiator or counterparty."""
    items, total = await svc.list_by_profile(profile_id, scope, page=page, limit=limit)
    return ApiResponse(data=_page(items, total, page, limit))


@router.get("/{dispute_id}", response_model=ApiResponse[DisputeDetail])
async def get_dispute(
    dispute_id: uuid.UUID,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    return ApiResponse(data=await svc.get_dispute(dispute_id, scope))


@router.put("/{dispute_id}", response_model=ApiResponse[DisputeResponse])
async def update_dispute(
    dispute_id: uuid.UUID,
    body: DisputeUpdate,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    dispute = await svc.update_dispute(dispute_id, body, scope)
    return ApiResponse(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute updated successfully",
    )


# ---------------------------------------------------------------------------
# Evidence, comments, history
# ---------------------------------------------------------------------------


@router.post(
    "/{dispute_id}/evidence",
    response_model=ApiResponse[EvidenceResponse],
    status_code=201,
)
async def add_evidence(
    dispute_id: uuid.UUID,
    body: EvidenceCreate,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    evidence = await svc.add_evidence(dispute_id, body, scope)
    return ApiResponse(
        data=EvidenceResponse.model_validate(evidence),
        message="Evidence added successfully",
    )


@router.post(
    "/{dispute_id}/comments",
    response_model=ApiResponse[CommentResponse],
    status_code=201,
)
async def add_comment(
    dispute_id: uuid.UUID,
    body: CommentCreate,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    comment = await svc.add_comment(dispute_id, body, scope)
    return ApiResponse(
        data=CommentResponse.model_validate(comment),
        message="Comment added successfully",
    )


@router.get("/{dispute_id}/history", response_model=ApiResponse[list[HistoryResponse]])
async def get_history(
    dispute_id: uuid.UUID,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    history = await svc.get_history(dispute_id, scope)
    return ApiResponse(data=[HistoryResponse.model_validate(h) for h in history])


@router.post("/{dispute_id}/cancel", response_model=ApiResponse[DisputeResponse])
async def cancel_dispute(
    dispute_id: uuid.UUID,
    scope: ActorScope = Depends(get_actor_scope),
    svc: DisputeService = Depends(get_dispute_service),
):
    dispute = await svc.cancel_dispute(dispute_id, scope)
    return ApiResponse(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute canceled successfully",
    )
