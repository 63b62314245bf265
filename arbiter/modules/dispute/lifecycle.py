"""Shared lifecycle primitives for the dispute and arbitration services.

Both services mutate disputes the same way: lock the row inside a unit of
work, check the state-machine guard, write the change plus exactly one
history row, commit, then invalidate the cached case detail and hand any
notifications to the dispatcher.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arbiter.config import settings
from arbiter.exceptions import ForbiddenException, InvalidStateException, NotFoundException
from arbiter.models.api_key import ApiKey
from arbiter.models.dispute import Dispute
from arbiter.models.dispute_history import DisputeHistory
from arbiter.models.enums import ActorRole, DisputeStatus
from arbiter.models.transaction import Transaction
from arbiter.modules.authorization.scoper import ActorScope, scope_dispute_query
from arbiter.modules.cache.cache import DisputeCache
from arbiter.modules.dispute.constants import (
    CACHE_KEY_CASE,
    TERMINAL_STATUSES,
    VALID_DISPUTE_TRANSITIONS,
)
from arbiter.modules.dispute.schemas import (
    CommentResponse,
    DisputeDetail,
    DisputeResponse,
    EvidenceResponse,
    HistoryResponse,
)
from arbiter.modules.notifications.dispatcher import NotificationDispatcher
from arbiter.modules.notifications.messages import EmailNotification

logger = logging.getLogger(__name__)

ELIGIBLE_ARBITRATOR_ROLES = (ActorRole.ARBITRATOR, ActorRole.ADMIN)


def ensure_transition(current: DisputeStatus, target: DisputeStatus) -> None:
    """Raise InvalidStateException unless the state machine allows the move."""
    allowed = VALID_DISPUTE_TRANSITIONS.get(current, [])
    if target not in allowed:
        raise InvalidStateException(
            f"Cannot move a dispute from '{current.value}' to '{target.value}'"
        )


def ensure_not_terminal(dispute: Dispute, action: str) -> None:
    if dispute.status in TERMINAL_STATUSES:
        raise InvalidStateException(
            f"Cannot {action} a dispute that is already {dispute.status.value}"
        )


class DisputeLifecycle:
    """Base class holding the persistence, cache, and notification seams."""

    def __init__(
        self,
        db: AsyncSession,
        cache: DisputeCache | None = None,
        notifier: NotificationDispatcher | None = None,
    ):
        self.db = db
        self.cache = cache
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _lock_dispute(self, dispute_id: uuid.UUID, scope: ActorScope) -> Dispute:
        """Load and row-lock a dispute inside the caller's tenant.

        Must run inside a unit of work; the lock is held until commit.
        """
        stmt = scope_dispute_query(
            select(Dispute).where(Dispute.id == dispute_id), scope
        ).with_for_update()
        result = await self.db.execute(stmt)
        dispute = result.scalar_one_or_none()
        if dispute is None:
            raise NotFoundException(f"Dispute {dispute_id} not found")
        return dispute

    async def _get_scoped_dispute(self, dispute_id: uuid.UUID, scope: ActorScope) -> Dispute:
        stmt = scope_dispute_query(select(Dispute).where(Dispute.id == dispute_id), scope)
        result = await self.db.execute(stmt)
        dispute = result.scalar_one_or_none()
        if dispute is None:
            raise NotFoundException(f"Dispute {dispute_id} not found")
        return dispute

    async def _lock_transaction(self, transaction_id: uuid.UUID) -> Transaction:
        result = await self.db.execute(
            select(Transaction).where(Transaction.id == transaction_id).with_for_update()
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise NotFoundException(f"Transaction {transaction_id} not found")
        return transaction

    async def _get_eligible_arbitrator(self, arbitrator_id: uuid.UUID) -> ApiKey:
        result = await self.db.execute(
            select(ApiKey).where(ApiKey.id == arbitrator_id, ApiKey.is_active.is_(True))
        )
        arbitrator = result.scalar_one_or_none()
        if arbitrator is None:
            raise NotFoundException(f"Arbitrator {arbitrator_id} not found")
        if arbitrator.role not in ELIGIBLE_ARBITRATOR_ROLES:
            raise InvalidStateException("Selected user is not an arbitrator")
        return arbitrator

    async def _arbitrator_email(self, arbitrator_id: uuid.UUID | None) -> str | None:
        if arbitrator_id is None:
            return None
        result = await self.db.execute(select(ApiKey.email).where(ApiKey.id == arbitrator_id))
        return result.scalar_one_or_none()

    async def _paginate(
        self, stmt: Select, page: int, limit: int
    ) -> tuple[list[Dispute], int]:
        """Run a filtered dispute query with a matching count, newest first."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(Dispute.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Case detail
    # ------------------------------------------------------------------

    async def _load_detail(self, dispute_id: uuid.UUID) -> DisputeDetail | None:
        result = await self.db.execute(
            select(Dispute)
            .options(
                selectinload(Dispute.evidence),
                selectinload(Dispute.comments),
                selectinload(Dispute.history),
                selectinload(Dispute.transaction),
                selectinload(Dispute.arbitrator),
            )
            .where(Dispute.id == dispute_id)
        )
        dispute = result.scalar_one_or_none()
        if dispute is None:
            return None

        base = DisputeResponse.model_validate(dispute).model_dump()
        return DisputeDetail(
            **base,
            transaction_status=dispute.transaction.status if dispute.transaction else None,
            arbitrator_email=dispute.arbitrator.email if dispute.arbitrator else None,
            evidence=[
                EvidenceResponse.model_validate(e)
                for e in sorted(dispute.evidence, key=lambda e: e.created_at, reverse=True)
            ],
            comments=[
                CommentResponse.model_validate(c)
                for c in sorted(dispute.comments, key=lambda c: c.created_at, reverse=True)
            ],
            history=[
                HistoryResponse.model_validate(h)
                for h in sorted(dispute.history, key=lambda h: h.action_date, reverse=True)
            ],
        )

    async def _get_detail(
        self,
        dispute_id: uuid.UUID,
        scope: ActorScope,
        can_view: Callable[[Any], bool],
    ) -> DisputeDetail:
        """Read-through case detail, authorized on both cached and fresh data."""
        key = CACHE_KEY_CASE.format(dispute_id=dispute_id)
        detail = None
        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                detail = DisputeDetail.model_validate(cached)

        if detail is None:
            detail = await self._load_detail(dispute_id)
            if detail is None:
                raise NotFoundException(f"Dispute {dispute_id} not found")
            if self.cache is not None:
                await self.cache.set(
                    key, detail.model_dump(mode="json"), ttl=settings.cache_ttl_case_seconds
                )

        if not scope.in_tenant(detail.business_id):
            raise NotFoundException(f"Dispute {dispute_id} not found")
        if not can_view(detail):
            raise ForbiddenException("Not authorized to view this dispute")

        if not (scope.is_admin or scope.is_arbitrator):
            detail.comments = [c for c in detail.comments if not c.is_private]
        return detail

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _append_history(
        self,
        dispute_id: uuid.UUID,
        actor_id: uuid.UUID,
        action: str,
        details: str | None = None,
    ) -> DisputeHistory:
        entry = DisputeHistory(
            dispute_id=dispute_id,
            created_by=actor_id,
            action=action,
            details=details,
        )
        self.db.add(entry)
        return entry

    async def _after_commit(
        self,
        dispute: Dispute,
        notifications: Iterable[EmailNotification] = (),
    ) -> None:
        """Post-commit work: drop the cached detail, notify, then refresh.

        A failed reload never suppresses notifications for a committed change.
        """
        if self.cache is not None:
            await self.cache.delete(CACHE_KEY_CASE.format(dispute_id=dispute.id))
        notifications = list(notifications)
        if notifications and self.notifier is not None:
            await self.notifier.dispatch(notifications)
        await self.db.refresh(dispute)
