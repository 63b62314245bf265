"""Arbitration service: case queue, assignment, review, and resolution."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select

from arbiter.database.transaction import unit_of_work
from arbiter.models.comment import Comment
from arbiter.models.dispute import Dispute
from arbiter.models.enums import DisputeStatus
from arbiter.modules.authorization.scoper import ActorScope, require, scope_case_query
from arbiter.modules.dispute.constants import (
    HISTORY_ARBITRATOR_ASSIGNED,
    HISTORY_RESOLVED,
    HISTORY_REVIEW_STARTED,
    RESOLUTION_TRANSACTION_STATUS,
)
from arbiter.modules.dispute.lifecycle import (
    DisputeLifecycle,
    ensure_not_terminal,
    ensure_transition,
)
from arbiter.modules.dispute.schemas import DisputeDetail, ResolveRequest
from arbiter.modules.notifications import messages

logger = logging.getLogger(__name__)


def _humanize(value) -> str:
    return value.value.replace("_", " ")


class ArbitrationService(DisputeLifecycle):

    async def list_cases(
        self,
        scope: ActorScope,
        page: int = 1,
        limit: int = 10,
        status: DisputeStatus | None = None,
    ) -> tuple[list[Dispute], int]:
        """Cases the caller may work on, newest first."""
        stmt = scope_case_query(select(Dispute), scope)
        if status is not None:
            stmt = stmt.where(Dispute.status == status)
        return await self._paginate(stmt, page, limit)

    async def get_case(self, dispute_id: uuid.UUID, scope: ActorScope) -> DisputeDetail:
        return await self._get_detail(dispute_id, scope, scope.can_view_case)

    async def assign_arbitrator(
        self, dispute_id: uuid.UUID, arbitrator_id: uuid.UUID, scope: ActorScope
    ) -> Dispute:
        """Set the case's arbitrator. Status is left unchanged.

        Admins may assign any eligible arbitrator; arbitrators may only claim
        an unclaimed case (or re-confirm their own) for themselves.
        """
        require(
            scope.is_admin or arbitrator_id == scope.actor_id,
            "Arbitrators can only assign cases to themselves",
        )

        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            ensure_not_terminal(dispute, "assign an arbitrator to")
            if not scope.is_admin:
                require(
                    dispute.arbitrator_id in (None, scope.actor_id),
                    "This case is already assigned to another arbitrator",
                )

            arbitrator = await self._get_eligible_arbitrator(arbitrator_id)
            dispute.arbitrator_id = arbitrator.id
            self._append_history(
                dispute.id,
                scope.actor_id,
                HISTORY_ARBITRATOR_ASSIGNED,
                f"Arbitrator {arbitrator.email} assigned",
            )
            await self.db.flush()

        await self._after_commit(
            dispute, messages.arbitrator_assigned(dispute, arbitrator.email)
        )
        logger.info("Dispute %s assigned to arbitrator %s", dispute.id, arbitrator.id)
        return dispute

    async def review_case(
        self, dispute_id: uuid.UUID, scope: ActorScope, notes: str | None = None
    ) -> Dispute:
        """Move a case to under_review, recording notes as a private comment."""
        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            require(
                scope.is_admin or scope.is_assigned_arbitrator(dispute),
                "Only an administrator or the assigned arbitrator can review this case",
            )
            ensure_transition(dispute.status, DisputeStatus.UNDER_REVIEW)

            dispute.status = DisputeStatus.UNDER_REVIEW
            self._append_history(
                dispute.id, scope.actor_id, HISTORY_REVIEW_STARTED, "Case review started"
            )
            if notes:
                self.db.add(
                    Comment(
                        dispute_id=dispute.id,
                        created_by=scope.actor_id,
                        comment=notes,
                        is_private=True,
                    )
                )
            await self.db.flush()

        await self._after_commit(dispute)
        logger.info("Dispute %s under review by %s", dispute.id, scope.actor_id)
        return dispute

    async def resolve_case(
        self, dispute_id: uuid.UUID, data: ResolveRequest, scope: ActorScope
    ) -> Dispute:
        """Resolve a case and settle its linked transaction in one commit."""
        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            require(
                scope.is_admin or scope.is_assigned_arbitrator(dispute),
                "Only an administrator or the assigned arbitrator can resolve this case",
            )
            ensure_transition(dispute.status, DisputeStatus.RESOLVED)

            dispute.status = DisputeStatus.RESOLVED
            dispute.resolution = data.resolution
            dispute.resolution_notes = data.resolution_notes
            dispute.resolution_date = func.now()

            if dispute.transaction_id is not None:
                transaction = await self._lock_transaction(dispute.transaction_id)
                transaction.status = RESOLUTION_TRANSACTION_STATUS[data.resolution]

            self._append_history(
                dispute.id,
                scope.actor_id,
                HISTORY_RESOLVED,
                f"Resolved {_humanize(data.resolution)}",
            )
            self.db.add(
                Comment(
                    dispute_id=dispute.id,
                    created_by=scope.actor_id,
                    comment=(
                        f"Dispute resolved {_humanize(data.resolution)}. "
                        f"Notes: {data.resolution_notes}"
                    ),
                    is_private=False,
                )
            )
            arbitrator_email = await self._arbitrator_email(dispute.arbitrator_id)
            await self.db.flush()

        await self._after_commit(
            dispute, messages.dispute_resolved(dispute, arbitrator_email)
        )
        logger.info("Dispute %s resolved (%s) by %s", dispute.id, data.resolution.value, scope.actor_id)
        return dispute
