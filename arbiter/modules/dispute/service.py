"""Dispute service: creation, party-driven edits, evidence, comments, cancel."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import or_, select

from arbiter.database.transaction import unit_of_work
from arbiter.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
)
from arbiter.models.comment import Comment
from arbiter.models.dispute import Dispute
from arbiter.models.dispute_history import DisputeHistory
from arbiter.models.enums import DisputeStatus, TransactionStatus
from arbiter.models.evidence import Evidence
from arbiter.models.profile import Profile
from arbiter.modules.authorization.scoper import (
    ActorScope,
    require,
    scope_case_query,
    scope_dispute_query,
)
from arbiter.modules.dispute.constants import (
    ADMIN_ONLY_FIELDS,
    HISTORY_CANCELED,
    HISTORY_COMMENT_ADDED,
    HISTORY_CREATED,
    HISTORY_EVIDENCE_ADDED,
    HISTORY_UPDATED,
    NON_TERMINAL_STATUSES,
)
from arbiter.modules.dispute.lifecycle import (
    DisputeLifecycle,
    ensure_not_terminal,
    ensure_transition,
)
from arbiter.modules.dispute.schemas import (
    CommentCreate,
    DisputeCreate,
    DisputeDetail,
    DisputeUpdate,
    EvidenceCreate,
)
from arbiter.modules.notifications import messages
from arbiter.modules.tenancy.service import TenancyService

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    "session_id",
    "source_account_name",
    "source_bank",
    "beneficiary_account_name",
    "beneficiary_bank",
)


class DisputeService(DisputeLifecycle):

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def _resolve_business(self, data: DisputeCreate, scope: ActorScope) -> uuid.UUID | None:
        if scope.is_admin:
            if data.business_id is None:
                return None
            business = await TenancyService(self.db).find_business_by_id(data.business_id)
            if business is None:
                raise NotFoundException(f"Business {data.business_id} not found")
            return business.id
        if scope.business_id is None:
            raise ForbiddenException("A business is required to create disputes")
        return scope.business_id

    async def create_dispute(self, data: DisputeCreate, scope: ActorScope) -> Dispute:
        """Open a new dispute, optionally against a transaction and with evidence."""
        require(not scope.is_arbitrator, "Arbitrators cannot create disputes")
        business_id = await self._resolve_business(data, scope)

        initiator_profile_id = None
        counterparty_profile_id = None
        if business_id is not None:
            tenancy = TenancyService(self.db)
            initiator = await tenancy.find_profile_by_email(data.initiator_email, business_id)
            if initiator is None:
                raise NotFoundException("Initiator profile not found for this business")
            initiator_profile_id = initiator.id
            counterparty = await tenancy.find_profile_by_email(data.counterparty_email, business_id)
            counterparty_profile_id = counterparty.id if counterparty else None

        async with unit_of_work(self.db):
            snapshot = {field: getattr(data, field) for field in SNAPSHOT_FIELDS}
            if data.transaction_id is not None:
                transaction = await self._lock_transaction(data.transaction_id)

                open_stmt = select(Dispute.id).where(
                    Dispute.transaction_id == transaction.id,
                    Dispute.status.in_(NON_TERMINAL_STATUSES),
                )
                if business_id is None:
                    open_stmt = open_stmt.where(Dispute.business_id.is_(None))
                else:
                    open_stmt = open_stmt.where(Dispute.business_id == business_id)
                existing = await self.db.execute(open_stmt.limit(1))
                if existing.scalar_one_or_none() is not None:
                    raise ConflictException("An open dispute already exists for this transaction")

                for field in SNAPSHOT_FIELDS:
                    if snapshot[field] is None:
                        snapshot[field] = getattr(transaction, field)
                transaction.status = TransactionStatus.DISPUTED

            dispute = Dispute(
                business_id=business_id,
                transaction_id=data.transaction_id,
                initiator_email=data.initiator_email,
                counterparty_email=data.counterparty_email,
                initiator_profile_id=initiator_profile_id,
                counterparty_profile_id=counterparty_profile_id,
                created_by=scope.actor_id,
                reason=data.reason,
                description=data.description,
                amount=data.amount,
                status=DisputeStatus.OPEN,
                **snapshot,
            )
            self.db.add(dispute)
            await self.db.flush()

            self._append_history(
                dispute.id, scope.actor_id, HISTORY_CREATED, f"Dispute created: {data.reason}"
            )
            if data.has_evidence:
                self.db.add(
                    Evidence(
                        dispute_id=dispute.id,
                        submitted_by=scope.actor_id,
                        evidence_type=data.evidence_type,
                        description=data.evidence_description,
                        file_path=data.evidence_file_path,
                        file_name=data.evidence_file_name,
                    )
                )
                self._append_history(
                    dispute.id,
                    scope.actor_id,
                    HISTORY_EVIDENCE_ADDED,
                    f"Initial evidence of type {data.evidence_type} submitted",
                )
            await self.db.flush()

        await self._after_commit(dispute, messages.dispute_created(dispute))
        logger.info("Dispute %s created by %s", dispute.id, scope.actor_id)
        return dispute

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_disputes(
        self,
        scope: ActorScope,
        page: int = 1,
        limit: int = 10,
        status: DisputeStatus | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> tuple[list[Dispute], int]:
        """Disputes visible to the caller, newest first."""
        stmt = scope_case_query(select(Dispute), scope)
        if status is not None:
            stmt = stmt.where(Dispute.status == status)
        if from_date is not None:
            stmt = stmt.where(Dispute.created_at >= from_date)
        if to_date is not None:
            stmt = stmt.where(Dispute.created_at <= to_date)
        return await self._paginate(stmt, page, limit)

    async def get_dispute(self, dispute_id: uuid.UUID, scope: ActorScope) -> DisputeDetail:
        return await self._get_detail(dispute_id, scope, scope.can_view)

    async def list_by_profile(
        self,
        profile_id: uuid.UUID,
        scope: ActorScope,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Dispute], int]:
        """Disputes in which the profile is initiator or counterparty."""
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        profile = result.scalar_one_or_none()
        if profile is None or not scope.in_tenant(profile.business_id):
            raise NotFoundException(f"Profile {profile_id} not found")

        stmt = scope_dispute_query(
            select(Dispute).where(
                or_(
                    Dispute.initiator_profile_id == profile_id,
                    Dispute.counterparty_profile_id == profile_id,
                )
            ),
            scope,
        )
        return await self._paginate(stmt, page, limit)

    async def get_history(
        self, dispute_id: uuid.UUID, scope: ActorScope
    ) -> list[DisputeHistory]:
        dispute = await self._get_scoped_dispute(dispute_id, scope)
        require(scope.can_view_case(dispute), "Not authorized to view this dispute")
        result = await self.db.execute(
            select(DisputeHistory)
            .where(DisputeHistory.dispute_id == dispute_id)
            .order_by(DisputeHistory.action_date.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update_dispute(
        self, dispute_id: uuid.UUID, data: DisputeUpdate, scope: ActorScope
    ) -> Dispute:
        """Apply a field diff to a non-terminal dispute."""
        changes = data.model_dump(exclude_unset=True)
        restricted = sorted(ADMIN_ONLY_FIELDS.intersection(changes))
        if restricted and not scope.is_admin:
            raise ForbiddenException(
                f"Only administrators can modify: {', '.join(restricted)}"
            )
        if "resolution" in changes:
            raise InvalidStateException("Use the resolve operation to set a resolution")

        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            require(
                scope.is_admin or scope.is_initiator(dispute),
                "Only the initiator or an administrator can update this dispute",
            )
            ensure_not_terminal(dispute, "update")

            if changes.get("arbitrator_id") is not None:
                await self._get_eligible_arbitrator(changes["arbitrator_id"])

            for field, value in changes.items():
                setattr(dispute, field, value)
            self._append_history(
                dispute.id,
                scope.actor_id,
                HISTORY_UPDATED,
                f"Updated fields: {', '.join(sorted(changes))}",
            )
            await self.db.flush()

        await self._after_commit(dispute)
        logger.info("Dispute %s updated by %s", dispute.id, scope.actor_id)
        return dispute

    async def add_evidence(
        self, dispute_id: uuid.UUID, data: EvidenceCreate, scope: ActorScope
    ) -> Evidence:
        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            require(
                scope.is_admin or scope.is_party_to(dispute),
                "Only the parties or an administrator can submit evidence",
            )
            ensure_not_terminal(dispute, "add evidence to")

            evidence = Evidence(
                dispute_id=dispute.id,
                submitted_by=scope.actor_id,
                evidence_type=data.evidence_type,
                description=data.description,
                file_path=data.file_path,
                file_name=data.file_name,
            )
            self.db.add(evidence)
            self._append_history(
                dispute.id,
                scope.actor_id,
                HISTORY_EVIDENCE_ADDED,
                f"Evidence of type {data.evidence_type} submitted",
            )
            await self.db.flush()

        await self._after_commit(dispute)
        await self.db.refresh(evidence)
        logger.info("Evidence %s added to dispute %s", evidence.id, dispute.id)
        return evidence

    async def add_comment(
        self, dispute_id: uuid.UUID, data: CommentCreate, scope: ActorScope
    ) -> Comment:
        """Comments are accepted in every state, terminal included."""
        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            require(scope.can_comment(dispute), "Not authorized to comment on this dispute")

            comment = Comment(
                dispute_id=dispute.id,
                created_by=scope.actor_id,
                comment=data.comment,
                is_private=data.is_private,
            )
            self.db.add(comment)
            self._append_history(
                dispute.id,
                scope.actor_id,
                HISTORY_COMMENT_ADDED,
                "Private comment added" if data.is_private else "Public comment added",
            )
            await self.db.flush()

        await self._after_commit(dispute)
        await self.db.refresh(comment)
        return comment

    async def cancel_dispute(self, dispute_id: uuid.UUID, scope: ActorScope) -> Dispute:
        """Cancel a non-terminal dispute and release its transaction."""
        async with unit_of_work(self.db):
            dispute = await self._lock_dispute(dispute_id, scope)
            require(
                scope.is_admin or scope.is_initiator(dispute),
                "Only the initiator or an administrator can cancel this dispute",
            )
            ensure_transition(dispute.status, DisputeStatus.CANCELED)

            dispute.status = DisputeStatus.CANCELED
            if dispute.transaction_id is not None:
                transaction = await self._lock_transaction(dispute.transaction_id)
                if transaction.status == TransactionStatus.DISPUTED:
                    transaction.status = TransactionStatus.COMPLETED
            self._append_history(
                dispute.id, scope.actor_id, HISTORY_CANCELED, "Dispute canceled"
            )
            await self.db.flush()

        await self._after_commit(dispute)
        logger.info("Dispute %s canceled by %s", dispute.id, scope.actor_id)
        return dispute
