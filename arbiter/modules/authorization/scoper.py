"""Authorization Scoper: tenant and case-relationship predicates.

Every dispute query and command is narrowed through an ``ActorScope``. The
predicates accept anything shaped like a dispute (an ORM ``Dispute`` or a
cached ``DisputeDetail``) so they apply equally to fresh and cached reads.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, and_, or_

from arbiter.exceptions import ForbiddenException
from arbiter.models.dispute import Dispute
from arbiter.models.enums import ActorRole
from arbiter.modules.authorization.auth import AuthenticatedActor
from arbiter.modules.dispute.constants import NON_TERMINAL_STATUSES, TERMINAL_STATUSES


@dataclass(frozen=True)
class ActorScope:
    actor_id: uuid.UUID
    email: str
    role: ActorRole
    business_id: uuid.UUID | None = None

    @classmethod
    def from_actor(cls, actor: AuthenticatedActor) -> ActorScope:
        return cls(
            actor_id=actor.id,
            email=actor.email,
            role=ActorRole(actor.role),
            business_id=actor.business_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_arbitrator(self) -> bool:
        return self.role == ActorRole.ARBITRATOR

    @property
    def tenant_id(self) -> uuid.UUID | None:
        """Business the actor is confined to, or None when unconfined."""
        if self.is_admin:
            return None
        return self.business_id

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def in_tenant(self, business_id: uuid.UUID | None) -> bool:
        tenant = self.tenant_id
        return tenant is None or business_id == tenant

    def is_initiator(self, dispute: Any) -> bool:
        return (
            _same_email(dispute.initiator_email, self.email)
            or dispute.created_by == self.actor_id
        )

    def is_counterparty(self, dispute: Any) -> bool:
        return _same_email(dispute.counterparty_email, self.email)

    def is_party_to(self, dispute: Any) -> bool:
        return self.is_initiator(dispute) or self.is_counterparty(dispute)

    def is_assigned_arbitrator(self, dispute: Any) -> bool:
        return dispute.arbitrator_id is not None and dispute.arbitrator_id == self.actor_id

    def can_view(self, dispute: Any) -> bool:
        return self.is_admin or self.is_party_to(dispute) or self.is_assigned_arbitrator(dispute)

    def can_view_case(self, dispute: Any) -> bool:
        """Dispute visibility widened with unclaimed, still-open cases for arbitrators."""
        if self.can_view(dispute):
            return True
        return (
            self.is_arbitrator
            and dispute.arbitrator_id is None
            and dispute.status not in TERMINAL_STATUSES
        )

    def can_comment(self, dispute: Any) -> bool:
        if self.is_admin or self.is_party_to(dispute):
            return True
        return self.is_arbitrator and dispute.arbitrator_id in (None, self.actor_id)


def require(condition: bool, message: str) -> None:
    """Raise ForbiddenException unless ``condition`` holds."""
    if not condition:
        raise ForbiddenException(message)


def scope_dispute_query(stmt: Select, scope: ActorScope) -> Select:
    """Confine a dispute query to the caller's tenant."""
    tenant = scope.tenant_id
    if tenant is not None:
        stmt = stmt.where(Dispute.business_id == tenant)
    return stmt


def scope_case_query(stmt: Select, scope: ActorScope) -> Select:
    """Confine an arbitration case query to what the caller may work on.

    Arbitrators see cases assigned to them plus unclaimed cases that are
    still open or under review.
    """
    stmt = scope_dispute_query(stmt, scope)
    if scope.is_arbitrator:
        stmt = stmt.where(
            or_(
                Dispute.arbitrator_id == scope.actor_id,
                and_(
                    Dispute.arbitrator_id.is_(None),
                    Dispute.status.in_(NON_TERMINAL_STATUSES),
                ),
            )
        )
    return stmt


def _same_email(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()
