"""Tests for the authorization scoper predicates and query scoping."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from arbiter.exceptions import ForbiddenException
from arbiter.models.dispute import Dispute
from arbiter.models.enums import ActorRole, DisputeStatus
from arbiter.modules.authorization.auth import AuthenticatedActor
from arbiter.modules.authorization.scoper import (
    ActorScope,
    require,
    scope_case_query,
    scope_dispute_query,
)
from factories import dispute_record, make_scope


class TestActorScope:
    def test_from_actor_copies_identity(self) -> None:
        actor = AuthenticatedActor(
            id=uuid.uuid4(), email="a@x.com", role=ActorRole.USER, business_id=uuid.uuid4()
        )
        scope = ActorScope.from_actor(actor)
        assert scope.actor_id == actor.id
        assert scope.tenant_id == actor.business_id

    def test_admin_is_unconfined(self) -> None:
        scope = make_scope(role=ActorRole.ADMIN, business_id=uuid.uuid4())
        assert scope.tenant_id is None
        assert scope.in_tenant(uuid.uuid4())
        assert scope.in_tenant(None)

    def test_user_confined_to_own_business(self) -> None:
        business_id = uuid.uuid4()
        scope = make_scope(business_id=business_id)
        assert scope.in_tenant(business_id)
        assert not scope.in_tenant(uuid.uuid4())
        assert not scope.in_tenant(None)

    def test_unbound_arbitrator_is_unconfined(self) -> None:
        scope = make_scope(role=ActorRole.ARBITRATOR)
        assert scope.in_tenant(uuid.uuid4())


class TestPredicates:
    def test_party_matching_ignores_case(self) -> None:
        scope = make_scope(email="A@X.COM")
        assert scope.is_initiator(dispute_record())
        assert not scope.is_counterparty(dispute_record())

    def test_creator_counts_as_initiator(self) -> None:
        scope = make_scope(email="ops@shop.com")
        assert scope.is_initiator(dispute_record(created_by=scope.actor_id))

    def test_view_rules(self) -> None:
        stranger = make_scope(email="c@x.com")
        assert not stranger.can_view(dispute_record())
        assert make_scope(role=ActorRole.ADMIN, email="c@x.com").can_view(dispute_record())
        assert make_scope(email="b@x.com").can_view(dispute_record())

    def test_assigned_arbitrator_can_view(self) -> None:
        scope = make_scope(role=ActorRole.ARBITRATOR, email="arb@x.com")
        assert scope.can_view(dispute_record(arbitrator_id=scope.actor_id))
        assert not scope.can_view(dispute_record(arbitrator_id=uuid.uuid4()))

    def test_unclaimed_terminal_case_hidden_from_arbitrators(self) -> None:
        scope = make_scope(role=ActorRole.ARBITRATOR, email="arb@x.com")
        assert scope.can_view_case(dispute_record())
        assert not scope.can_view_case(dispute_record(status=DisputeStatus.RESOLVED))

    def test_comment_rules(self) -> None:
        assert make_scope(role=ActorRole.ARBITRATOR, email="z@x.com").can_comment(dispute_record())
        assert not make_scope(email="z@x.com").can_comment(dispute_record())
        assert not make_scope(role=ActorRole.ARBITRATOR, email="z@x.com").can_comment(
            dispute_record(arbitrator_id=uuid.uuid4())
        )

    def test_require_raises_forbidden(self) -> None:
        require(True, "fine")
        with pytest.raises(ForbiddenException, match="nope"):
            require(False, "nope")


class TestQueryScoping:
    def test_user_query_filtered_by_business(self) -> None:
        stmt = scope_dispute_query(select(Dispute), make_scope(business_id=uuid.uuid4()))
        assert "disputes.business_id" in str(stmt.whereclause)

    def test_admin_query_unfiltered(self) -> None:
        stmt = scope_dispute_query(select(Dispute), make_scope(role=ActorRole.ADMIN))
        assert stmt.whereclause is None

    def test_arbitrator_case_query_limits_to_own_or_unclaimed(self) -> None:
        scope = make_scope(role=ActorRole.ARBITRATOR)
        where = str(scope_case_query(select(Dispute), scope).whereclause)
        assert "disputes.arbitrator_id =" in where
        assert "disputes.arbitrator_id IS NULL" in where
        assert "disputes.status IN" in where
