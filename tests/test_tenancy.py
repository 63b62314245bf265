"""Tests for TenancyService: businesses, profiles, and API key issuance."""

from __future__ import annotations

import re
import uuid
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from arbiter.exceptions import ConflictException, NotFoundException, ValidationException
from arbiter.models.api_key import ApiKey
from arbiter.models.business import Business
from arbiter.models.enums import ActorRole
from arbiter.modules.tenancy.schemas import (
    ApiKeyCreate,
    BusinessCreate,
    ProfileCreate,
    WhitelistedIpCreate,
)
from arbiter.modules.tenancy.service import TenancyService
from factories import added, scalar_result


@pytest.fixture
def service(mock_db):
    return TenancyService(mock_db)


class TestBusinesses:
    @pytest.mark.asyncio
    async def test_create_business(self, service, mock_db):
        mock_db.execute.side_effect = [scalar_result(None)]

        business = await service.create_business(
            BusinessCreate(name="Shop Ltd", email="ops@shop.com")
        )

        assert isinstance(business, Business)
        assert added(mock_db, Business) == [business]
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_business_conflicts(self, service, mock_db):
        mock_db.execute.side_effect = [scalar_result(uuid.uuid4())]

        with pytest.raises(ConflictException):
            await service.create_business(BusinessCreate(name="Shop Ltd", email="ops@shop.com"))

        mock_db.add.assert_not_called()
        mock_db.rollback.assert_awaited_once()


class TestProfiles:
    @pytest.mark.asyncio
    async def test_profile_requires_business(self, service, mock_db):
        mock_db.execute.side_effect = [scalar_result(None)]

        with pytest.raises(NotFoundException, match="Business"):
            await service.create_profile(uuid.uuid4(), ProfileCreate(email="a@x.com"))

    @pytest.mark.asyncio
    async def test_duplicate_profile_conflicts(self, service, mock_db):
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(id=uuid.uuid4())),
            scalar_result(MagicMock()),
        ]

        with pytest.raises(ConflictException):
            await service.create_profile(uuid.uuid4(), ProfileCreate(email="a@x.com"))

    @pytest.mark.asyncio
    async def test_profile_lookup_is_case_insensitive(self, service, mock_db):
        mock_db.execute.side_effect = [scalar_result(None)]

        await service.find_profile_by_email(" A@X.com ", uuid.uuid4())

        stmt = mock_db.execute.call_args.args[0]
        assert "lower(profiles.email)" in str(stmt.whereclause)


class TestApiKeys:
    @pytest.mark.asyncio
    async def test_issues_hex_key_with_whitelist(self, service, mock_db):
        business_id = uuid.uuid4()
        mock_db.execute.side_effect = [scalar_result(MagicMock(id=business_id))]

        api_key = await service.create_api_key(
            ApiKeyCreate(
                name="Shop integration",
                email="dev@shop.com",
                business_id=business_id,
                whitelisted_ips=[WhitelistedIpCreate(ip_address="10.0.0.1")],
            )
        )

        assert isinstance(api_key, ApiKey)
        assert re.fullmatch(r"[0-9a-f]{64}", api_key.key)
        assert api_key.role == ActorRole.USER
        assert [ip.ip_address for ip in api_key.whitelisted_ips] == ["10.0.0.1"]

    @pytest.mark.asyncio
    async def test_user_key_requires_business(self, service, mock_db):
        with pytest.raises(ValidationException, match="business"):
            await service.create_api_key(ApiKeyCreate(name="k", email="dev@shop.com"))

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_ips_rejected(self, service):
        body = ApiKeyCreate(
            name="k",
            email="arb@x.com",
            role=ActorRole.ARBITRATOR,
            whitelisted_ips=[
                WhitelistedIpCreate(ip_address="10.0.0.1"),
                WhitelistedIpCreate(ip_address="10.0.0.1"),
            ],
        )
        with pytest.raises(ValidationException, match="Duplicate"):
            await service.create_api_key(body)

    def test_invalid_ip_fails_validation(self):
        with pytest.raises(ValidationError):
            WhitelistedIpCreate(ip_address="999.1.1.1")
