"""Tests for API-key authentication and the IP whitelist."""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from arbiter.exceptions import ForbiddenException, UnauthorizedException
from arbiter.models.enums import ActorRole
from arbiter.modules.authorization.auth import client_ip, get_current_actor
from factories import scalar_result


def _request(headers=None, host="10.0.0.1"):
    request = MagicMock()
    request.headers = headers or {}
    request.client = SimpleNamespace(host=host)
    request.state = SimpleNamespace()
    return request


def _api_key(role=ActorRole.USER, business_id=None, ips=("10.0.0.1",)):
    key = MagicMock()
    key.id = uuid.uuid4()
    key.email = "dev@shop.com"
    key.role = role
    key.business_id = business_id
    key.whitelisted_ips = [SimpleNamespace(ip_address=ip) for ip in ips]
    return key


class TestClientIp:
    def test_prefers_first_forwarded_address(self):
        request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"})
        assert client_ip(request) == "203.0.113.9"

    def test_falls_back_to_peer(self):
        assert client_ip(_request()) == "10.0.0.1"


class TestGetCurrentActor:
    @pytest.mark.asyncio
    async def test_missing_key_is_unauthorized(self):
        with pytest.raises(UnauthorizedException, match="required"):
            await get_current_actor(_request(), AsyncMock())

    @pytest.mark.asyncio
    async def test_unknown_key_is_unauthorized(self):
        db = AsyncMock()
        db.execute.return_value = scalar_result(None)

        with pytest.raises(UnauthorizedException, match="Invalid"):
            await get_current_actor(_request({"X-API-Key": "nope"}), db)

    @pytest.mark.asyncio
    async def test_ip_outside_whitelist_is_forbidden(self):
        db = AsyncMock()
        db.execute.return_value = scalar_result(_api_key(business_id=uuid.uuid4()))

        with pytest.raises(ForbiddenException, match="whitelisted"):
            await get_current_actor(_request({"X-API-Key": "k"}, host="192.168.1.1"), db)

    @pytest.mark.asyncio
    async def test_user_key_without_business_is_forbidden(self):
        db = AsyncMock()
        db.execute.return_value = scalar_result(_api_key(business_id=None))

        with pytest.raises(ForbiddenException, match="business"):
            await get_current_actor(_request({"X-API-Key": "k"}), db)

    @pytest.mark.asyncio
    async def test_valid_key_sets_request_actor(self):
        business_id = uuid.uuid4()
        key = _api_key(business_id=business_id)
        db = AsyncMock()
        db.execute.return_value = scalar_result(key)
        request = _request({"X-API-Key": "k"})

        actor = await get_current_actor(request, db)

        assert actor.id == key.id
        assert actor.business_id == business_id
        assert request.state.actor is actor
