"""API-key authentication dependency for FastAPI.

Resolves the ``X-API-Key`` header to an active ``api_keys`` row, checks the
caller's IP against that key's whitelist, and sets ``request.state.actor``
for downstream dependencies.
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arbiter.config import settings
from arbiter.database.session import get_db
from arbiter.exceptions import ForbiddenException, UnauthorizedException
from arbiter.models.api_key import ApiKey
from arbiter.models.enums import ActorRole

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedActor:
    """Represents the caller identified by an API key."""

    id: uuid.UUID
    email: str
    role: ActorRole
    business_id: uuid.UUID | None = None


def client_ip(request: Request) -> str | None:
    """Return the originating client address, preferring X-Forwarded-For."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return None


async def get_current_actor(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedActor:
    """FastAPI dependency that authenticates the caller from its API key."""
    key = request.headers.get(settings.api_key_header)
    if not key:
        raise UnauthorizedException("API key is required")

    result = await db.execute(
        select(ApiKey)
        .options(selectinload(ApiKey.whitelisted_ips))
        .where(ApiKey.key == key, ApiKey.is_active.is_(True))
    )
    api_key = result.scalar_one_or_none()
    if api_key is None:
        logger.warning("Rejected unknown or inactive API key")
        raise UnauthorizedException("Invalid API key")

    if settings.enforce_ip_whitelist:
        ip = client_ip(request)
        if ip is None:
            raise ForbiddenException("Could not determine client IP")
        allowed = {entry.ip_address for entry in api_key.whitelisted_ips}
        if ip not in allowed:
            logger.warning("API key %s used from non-whitelisted IP %s", api_key.id, ip)
            raise ForbiddenException("IP address not whitelisted for this API key")

    if api_key.role == ActorRole.USER and api_key.business_id is None:
        raise ForbiddenException("API key is not bound to a business")

    actor = AuthenticatedActor(
        id=api_key.id,
        email=api_key.email,
        role=ActorRole(api_key.role),
        business_id=api_key.business_id,
    )
    request.state.actor = actor
    return actor
