"""Tenant administration service: businesses, profiles, and API keys."""

import logging
import secrets
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from arbiter.database.transaction import unit_of_work
from arbiter.exceptions import ConflictException, NotFoundException, ValidationException
from arbiter.models.api_key import ApiKey, WhitelistedIp
from arbiter.models.business import Business
from arbiter.models.enums import ActorRole
from arbiter.models.profile import Profile
from arbiter.modules.tenancy.schemas import ApiKeyCreate, BusinessCreate, ProfileCreate

logger = logging.getLogger(__name__)


class TenancyService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_business_by_id(self, business_id: uuid.UUID) -> Business | None:
        result = await self.db.execute(select(Business).where(Business.id == business_id))
        return result.scalar_one_or_none()

    async def find_profile_by_email(
        self, email: str, business_id: uuid.UUID
    ) -> Profile | None:
        """Case-insensitive profile lookup within one business."""
        result = await self.db.execute(
            select(Profile).where(
                func.lower(Profile.email) == email.strip().lower(),
                Profile.business_id == business_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_business(self, business_id: uuid.UUID) -> Business:
        business = await self.find_business_by_id(business_id)
        if business is None:
            raise NotFoundException(f"Business {business_id} not found")
        return business

    # ------------------------------------------------------------------
    # Businesses and profiles
    # ------------------------------------------------------------------

    async def create_business(self, data: BusinessCreate) -> Business:
        async with unit_of_work(self.db):
            existing = await self.db.execute(
                select(Business.id).where(
                    or_(Business.name == data.name, Business.email == data.email)
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictException("A business with this name or email already exists")

            business = Business(name=data.name, email=data.email)
            self.db.add(business)
            await self._flush_or_conflict("A business with this name or email already exists")

        await self.db.refresh(business)
        logger.info("Created business %s (%s)", business.id, business.name)
        return business

    async def create_profile(self, business_id: uuid.UUID, data: ProfileCreate) -> Profile:
        async with unit_of_work(self.db):
            await self.get_business(business_id)
            if await self.find_profile_by_email(data.email, business_id) is not None:
                raise ConflictException("A profile with this email already exists for the business")

            profile = Profile(email=data.email, business_id=business_id)
            self.db.add(profile)
            await self._flush_or_conflict(
                "A profile with this email already exists for the business"
            )

        await self.db.refresh(profile)
        logger.info("Created profile %s in business %s", profile.id, business_id)
        return profile

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    async def create_api_key(self, data: ApiKeyCreate) -> ApiKey:
        """Issue a new API key with its IP whitelist."""
        if data.role == ActorRole.USER and data.business_id is None:
            raise ValidationException("A business is required for user API keys")

        ips = [entry.ip_address for entry in data.whitelisted_ips]
        if len(ips) != len(set(ips)):
            raise ValidationException("Duplicate IP addresses in whitelist")

        async with unit_of_work(self.db):
            if data.business_id is not None:
                await self.get_business(data.business_id)

            api_key = ApiKey(
                key=secrets.token_hex(32),
                name=data.name,
                email=data.email,
                role=data.role,
                business_id=data.business_id,
                is_active=True,
            )
            api_key.whitelisted_ips = [
                WhitelistedIp(ip_address=entry.ip_address, description=entry.description)
                for entry in data.whitelisted_ips
            ]
            self.db.add(api_key)
            await self._flush_or_conflict("An API key with this value already exists")

        logger.info("Issued %s API key %s for %s", data.role.value, api_key.id, data.email)
        return api_key

    async def _flush_or_conflict(self, message: str) -> None:
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise ConflictException(message) from exc
