"""Admin API for tenant management."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arbiter.database.session import get_db
from arbiter.models.enums import ActorRole
from arbiter.modules.authorization.dependencies import require_role
from arbiter.modules.authorization.scoper import ActorScope
from arbiter.modules.tenancy.schemas import (
    ApiKeyCreate,
    ApiKeyResponse,
    BusinessCreate,
    BusinessResponse,
    ProfileCreate,
    ProfileResponse,
)
from arbiter.modules.tenancy.service import TenancyService
from arbiter.schemas.responses import ApiResponse

router = APIRouter(prefix="/admin", tags=["admin"])

require_admin = require_role(ActorRole.ADMIN)


@router.post("/businesses", response_model=ApiResponse[BusinessResponse], status_code=201)
async def create_business(
    body: BusinessCreate,
    _: ActorScope = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    business = await TenancyService(db).create_business(body)
    return ApiResponse(
        data=BusinessResponse.model_validate(business),
        message="Business created successfully",
    )


@router.post(
    "/businesses/{business_id}/profiles",
    response_model=ApiResponse[ProfileResponse],
    status_code=201,
)
async def create_profile(
    business_id: uuid.UUID,
    body: ProfileCreate,
    _: ActorScope = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    profile = await TenancyService(db).create_profile(business_id, body)
    return ApiResponse(
        data=ProfileResponse.model_validate(profile),
        message="Profile created successfully",
    )


@router.post("/api-keys", response_model=ApiResponse[ApiKeyResponse], status_code=201)
async def create_api_key(
    body: ApiKeyCreate,
    _: ActorScope = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Issue an API key. The key value is only returned in this response."""
    api_key = await TenancyService(db).create_api_key(body)
    return ApiResponse(
        data=ApiKeyResponse.model_validate(api_key),
        message="API key created successfully",
    )
