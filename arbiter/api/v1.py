"""Centralized v1 API router: all module routers are included here."""

from fastapi import APIRouter

from arbiter.modules.dispute.arbitration_router import router as arbitration_router
from arbiter.modules.dispute.router import router as dispute_router
from arbiter.modules.tenancy.router import router as admin_router
from arbiter.schemas.responses import ErrorResponse

# Every failure shares one envelope; documented once for all v1 routes.
ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 429, 500)
}

v1_router = APIRouter(prefix="/api/v1", responses=ERROR_RESPONSES)
v1_router.include_router(dispute_router)
v1_router.include_router(arbitration_router)
v1_router.include_router(admin_router)
