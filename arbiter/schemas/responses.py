"""Uniform response envelope and pagination schemas."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapping every payload returned by the API."""

    status: Literal["success"] = "success"
    data: T | None = None
    message: str | None = None


class ErrorDetail(BaseModel):
    """A single field-level or contextual error detail."""

    field: str | None = None
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned for every failure."""

    status: Literal["error"] = "error"
    code: str
    message: str
    details: list[ErrorDetail] = []
    request_id: str = Field(alias="requestId")
    debug: Any | None = None

    model_config = {"populate_by_name": True}


class PaginationMeta(BaseModel):
    """Pagination counters."""

    page: int
    limit: int
    total_items: int = Field(alias="totalItems")
    total_pages: int = Field(alias="totalPages")

    model_config = {"populate_by_name": True}

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(page=page, limit=limit, total_items=total, total_pages=pages)
