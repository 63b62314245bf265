"""Statistics response schemas (camelCase on the wire)."""

import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusBreakdown(BaseModel):
    open: int = 0
    under_review: int = 0
    resolved: int = 0
    rejected: int = 0
    canceled: int = 0


class ResolutionBreakdown(BaseModel):
    pending: int = 0
    in_favor_of_initiator: int = 0
    in_favor_of_respondent: int = 0
    partial: int = 0


class DisputeStats(_CamelModel):
    total_disputes: int
    status_breakdown: StatusBreakdown
    resolution_breakdown: ResolutionBreakdown
    average_resolution_time_hours: float


class ArbitratorPerformance(_CamelModel):
    arbitrator_id: uuid.UUID
    email: str
    total_cases: int
    resolved_cases: int
    average_resolution_time_hours: float


class ArbitrationStats(DisputeStats):
    arbitrator_performance: list[ArbitratorPerformance] = []


class ArbitratorStats(_CamelModel):
    total_assigned_disputes: int
    pending_disputes: int
    status_breakdown: StatusBreakdown
    resolution_breakdown: ResolutionBreakdown
    average_resolution_time_hours: float
