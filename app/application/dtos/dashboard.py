"""Dashboard and reporting DTOs."""

from typing import Optional

from app.application.dtos.base import DTO


class LeadFilters(DTO):
    """Filters shared by dashboards, listings and exports."""

    search: Optional[str] = None
    user_id: Optional[str] = None
    stage: Optional[str] = None
    status: Optional[str] = None
    region_id: Optional[str] = None


class AdminStats(DTO):
    """Headline counts on the admin dashboard."""

    total_leads: int
    pending_approval: int
    active_leads: int
    converted: int
    pool_leads: int


class UserStats(DTO):
    """Headline counts on a distributor's dashboard."""

    total: int
    active: int
    negotiation: int
    demo_showed: int
    converted: int
    cancelled: int


class FunnelStep(DTO):
    """One step of the cumulative sales funnel."""

    label: str
    value: int


class StageCount(DTO):
    """Number of leads sitting in one stage."""

    stage: str
    label: str
    count: int


class UserPerformance(DTO):
    """Per-user funnel performance (cumulative stage counts)."""

    user_id: str
    full_name: str
    role: str
    generated: int
    demo_showed: int
    quotation_sent: int
    negotiation: int
    converted: int
    cancelled: int
    expired: int


class RegionPerformance(DTO):
    """Per-region counts by stage."""

    region_id: str
    region_name: str
    total: int
    demo_showed: int
    negotiation: int
    converted: int
    cancelled: int


class AdminDashboard(DTO):
    """Everything the admin dashboard shows."""

    stats: AdminStats
    funnel: list[FunnelStep]
    stage_breakdown: list[StageCount]
    user_performance: list[UserPerformance]
    region_performance: list[RegionPerformance]


class UserDashboard(DTO):
    """Everything a distributor's dashboard shows."""

    stats: UserStats
    funnel: list[FunnelStep]
    stage_breakdown: list[StageCount]
