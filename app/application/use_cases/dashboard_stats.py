"""Dashboard statistics use case (read-side aggregation over leads and users)."""

from typing import Optional

from app.application.dtos.dashboard import (
    AdminDashboard,
    AdminStats,
    FunnelStep,
    LeadFilters,
    RegionPerformance,
    StageCount,
    UserDashboard,
    UserPerformance,
    UserStats,
)
from app.application.ports.directory_repository import UserRepository
from app.application.ports.lead_repository import LeadRepository
from app.application.use_cases.lead_lifecycle import apply_lead_filters
from app.domain.entities.lead import Lead
from app.domain.entities.user import User, UserRole
from app.domain.value_objects.lead_status import LeadStage, LeadStatus

STAGE_LABELS = {
    LeadStage.NEW: "New",
    LeadStage.CONTACTED: "Contacted",
    LeadStage.DEMO_SCHEDULED: "Demo Scheduled",
    LeadStage.DEMO_SHOWED: "Demo Showed",
    LeadStage.QUOTATION_SENT: "Quotation Sent",
    LeadStage.NEGOTIATION: "Negotiation",
    LeadStage.CONVERTED: "Converted",
    LeadStage.CANCELLED: "Cancelled",
    LeadStage.EXPIRED: "Expired",
}

# Stages that count as having passed each funnel milestone
DEMO_OR_LATER = frozenset(
    {LeadStage.DEMO_SHOWED, LeadStage.QUOTATION_SENT, LeadStage.NEGOTIATION, LeadStage.CONVERTED}
)
QUOTATION_OR_LATER = frozenset(
    {LeadStage.QUOTATION_SENT, LeadStage.NEGOTIATION, LeadStage.CONVERTED}
)
NEGOTIATION_OR_LATER = frozenset({LeadStage.NEGOTIATION, LeadStage.CONVERTED})


def _count(leads: list[Lead], predicate) -> int:
    return sum(1 for lead in leads if predicate(lead))


def sales_funnel(leads: list[Lead]) -> list[FunnelStep]:
    """
    Cumulative funnel: each step counts leads that reached it or went further.

    Args:
        leads: Leads to aggregate

    Returns:
        Lead, Demo, Quotation, Negotiation and Converted steps
    """
    demo = _count(leads, lambda lead: lead.stage in DEMO_OR_LATER)
    quotation = _count(leads, lambda lead: lead.stage in QUOTATION_OR_LATER)
    negotiation = _count(leads, lambda lead: lead.stage in NEGOTIATION_OR_LATER)
    converted = _count(
        leads,
        lambda lead: lead.stage == LeadStage.CONVERTED or lead.status == LeadStatus.CONVERTED,
    )
    return [
        FunnelStep(label="Lead", value=len(leads)),
        FunnelStep(label="Demo", value=demo),
        FunnelStep(label="Quotation", value=quotation),
        FunnelStep(label="Negotiation", value=negotiation),
        FunnelStep(label="Converted", value=converted),
    ]


def stage_breakdown(leads: list[Lead]) -> list[StageCount]:
    """Number of leads currently in each stage, in funnel order."""
    counts = {stage: 0 for stage in STAGE_LABELS}
    for lead in leads:
        counts[lead.stage] += 1
    return [
        StageCount(stage=stage.value, label=label, count=counts[stage])
        for stage, label in STAGE_LABELS.items()
    ]


def user_performance(users: list[User], leads: list[Lead]) -> list[UserPerformance]:
    """
    Per-user performance over the leads each user created or owns.

    Users with no generated leads are listed only when they are distributors.

    Args:
        users: User directory
        leads: All leads

    Returns:
        One entry per listed user
    """
    rows = []
    for user in users:
        user_leads = [
            lead for lead in leads if user.id in (lead.assigned_to_user_id, lead.created_by)
        ]
        generated = _count(user_leads, lambda lead: lead.created_by == user.id)
        if generated == 0 and user.role != UserRole.DISTRIBUTOR:
            continue
        rows.append(
            UserPerformance(
                user_id=user.id,
                full_name=user.full_name,
                role=user.role.value,
                generated=generated,
                demo_showed=_count(user_leads, lambda lead: lead.stage in DEMO_OR_LATER),
                quotation_sent=_count(user_leads, lambda lead: lead.stage in QUOTATION_OR_LATER),
                negotiation=_count(user_leads, lambda lead: lead.stage in NEGOTIATION_OR_LATER),
                converted=_count(user_leads, lambda lead: lead.stage == LeadStage.CONVERTED),
                cancelled=_count(user_leads, lambda lead: lead.stage == LeadStage.CANCELLED),
                expired=_count(user_leads, lambda lead: lead.stage == LeadStage.EXPIRED),
            )
        )
    return rows


def region_performance(leads: list[Lead]) -> list[RegionPerformance]:
    """Per-region counts, keyed by region name ("Unknown" when missing)."""
    regions: dict[str, dict] = {}
    for lead in leads:
        name = lead.region_name or "Unknown"
        entry = regions.setdefault(
            name,
            {
                "region_id": lead.region_id,
                "region_name": name,
                "total": 0,
                "demo_showed": 0,
                "negotiation": 0,
                "converted": 0,
                "cancelled": 0,
            },
        )
        entry["total"] += 1
        if lead.stage == LeadStage.DEMO_SHOWED:
            entry["demo_showed"] += 1
        if lead.stage == LeadStage.NEGOTIATION:
            entry["negotiation"] += 1
        if lead.status == LeadStatus.CONVERTED:
            entry["converted"] += 1
        if lead.status == LeadStatus.CANCELLED:
            entry["cancelled"] += 1
    return [RegionPerformance(**entry) for entry in regions.values()]


class DashboardStats:
    """Use case for computing the admin and distributor dashboards."""

    def __init__(self, lead_repository: LeadRepository, user_repository: UserRepository) -> None:
        """
        Initialize use case.

        Args:
            lead_repository: Lead record store
            user_repository: User directory
        """
        self._lead_repository = lead_repository
        self._user_repository = user_repository

    async def admin_dashboard(self, filters: Optional[LeadFilters] = None) -> AdminDashboard:
        """
        Admin dashboard over all leads.

        Headline stats, funnel, stage and region breakdowns follow the filters;
        user performance always covers every lead.

        Args:
            filters: Lead filters

        Returns:
            Admin dashboard
        """
        leads = await self._lead_repository.list()
        users = await self._user_repository.list()
        filtered = apply_lead_filters(leads, filters)

        stats = AdminStats(
            total_leads=len(filtered),
            pending_approval=_count(filtered, lambda lead: lead.status == LeadStatus.PENDING),
            active_leads=_count(filtered, lambda lead: lead.status == LeadStatus.LOCKED),
            converted=_count(filtered, lambda lead: lead.stage == LeadStage.CONVERTED),
            pool_leads=_count(filtered, lambda lead: lead.status == LeadStatus.POOL),
        )
        return AdminDashboard(
            stats=stats,
            funnel=sales_funnel(filtered),
            stage_breakdown=stage_breakdown(filtered),
            user_performance=user_performance(users, leads),
            region_performance=region_performance(filtered),
        )

    async def user_dashboard(
        self, user: User, filters: Optional[LeadFilters] = None
    ) -> UserDashboard:
        """
        Distributor dashboard over the leads the user owns.

        Args:
            user: Signed-in user
            filters: Lead filters (the user filter is ignored)

        Returns:
            User dashboard
        """
        leads = await self._lead_repository.find(assigned_to_user_id=user.id)
        if filters is not None:
            filters = filters.model_copy(update={"user_id": None})
        filtered = apply_lead_filters(leads, filters)

        stats = UserStats(
            total=len(filtered),
            active=_count(filtered, lambda lead: lead.status == LeadStatus.LOCKED),
            negotiation=_count(filtered, lambda lead: lead.stage == LeadStage.NEGOTIATION),
            demo_showed=_count(filtered, lambda lead: lead.stage == LeadStage.DEMO_SHOWED),
            converted=_count(filtered, lambda lead: lead.status == LeadStatus.CONVERTED),
            cancelled=_count(filtered, lambda lead: lead.status == LeadStatus.CANCELLED),
        )
        return UserDashboard(
            stats=stats,
            funnel=sales_funnel(filtered),
            stage_breakdown=stage_breakdown(filtered),
        )

    async def user_performance(self) -> list[UserPerformance]:
        """Per-user performance over every lead (report export)."""
        users = await self._user_repository.list()
        return user_performance(users, await self._lead_repository.list())
