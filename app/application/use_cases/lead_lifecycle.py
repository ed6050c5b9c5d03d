"""Lead lifecycle use cases: creation, approval, pool claims, progress and assignment."""

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from app.application.dtos.dashboard import LeadFilters
from app.application.dtos.lead import LeadInput, LeadUpdateRequest
from app.application.ports.directory_repository import UserRepository
from app.application.ports.lead_repository import LeadRepository
from app.application.use_cases.check_duplicate_leads import (
    MATCH_EXACT,
    MATCH_SIMILAR,
    CheckDuplicateLeads,
)
from app.domain.entities.lead import Attachment, Lead
from app.domain.entities.notification import Notification
from app.domain.entities.user import User, UserRole
from app.domain.errors import (
    BusinessRuleError,
    DuplicateLeadError,
    LeadValidationError,
    NotFoundError,
    PermissionDeniedError,
    SimilarLeadWarning,
)
from app.domain.value_objects.contact import validate_phone_number, validate_zip_code
from app.domain.value_objects.lead_status import LeadStatus, parse_stage, parse_status
from app.domain.value_objects.lock_in_period import LockInPeriod
from app.infrastructure.logging.logger import log_event, log_lead_transition

FALLBACK_LOCK_IN_MONTHS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def apply_lead_filters(leads: list[Lead], filters: Optional[LeadFilters]) -> list[Lead]:
    """
    Filter leads the way the listing and dashboard pages do.

    The search text matches school name or contact person (case-insensitive);
    the user filter matches the current owner or the creator.

    Args:
        leads: Leads to filter
        filters: Filters, or None for no filtering

    Returns:
        Matching leads in input order
    """
    if filters is None:
        return list(leads)

    search = (filters.search or "").strip().lower()
    matches = []
    for lead in leads:
        if search and search not in lead.school_name.lower() and (
            search not in lead.contact_person.lower()
        ):
            continue
        if filters.user_id and filters.user_id not in (lead.assigned_to_user_id, lead.created_by):
            continue
        if filters.stage and lead.stage.value != filters.stage:
            continue
        if filters.status and lead.status.value != filters.status:
            continue
        if filters.region_id and lead.region_id != filters.region_id:
            continue
        matches.append(lead)
    return matches


class LeadLifecycleService:
    """Use cases that move a lead through its status and stage axes."""

    def __init__(
        self,
        lead_repository: LeadRepository,
        user_repository: UserRepository,
        duplicate_checker: CheckDuplicateLeads,
        default_lock_in_months: int = FALLBACK_LOCK_IN_MONTHS,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        """
        Initialize service.

        Args:
            lead_repository: Lead record store
            user_repository: User directory (resolves creator names and lock-in defaults)
            duplicate_checker: Duplicate detection use case
            default_lock_in_months: Lock-in used when a claim does not choose one
            clock: Current UTC time source
            id_factory: Identifier source for leads, updates and notifications
        """
        self._lead_repository = lead_repository
        self._user_repository = user_repository
        self._duplicate_checker = duplicate_checker
        self._default_lock_in_months = default_lock_in_months
        self._clock = clock
        self._id_factory = id_factory

    def _lock_deadline(self, months: int, now: datetime) -> datetime:
        try:
            return LockInPeriod(months).expires_at(now)
        except ValueError as e:
            raise LeadValidationError(str(e), field="lock_months") from e

    async def _get_or_raise(self, lead_id: str) -> Lead:
        lead = await self._lead_repository.get(lead_id)
        if lead is None:
            raise NotFoundError("Lead", lead_id)
        return lead

    @staticmethod
    def _validate_contact(data: LeadInput) -> None:
        if not validate_zip_code(data.zip_code):
            raise LeadValidationError(
                "Invalid ZIP/PIN code format. Please enter a valid 6-digit PIN code "
                "or 5-digit ZIP code.",
                field="zip_code",
            )
        if not validate_phone_number(data.contact_phone):
            raise LeadValidationError(
                "Invalid phone number format. Please enter a valid 10-digit phone number.",
                field="contact_phone",
            )

    async def create_lead(self, data: LeadInput, creator: User, auto_approve: bool = False) -> Lead:
        """
        Create a lead after validating its contact fields.

        Args:
            data: Contact details
            creator: Signed-in user creating the lead
            auto_approve: Lock the lead to the creator immediately

        Returns:
            Stored lead (PENDING, or LOCKED when auto-approved)

        Raises:
            LeadValidationError: If ZIP or phone are malformed
        """
        self._validate_contact(data)
        now = self._clock()

        lead = Lead(
            id=self._id_factory(),
            school_name=data.school_name.strip(),
            created_by=creator.id,
            region_id=data.region_id,
            region_name=data.region_name,
            address=data.address,
            zip_code=data.zip_code,
            landmark=data.landmark,
            contact_person=data.contact_person,
            designation=data.designation,
            contact_email=data.contact_email,
            contact_phone=data.contact_phone,
            contacted_date=data.contacted_date,
            is_chain=data.is_chain,
            chain_name=data.chain_name if data.is_chain else None,
            remarks=data.remarks,
            place_id=data.place_id,
            status=LeadStatus.PENDING,
            created_at=now,
        )
        if auto_approve:
            locked_until = self._lock_deadline(creator.default_lock_in_months, now)
            lead.approve(creator.full_name, locked_until)

        await self._lead_repository.add(lead)
        log_lead_transition(
            lead.id,
            "create",
            status_after=lead.status.value,
            created_by=creator.id,
            auto_approved=auto_approve,
        )
        return lead

    async def submit_lead(
        self, data: LeadInput, creator: User, confirm_similar: bool = False
    ) -> Lead:
        """
        Run the create-lead flow: duplicate detection, then creation.

        Exact matches are refused. A similar match needs confirmation and then
        goes to admin review (PENDING). No match is auto-approved.

        Args:
            data: Contact details
            creator: Signed-in user creating the lead
            confirm_similar: Caller has seen the similar-lead warning

        Returns:
            Stored lead

        Raises:
            LeadValidationError: If ZIP or phone are malformed
            DuplicateLeadError: On an exact duplicate
            SimilarLeadWarning: On a similar lead without confirmation
        """
        self._validate_contact(data)
        result = await self._duplicate_checker.execute(
            school_name=data.school_name.strip(),
            zip_code=data.zip_code,
            contact_phone=data.contact_phone,
            address=data.address,
        )

        if result.match_type == MATCH_EXACT:
            raise DuplicateLeadError(
                result.message, duplicate_lead_ids=[lead.id for lead in result.duplicate_leads]
            )
        if result.match_type == MATCH_SIMILAR:
            if not confirm_similar:
                raise SimilarLeadWarning(
                    result.message, similar_lead_ids=[lead.id for lead in result.duplicate_leads]
                )
            return await self.create_lead(data, creator, auto_approve=False)

        return await self.create_lead(data, creator, auto_approve=True)

    async def approve_lead(self, lead_id: str, lock_months: Optional[int] = None) -> Lead:
        """
        Approve a pending lead, locking it to its creator.

        Args:
            lead_id: Lead identifier
            lock_months: Lock-in override (defaults to the creator's setting)

        Returns:
            Updated lead
        """
        lead = await self._get_or_raise(lead_id)
        creator = await self._user_repository.get(lead.created_by)
        if lock_months is None:
            lock_months = creator.default_lock_in_months if creator else FALLBACK_LOCK_IN_MONTHS

        status_before = lead.status
        lead.approve(
            creator.full_name if creator else None,
            self._lock_deadline(lock_months, self._clock()),
        )
        stored = await self._lead_repository.update(lead, expected_status=LeadStatus.PENDING)
        log_lead_transition(
            lead_id, "approve", status_before.value, stored.status.value, lock_months=lock_months
        )
        return stored

    async def reject_lead(self, lead_id: str) -> Lead:
        """
        Reject a pending lead into the general pool.

        Args:
            lead_id: Lead identifier

        Returns:
            Updated lead
        """
        lead = await self._get_or_raise(lead_id)
        status_before = lead.status
        lead.reject()
        stored = await self._lead_repository.update(lead, expected_status=LeadStatus.PENDING)
        log_lead_transition(lead_id, "reject", status_before.value, stored.status.value)
        return stored

    async def claim_lead(
        self,
        lead_id: str,
        user_id: str,
        user_name: Optional[str],
        lock_months: Optional[int] = None,
    ) -> Lead:
        """
        Claim a pool lead for a distributor.

        Args:
            lead_id: Lead identifier
            user_id: Claiming user
            user_name: Claiming user's display name
            lock_months: Lock-in chosen by the claimer

        Returns:
            Updated lead

        Raises:
            InvalidTransitionError: If the lead is not in the pool
            ConflictError: If another claim won the race
        """
        lead = await self._get_or_raise(lead_id)
        months = lock_months if lock_months is not None else self._default_lock_in_months
        status_before = lead.status
        lead.claim(user_id, user_name, self._lock_deadline(months, self._clock()))
        stored = await self._lead_repository.update(lead, expected_status=LeadStatus.POOL)
        log_lead_transition(
            lead_id, "claim", status_before.value, stored.status.value, user_id=user_id
        )
        return stored

    async def add_lead_update(
        self, lead_id: str, request: LeadUpdateRequest, actor: User
    ) -> Lead:
        """
        Record progress on a lead (note plus optional stage transition).

        Args:
            lead_id: Lead identifier
            request: Remarks, optional stage, probability and attachments
            actor: Signed-in user (owner or admin)

        Returns:
            Updated lead
        """
        lead = await self._get_or_raise(lead_id)
        if not actor.is_admin and lead.assigned_to_user_id != actor.id:
            raise PermissionDeniedError("Only the lead owner can post updates")

        status_before = lead.status
        stage_before = lead.stage
        lead.record_update(
            update_id=self._id_factory(),
            remarks=request.remarks,
            updated_by=actor.id,
            now=self._clock(),
            stage=request.stage,
            probability=request.probability,
            attachments=[Attachment(name=a.name, url=a.url) for a in request.attachments],
        )
        stored = await self._lead_repository.update(lead, expected_status=status_before)
        log_lead_transition(
            lead_id,
            "update",
            status_before.value,
            stored.status.value,
            stage_before=stage_before.value,
            stage_after=stored.stage.value,
        )
        return stored

    async def update_lead_status(self, lead_id: str, status: str) -> Lead:
        """
        Admin override of a lead's status (bypasses the transition table).

        Args:
            lead_id: Lead identifier
            status: Target status name

        Returns:
            Updated lead
        """
        try:
            target = parse_status(status)
        except ValueError as e:
            raise LeadValidationError(str(e), field="status") from e

        lead = await self._get_or_raise(lead_id)
        status_before = lead.status
        lead.override_status(target)
        stored = await self._lead_repository.update(lead, expected_status=status_before)
        log_lead_transition(lead_id, "override_status", status_before.value, target.value)
        return stored

    async def update_lead_stage(self, lead_id: str, stage: str) -> Lead:
        """
        Admin override of a lead's stage (bypasses the transition table).

        Args:
            lead_id: Lead identifier
            stage: Target stage name

        Returns:
            Updated lead
        """
        try:
            target = parse_stage(stage)
        except ValueError as e:
            raise LeadValidationError(str(e), field="stage") from e

        lead = await self._get_or_raise(lead_id)
        stage_before = lead.stage
        lead.override_stage(target)
        stored = await self._lead_repository.update(lead, expected_status=lead.status)
        log_lead_transition(
            lead_id, "override_stage", stage_before=stage_before.value, stage_after=target.value
        )
        return stored

    async def assign_leads(
        self,
        lead_ids: list[str],
        user_id: str,
        lock_months: Optional[int],
        assigned_by: User,
    ) -> list[Lead]:
        """
        Assign pool leads to a distributor in one atomic batch.

        Every lead gets the same lock deadline and an assignment history entry;
        the target user receives one notification.

        Args:
            lead_ids: Pool leads to assign
            user_id: Target user
            lock_months: Lock-in override (defaults to the target's setting)
            assigned_by: Admin performing the assignment

        Returns:
            Assigned leads
        """
        if not lead_ids:
            raise BusinessRuleError("Select at least one lead to assign")

        target = await self._user_repository.get(user_id)
        if target is None:
            raise NotFoundError("User", user_id)
        if not target.is_active:
            raise BusinessRuleError(f"{target.full_name} is inactive and cannot receive leads")
        if target.role == UserRole.ADMIN:
            raise BusinessRuleError("Leads cannot be assigned to an admin")

        now = self._clock()
        months = lock_months if lock_months is not None else target.default_lock_in_months
        locked_until = self._lock_deadline(months, now)

        leads = []
        for lead_id in dict.fromkeys(lead_ids):
            lead = await self._get_or_raise(lead_id)
            lead.assign(target.id, target.full_name, locked_until)
            lead.record_update(
                update_id=self._id_factory(),
                remarks=f"Assigned to {target.full_name} by Admin",
                updated_by=assigned_by.id,
                now=now,
            )
            leads.append(lead)

        notification = Notification(
            id=self._id_factory(),
            user_id=target.id,
            title="New Leads Assigned",
            message=f"You have been assigned {len(leads)} new leads.",
            type="info",
            created_at=now,
            link="/my-leads",
        )
        await self._lead_repository.update_many(
            [(lead, LeadStatus.POOL) for lead in leads], notification=notification
        )
        log_event(
            component="lifecycle",
            action="assign",
            user_id=target.id,
            leads_count=len(leads),
            lock_months=months,
        )

        for lead in leads:
            lead.version += 1
        return leads

    async def get_lead(self, lead_id: str) -> Lead:
        """
        Get a lead.

        Raises:
            NotFoundError: If the lead does not exist
        """
        return await self._get_or_raise(lead_id)

    async def list_all(self, filters: Optional[LeadFilters] = None) -> list[Lead]:
        """List every lead, newest first, optionally filtered."""
        return apply_lead_filters(await self._lead_repository.list(), filters)

    async def list_pending(self) -> list[Lead]:
        """Leads awaiting admin approval."""
        return await self._lead_repository.find(status=LeadStatus.PENDING)

    async def list_pool(self) -> list[Lead]:
        """Unowned leads in the general pool."""
        return await self._lead_repository.find(status=LeadStatus.POOL)

    async def list_assigned_to(self, user_id: str) -> list[Lead]:
        """Leads currently owned by a user."""
        return await self._lead_repository.find(assigned_to_user_id=user_id)

    async def list_created_by(self, user_id: str) -> list[Lead]:
        """Leads a user created."""
        return await self._lead_repository.find(created_by=user_id)

    async def list_expired_locks(self, now: Optional[datetime] = None) -> list[Lead]:
        """
        LOCKED leads whose lock deadline has passed (read-only report).

        Args:
            now: Reference time (defaults to the service clock)

        Returns:
            Expired locks, newest first
        """
        now = now or self._clock()
        locked = await self._lead_repository.find(status=LeadStatus.LOCKED)
        return [lead for lead in locked if lead.is_lock_expired(now)]

    def now(self) -> datetime:
        """Current time according to the service clock."""
        return self._clock()
