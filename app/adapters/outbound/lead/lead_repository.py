"""In-memory lead repository adapter."""

import copy
from typing import Optional

from app.application.ports.lead_repository import LeadRepository
from app.application.ports.notification_repository import NotificationRepository
from app.domain.entities.lead import Lead
from app.domain.entities.notification import Notification
from app.domain.errors import ConflictError, NotFoundError
from app.domain.value_objects.lead_status import LeadStatus


class InMemoryLeadRepository(LeadRepository):
    """In-memory implementation of lead repository."""

    def __init__(self, notification_repository: Optional[NotificationRepository] = None) -> None:
        """
        Initialize in-memory repository.

        Args:
            notification_repository: Store that receives notifications written by update_many
        """
        self._storage: dict[str, Lead] = {}
        self._notification_repository = notification_repository

    def _check_precondition(self, lead: Lead, expected_status: Optional[LeadStatus]) -> Lead:
        stored = self._storage.get(lead.id)
        if stored is None:
            raise NotFoundError("Lead", lead.id)
        if stored.version != lead.version:
            raise ConflictError(f"Lead {lead.id} was modified by another request")
        if expected_status is not None and stored.status != expected_status:
            raise ConflictError(
                f"Lead {lead.id} is no longer {expected_status.value} "
                f"(now {stored.status.value})"
            )
        return stored

    async def get(self, lead_id: str) -> Optional[Lead]:
        """
        Get a lead by id.

        Args:
            lead_id: Lead identifier

        Returns:
            Detached copy of the lead, or None if not found
        """
        stored = self._storage.get(lead_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def add(self, lead: Lead) -> None:
        """
        Insert a new lead.

        Args:
            lead: Lead entity to insert
        """
        if lead.id in self._storage:
            raise ConflictError(f"Lead {lead.id} already exists")
        self._storage[lead.id] = copy.deepcopy(lead)

    async def update(self, lead: Lead, expected_status: Optional[LeadStatus] = None) -> Lead:
        """
        Conditionally overwrite a stored lead.

        Args:
            lead: Lead entity carrying the version it was read at
            expected_status: Status the stored lead must still have

        Returns:
            The stored lead with its incremented version
        """
        self._check_precondition(lead, expected_status)
        stored = copy.deepcopy(lead)
        stored.version = lead.version + 1
        self._storage[lead.id] = stored
        return copy.deepcopy(stored)

    async def update_many(
        self,
        leads: list[tuple[Lead, LeadStatus]],
        notification: Optional[Notification] = None,
    ) -> None:
        """
        Atomically write several leads (and optionally one notification).

        Args:
            leads: (lead, expected stored status) pairs
            notification: Notification to store in the same batch
        """
        # Validate every precondition before touching storage
        for lead, expected_status in leads:
            self._check_precondition(lead, expected_status)

        for lead, _ in leads:
            stored = copy.deepcopy(lead)
            stored.version = lead.version + 1
            self._storage[lead.id] = stored

        if notification is not None and self._notification_repository is not None:
            await self._notification_repository.add(notification)

    async def find(
        self,
        school_name: Optional[str] = None,
        zip_code: Optional[str] = None,
        contact_phone: Optional[str] = None,
        status: Optional[LeadStatus] = None,
        assigned_to_user_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> list[Lead]:
        """
        Find leads by equality on the given fields, newest first.

        Returns:
            Matching leads ordered by created_at descending
        """
        criteria = {
            "school_name": school_name,
            "zip_code": zip_code,
            "contact_phone": contact_phone,
            "status": status,
            "assigned_to_user_id": assigned_to_user_id,
            "created_by": created_by,
        }
        active = {key: value for key, value in criteria.items() if value is not None}
        matches = [
            lead
            for lead in self._storage.values()
            if all(getattr(lead, key) == value for key, value in active.items())
        ]
        matches.sort(key=lambda lead: lead.created_at, reverse=True)
        return copy.deepcopy(matches)

    async def list(self) -> list[Lead]:
        """
        List all leads.

        Returns:
            Every stored lead, newest first
        """
        return await self.find()
