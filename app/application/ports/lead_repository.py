"""Lead repository port."""

from abc import ABC, abstractmethod
from typing import Optional

from app.domain.entities.lead import Lead
from app.domain.entities.notification import Notification
from app.domain.value_objects.lead_status import LeadStatus


class LeadRepository(ABC):
    """Port interface for the lead record store."""

    @abstractmethod
    async def get(self, lead_id: str) -> Optional[Lead]:
        """
        Get a lead by id.

        Args:
            lead_id: Lead identifier

        Returns:
            Lead entity (a detached copy), or None if not found
        """
        pass

    @abstractmethod
    async def add(self, lead: Lead) -> None:
        """
        Insert a new lead.

        Args:
            lead: Lead entity to insert
        """
        pass

    @abstractmethod
    async def update(self, lead: Lead, expected_status: Optional[LeadStatus] = None) -> Lead:
        """
        Conditionally overwrite a stored lead.

        The write succeeds only if the stored version still equals lead.version
        and, when given, the stored status equals expected_status.

        Args:
            lead: Lead entity carrying the version it was read at
            expected_status: Status the stored lead must still have

        Returns:
            The stored lead with its incremented version

        Raises:
            NotFoundError: If the lead does not exist
            ConflictError: If the precondition no longer holds
        """
        pass

    @abstractmethod
    async def update_many(
        self,
        leads: list[tuple[Lead, LeadStatus]],
        notification: Optional[Notification] = None,
    ) -> None:
        """
        Atomically write several leads (and optionally one notification).

        Either every write is applied or none is.

        Args:
            leads: (lead, expected stored status) pairs
            notification: Notification to store in the same batch

        Raises:
            NotFoundError: If any lead does not exist
            ConflictError: If any precondition no longer holds
        """
        pass

    @abstractmethod
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

        Args:
            school_name: Exact school name
            zip_code: Exact ZIP code
            contact_phone: Exact contact phone
            status: Lead status
            assigned_to_user_id: Current owner
            created_by: Creator user id

        Returns:
            Matching leads ordered by created_at descending
        """
        pass

    @abstractmethod
    async def list(self) -> list[Lead]:
        """
        List all leads.

        Returns:
            Every stored lead, newest first
        """
        pass
