"""Duplicate lead detection use case."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from app.application.ports.lead_repository import LeadRepository
from app.domain.entities.bulk_upload_row import CONTACT_PHONE_PLACEHOLDER
from app.domain.entities.lead import Lead
from app.infrastructure.logging.logger import log_duplicate_check, log_event

MATCH_EXACT = "exact"
MATCH_SIMILAR = "similar"
MATCH_NONE = "none"


@dataclass
class DuplicateCheckResult:
    """Outcome of a duplicate check."""

    is_duplicate: bool
    match_type: str
    message: str
    duplicate_leads: list[Lead] = field(default_factory=list)


class CheckDuplicateLeads:
    """
    Use case for detecting existing leads before a new one is created.

    Checks run in order and the first non-empty result wins:
    same school name and ZIP (exact, blocking), same contact phone (exact,
    blocking), same school name in a different ZIP (similar, warning only).
    """

    def __init__(self, lead_repository: LeadRepository) -> None:
        """
        Initialize use case.

        Args:
            lead_repository: Lead record store
        """
        self._lead_repository = lead_repository

    async def execute(
        self,
        school_name: str,
        zip_code: str,
        contact_phone: str = "",
        address: str = "",
        exclude_lead_id: Optional[str] = None,
    ) -> DuplicateCheckResult:
        """
        Check for duplicate leads.

        Args:
            school_name: School name as entered
            zip_code: ZIP / PIN code
            contact_phone: Contact phone as entered
            address: Address (not used for matching)
            exclude_lead_id: Lead to ignore (the lead being edited)

        Returns:
            Duplicate check result; lookup failures degrade to "none"
        """
        try:
            result = await self._check(school_name, zip_code, contact_phone, exclude_lead_id)
        except Exception as e:
            # Duplicate detection never blocks lead creation
            log_event(
                component="duplicate_check",
                action="check_failed",
                level=logging.WARNING,
                school_name=school_name,
                error=str(e),
            )
            return DuplicateCheckResult(
                is_duplicate=False,
                match_type=MATCH_NONE,
                message="Unable to check for duplicates",
            )

        log_duplicate_check(
            school_name=school_name,
            zip_code=zip_code,
            match_type=result.match_type,
            matches_count=len(result.duplicate_leads),
        )
        return result

    async def _check(
        self,
        school_name: str,
        zip_code: str,
        contact_phone: str,
        exclude_lead_id: Optional[str],
    ) -> DuplicateCheckResult:
        def keep(leads: list[Lead]) -> list[Lead]:
            return [lead for lead in leads if lead.id != exclude_lead_id]

        exact_matches = keep(
            await self._lead_repository.find(school_name=school_name, zip_code=zip_code)
        )
        if exact_matches:
            return DuplicateCheckResult(
                is_duplicate=True,
                match_type=MATCH_EXACT,
                message=f'A lead for "{school_name}" in ZIP code "{zip_code}" already exists!',
                duplicate_leads=exact_matches,
            )

        # Bulk-imported leads share the placeholder phone, so it never identifies a school
        if contact_phone and contact_phone != CONTACT_PHONE_PLACEHOLDER:
            phone_matches = keep(await self._lead_repository.find(contact_phone=contact_phone))
            if phone_matches:
                return DuplicateCheckResult(
                    is_duplicate=True,
                    match_type=MATCH_EXACT,
                    message=(
                        "This phone number is already registered for "
                        f'"{phone_matches[0].school_name}"'
                    ),
                    duplicate_leads=phone_matches,
                )

        similar_matches = [
            lead
            for lead in keep(await self._lead_repository.find(school_name=school_name))
            if lead.zip_code != zip_code
        ]
        if similar_matches:
            return DuplicateCheckResult(
                is_duplicate=False,
                match_type=MATCH_SIMILAR,
                message=(
                    "Warning: A school with similar name exists in a different location "
                    f"(ZIP: {similar_matches[0].zip_code})"
                ),
                duplicate_leads=similar_matches,
            )

        return DuplicateCheckResult(
            is_duplicate=False,
            match_type=MATCH_NONE,
            message="No duplicates found",
        )
