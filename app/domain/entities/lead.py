"""Lead aggregate with its lifecycle state machine."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.domain.errors import InvalidTransitionError, LeadValidationError
from app.domain.value_objects.contact import validate_probability
from app.domain.value_objects.lead_status import (
    OWNED_STATUSES,
    STAGE_STATUS_EFFECTS,
    LeadStage,
    LeadStatus,
    can_transition_stage,
    can_transition_status,
)


@dataclass
class Attachment:
    """File attached to a lead update."""

    name: str
    url: str


@dataclass
class LeadUpdate:
    """
    History entry appended whenever a distributor works a lead.

    status and stage are a snapshot of the lead after the update was applied.
    stage_transition is set only when the update moved the funnel stage.
    """

    id: str
    remarks: str
    updated_by: str
    status: LeadStatus
    stage: LeadStage
    timestamp: datetime
    stage_transition: Optional[LeadStage] = None
    attachments: list[Attachment] = field(default_factory=list)
    probability: Optional[int] = None


@dataclass
class Lead:
    """Lead entity: a prospective school tracked through the sales funnel."""

    id: str
    school_name: str
    created_by: str
    region_id: str = ""
    region_name: str = ""
    address: str = ""
    zip_code: str = ""
    landmark: Optional[str] = None
    contact_person: str = ""
    designation: Optional[str] = None
    contact_email: str = ""
    contact_phone: str = ""
    contacted_date: Optional[datetime] = None
    is_chain: bool = False
    chain_name: Optional[str] = None
    remarks: str = ""
    place_id: Optional[str] = None
    status: LeadStatus = LeadStatus.PENDING
    stage: LeadStage = LeadStage.NEW
    probability: Optional[int] = None
    assigned_to_user_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    locked_until: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updates: list[LeadUpdate] = field(default_factory=list)
    version: int = 0

    @property
    def has_owner(self) -> bool:
        """Check whether the lead currently has an owner."""
        return self.status in OWNED_STATUSES and self.assigned_to_user_id is not None

    def _require_status(self, expected: LeadStatus, action: str) -> None:
        if self.status != expected:
            raise InvalidTransitionError(
                f"Cannot {action} lead {self.id}: status is {self.status.value}, "
                f"expected {expected.value}"
            )

    def _move_status(self, target: LeadStatus) -> None:
        if not can_transition_status(self.status, target):
            raise InvalidTransitionError(
                f"Lead {self.id} cannot move from {self.status.value} to {target.value}"
            )
        self.status = target

    def _lock_to(self, user_id: str, user_name: Optional[str], locked_until: datetime) -> None:
        self._move_status(LeadStatus.LOCKED)
        self.assigned_to_user_id = user_id
        self.assigned_to_name = user_name
        self.locked_until = locked_until

    def _clear_assignment(self) -> None:
        self.assigned_to_user_id = None
        self.assigned_to_name = None
        self.locked_until = None

    def approve(self, assignee_name: Optional[str], locked_until: datetime) -> None:
        """Admin approval: PENDING -> LOCKED, assigned to the creator."""
        self._require_status(LeadStatus.PENDING, "approve")
        self._lock_to(self.created_by, assignee_name, locked_until)

    def reject(self) -> None:
        """Admin rejection: PENDING -> POOL, unassigned."""
        self._require_status(LeadStatus.PENDING, "reject")
        self._move_status(LeadStatus.POOL)
        self._clear_assignment()

    def claim(self, user_id: str, user_name: Optional[str], locked_until: datetime) -> None:
        """Distributor claim of a pool lead: POOL -> LOCKED."""
        self._require_status(LeadStatus.POOL, "claim")
        self._lock_to(user_id, user_name, locked_until)

    def assign(self, user_id: str, user_name: Optional[str], locked_until: datetime) -> None:
        """Admin assignment of a pool lead: POOL -> LOCKED."""
        self._require_status(LeadStatus.POOL, "assign")
        self._lock_to(user_id, user_name, locked_until)

    def record_update(
        self,
        update_id: str,
        remarks: str,
        updated_by: str,
        now: datetime,
        stage: Optional[LeadStage] = None,
        probability: Optional[int] = None,
        attachments: Optional[list[Attachment]] = None,
    ) -> LeadUpdate:
        """
        Append a history entry, optionally applying a stage transition.

        The note (remarks, attachments, probability) is always recorded. A
        stage is a separate command: it is validated against the transition
        table and only accepted while the lead is LOCKED. Reaching CONVERTED
        or CANCELLED also moves the status axis.

        Raises:
            LeadValidationError: If probability is not an allowed value
            InvalidTransitionError: If the stage transition is not legal
        """
        if probability is not None and not validate_probability(probability):
            raise LeadValidationError(
                "Probability must be 10-90 in steps of 10, or 95", field="probability"
            )

        applied_stage: Optional[LeadStage] = None
        if stage is not None and stage != self.stage:
            if self.status != LeadStatus.LOCKED:
                raise InvalidTransitionError(
                    f"Stage of lead {self.id} can only change while LOCKED "
                    f"(status is {self.status.value})"
                )
            if not can_transition_stage(self.stage, stage):
                raise InvalidTransitionError(
                    f"Lead {self.id} cannot move from stage {self.stage.value} to {stage.value}"
                )
            status_effect = STAGE_STATUS_EFFECTS.get(stage)
            if status_effect is not None:
                self._move_status(status_effect)
            self.stage = stage
            applied_stage = stage

        if probability is not None:
            self.probability = probability

        update = LeadUpdate(
            id=update_id,
            remarks=remarks,
            updated_by=updated_by,
            status=self.status,
            stage=self.stage,
            timestamp=now,
            stage_transition=applied_stage,
            attachments=list(attachments or []),
            probability=probability,
        )
        self.updates.append(update)
        return update

    def override_status(self, status: LeadStatus) -> None:
        """Admin override of the status axis, bypassing the transition table."""
        self.status = status
        if status in (LeadStatus.POOL, LeadStatus.PENDING):
            self._clear_assignment()

    def override_stage(self, stage: LeadStage) -> None:
        """Admin override of the stage axis, bypassing the transition table."""
        self.stage = stage

    def days_remaining(self, now: datetime) -> Optional[int]:
        """Whole days left on the lock (rounded up), or None when not locked."""
        if self.locked_until is None:
            return None
        return math.ceil((self.locked_until - now) / timedelta(days=1))

    def is_lock_expired(self, now: datetime) -> bool:
        """Check whether a LOCKED lead has passed its deadline (computed on read)."""
        return (
            self.status == LeadStatus.LOCKED
            and self.locked_until is not None
            and self.locked_until <= now
        )

    def history(self) -> list[LeadUpdate]:
        """History most-recent-first."""
        return sorted(self.updates, key=lambda update: update.timestamp)[::-1]
