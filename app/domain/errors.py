"""Domain errors."""

from typing import Any, Optional


class OpportunityTrackerError(Exception):
    """Base class for errors raised by the tracker's use cases."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LeadValidationError(OpportunityTrackerError):
    """Raised when lead input fails format validation (before any write)."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class DuplicateLeadError(OpportunityTrackerError):
    """Raised when an exact duplicate lead blocks creation."""

    def __init__(self, message: str, duplicate_lead_ids: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.duplicate_lead_ids = duplicate_lead_ids or []


class SimilarLeadWarning(OpportunityTrackerError):
    """Raised when a similar lead exists and the caller has not confirmed."""

    def __init__(self, message: str, similar_lead_ids: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.similar_lead_ids = similar_lead_ids or []


class InvalidTransitionError(OpportunityTrackerError):
    """Raised when a lifecycle command is not legal from the lead's current state."""


class ConflictError(OpportunityTrackerError):
    """Raised when a conditional write finds the record changed underneath it."""


class NotFoundError(OpportunityTrackerError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class BusinessRuleError(OpportunityTrackerError):
    """Raised when a request violates a business rule (e.g. duplicate region name)."""


class AuthenticationError(OpportunityTrackerError):
    """Raised when credentials or a session token are not valid."""


class InactiveAccountError(OpportunityTrackerError):
    """Raised when a deactivated user tries to sign in."""


class PermissionDeniedError(OpportunityTrackerError):
    """Raised when the signed-in user's role does not allow the action."""
