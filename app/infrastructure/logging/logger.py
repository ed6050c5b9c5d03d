"""Structured logger for observability."""

import logging
from typing import Any, Optional

# Configure root logger with JSON-like structured format
_logger = logging.getLogger("opportunity_tracker")
_logger.setLevel(logging.INFO)

# Create console handler if not exists
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def log_event(
    component: str,
    action: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """
    Log a structured event.

    Args:
        component: Component name (e.g., 'http', 'lifecycle', 'bulk_upload')
        action: What happened (e.g., 'lead_created', 'row_verified')
        level: Log level (default: INFO)
        **kwargs: Additional structured fields to log
    """
    fields = {
        "component": component,
        "action": action,
    }
    fields.update(kwargs)

    # Format as key=value pairs for readability
    log_parts = [f"{k}={v!r}" for k, v in fields.items()]
    log_message = " | ".join(log_parts)

    _logger.log(level, log_message)


def log_lead_transition(
    lead_id: str,
    action: str,
    status_before: Optional[str] = None,
    status_after: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """
    Log a lead lifecycle transition.

    Args:
        lead_id: Lead identifier
        action: Lifecycle command (e.g., 'approve', 'claim')
        status_before: Status before the command
        status_after: Status after the command
        **kwargs: Additional fields
    """
    fields: dict[str, Any] = {"lead_id": lead_id}
    if status_before is not None:
        fields["status_before"] = status_before
    if status_after is not None:
        fields["status_after"] = status_after
    fields.update(kwargs)

    log_event(component="lifecycle", action=action, **fields)


def log_duplicate_check(
    school_name: str,
    zip_code: str,
    match_type: str,
    matches_count: int,
    **kwargs: Any,
) -> None:
    """
    Log a duplicate check outcome.

    Args:
        school_name: School name checked
        zip_code: ZIP code checked
        match_type: exact, similar or none
        matches_count: Number of matching leads
        **kwargs: Additional fields
    """
    log_event(
        component="duplicate_check",
        action="checked",
        school_name=school_name,
        zip_code=zip_code,
        match_type=match_type,
        matches_count=matches_count,
        **kwargs,
    )


def log_bulk_row(
    batch_id: str,
    row_id: str,
    status: str,
    message: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """
    Log a bulk upload row outcome.

    Args:
        batch_id: Batch identifier
        row_id: Row identifier
        status: Row status after processing
        message: Row message, if any
        **kwargs: Additional fields
    """
    fields: dict[str, Any] = {"batch_id": batch_id, "row_id": row_id, "row_status": status}
    if message:
        fields["row_message"] = message
    fields.update(kwargs)

    log_event(component="bulk_upload", action="row_processed", **fields)


# Export logger instance for modules that log free text
logger = _logger
