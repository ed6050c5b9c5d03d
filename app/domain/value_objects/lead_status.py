"""Lead status and stage enums with their transition tables."""

from enum import Enum


class LeadStatus(str, Enum):
    """Ownership / workflow gate of a lead."""

    PENDING = "PENDING"
    LOCKED = "LOCKED"
    POOL = "POOL"
    CONVERTED = "CONVERTED"
    CANCELLED = "CANCELLED"
    INACTIVE = "INACTIVE"


class LeadStage(str, Enum):
    """Position of a lead in the sales funnel."""

    NEW = "NEW"
    CONTACTED = "CONTACTED"
    DEMO_SCHEDULED = "DEMO_SCHEDULED"
    DEMO_SHOWED = "DEMO_SHOWED"
    QUOTATION_SENT = "QUOTATION_SENT"
    NEGOTIATION = "NEGOTIATION"
    CONVERTED = "CONVERTED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


# Funnel order; CANCELLED and EXPIRED sit outside it.
FUNNEL: tuple[LeadStage, ...] = (
    LeadStage.NEW,
    LeadStage.CONTACTED,
    LeadStage.DEMO_SCHEDULED,
    LeadStage.DEMO_SHOWED,
    LeadStage.QUOTATION_SENT,
    LeadStage.NEGOTIATION,
    LeadStage.CONVERTED,
)

TERMINAL_STAGES = frozenset({LeadStage.CONVERTED, LeadStage.CANCELLED, LeadStage.EXPIRED})

STATUS_TRANSITIONS: dict[LeadStatus, frozenset[LeadStatus]] = {
    LeadStatus.PENDING: frozenset({LeadStatus.LOCKED, LeadStatus.POOL, LeadStatus.INACTIVE}),
    LeadStatus.POOL: frozenset({LeadStatus.LOCKED}),
    LeadStatus.LOCKED: frozenset(
        {LeadStatus.CONVERTED, LeadStatus.CANCELLED, LeadStatus.INACTIVE}
    ),
    LeadStatus.CONVERTED: frozenset(),
    LeadStatus.CANCELLED: frozenset(),
    LeadStatus.INACTIVE: frozenset(),
}

# Statuses under which a lead has a current owner.
OWNED_STATUSES = frozenset({LeadStatus.LOCKED, LeadStatus.CONVERTED, LeadStatus.CANCELLED})

# Stages that also move the status axis when reached.
STAGE_STATUS_EFFECTS: dict[LeadStage, LeadStatus] = {
    LeadStage.CONVERTED: LeadStatus.CONVERTED,
    LeadStage.CANCELLED: LeadStatus.CANCELLED,
}


def can_transition_status(current: LeadStatus, target: LeadStatus) -> bool:
    """Check whether a lifecycle command may move the status axis."""
    return target in STATUS_TRANSITIONS[current]


def can_transition_stage(current: LeadStage, target: LeadStage) -> bool:
    """
    Check whether a stage-transition command is legal.

    Non-terminal stages may move strictly forward along the funnel (skipping
    steps is allowed) or drop out to CANCELLED / EXPIRED.
    """
    if current in TERMINAL_STAGES:
        return False
    if target in (LeadStage.CANCELLED, LeadStage.EXPIRED):
        return True
    return FUNNEL.index(target) > FUNNEL.index(current)


def parse_status(value: str) -> LeadStatus:
    """Parse a status token, raising ValueError for unknown values."""
    try:
        return LeadStatus(str(value).strip().upper())
    except ValueError as err:
        raise ValueError(f"Unknown lead status: {value!r}") from err


def parse_stage(value: str) -> LeadStage:
    """Parse a stage token, raising ValueError for unknown values."""
    try:
        return LeadStage(str(value).strip().upper())
    except ValueError as err:
        raise ValueError(f"Unknown lead stage: {value!r}") from err
