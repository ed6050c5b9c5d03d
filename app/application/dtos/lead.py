"""Lead DTOs."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.application.dtos.base import DTO
from app.domain.entities.lead import Lead, LeadUpdate
from app.domain.value_objects.lead_status import LeadStage, LeadStatus


class LeadInput(DTO):
    """Contact details submitted when creating a lead."""

    school_name: str = Field(min_length=1)
    region_id: str
    region_name: str = ""
    address: str = ""
    zip_code: str
    landmark: Optional[str] = None
    contact_person: str = ""
    designation: Optional[str] = None
    contact_email: str = ""
    contact_phone: str
    contacted_date: Optional[datetime] = None
    is_chain: bool = False
    chain_name: Optional[str] = None
    remarks: str = ""
    place_id: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "school_name": "Greenwood High",
                "region_id": "region_blr",
                "address": "Sarjapur Road, Bengaluru",
                "zip_code": "560001",
                "contact_person": "A. Rao",
                "designation": "Principal",
                "contact_email": "principal@greenwood.example",
                "contact_phone": "+91 98450 12345",
                "is_chain": False,
                "remarks": "Met at book fair",
            }
        }


class CreateLeadRequest(LeadInput):
    """Lead creation request from the create-lead form."""

    confirm_similar: bool = False


class DuplicateCheckRequest(DTO):
    """Duplicate check request."""

    school_name: str
    zip_code: str
    contact_phone: str = ""
    address: str = ""
    exclude_lead_id: Optional[str] = None


class AttachmentSchema(DTO):
    """File attached to a lead update."""

    name: str
    url: str


class LeadUpdateRequest(DTO):
    """Progress update posted by the lead owner."""

    remarks: str = ""
    stage: Optional[LeadStage] = None
    probability: Optional[int] = None
    attachments: list[AttachmentSchema] = []


class ApproveLeadRequest(DTO):
    """Admin approval with an optional lock-in override."""

    lock_months: Optional[int] = None


class ClaimLeadRequest(DTO):
    """Pool claim with the lock-in period chosen by the distributor."""

    lock_months: Optional[int] = None


class AssignLeadsRequest(DTO):
    """Admin bulk assignment of pool leads."""

    lead_ids: list[str] = Field(min_length=1)
    user_id: str
    lock_months: Optional[int] = None


class StatusOverrideRequest(DTO):
    """Admin status override."""

    status: LeadStatus


class StageOverrideRequest(DTO):
    """Admin stage override."""

    stage: LeadStage


class LeadUpdateResponse(DTO):
    """History entry."""

    id: str
    remarks: str
    updated_by: str
    status: LeadStatus
    stage: LeadStage
    timestamp: datetime
    stage_transition: Optional[LeadStage] = None
    attachments: list[AttachmentSchema] = []
    probability: Optional[int] = None

    @classmethod
    def from_entity(cls, update: LeadUpdate) -> "LeadUpdateResponse":
        return cls(
            id=update.id,
            remarks=update.remarks,
            updated_by=update.updated_by,
            status=update.status,
            stage=update.stage,
            timestamp=update.timestamp,
            stage_transition=update.stage_transition,
            attachments=[AttachmentSchema(name=a.name, url=a.url) for a in update.attachments],
            probability=update.probability,
        )


class LeadResponse(DTO):
    """Lead as returned by the API (history most-recent-first)."""

    id: str
    school_name: str
    region_id: str
    region_name: str
    address: str
    zip_code: str
    landmark: Optional[str] = None
    contact_person: str
    designation: Optional[str] = None
    contact_email: str
    contact_phone: str
    contacted_date: Optional[datetime] = None
    is_chain: bool
    chain_name: Optional[str] = None
    remarks: str
    place_id: Optional[str] = None
    status: LeadStatus
    stage: LeadStage
    probability: Optional[int] = None
    assigned_to_user_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    locked_until: Optional[datetime] = None
    days_remaining: Optional[int] = None
    created_at: datetime
    created_by: str
    version: int
    updates: list[LeadUpdateResponse] = []

    @classmethod
    def from_entity(cls, lead: Lead, now: datetime) -> "LeadResponse":
        return cls(
            id=lead.id,
            school_name=lead.school_name,
            region_id=lead.region_id,
            region_name=lead.region_name,
            address=lead.address,
            zip_code=lead.zip_code,
            landmark=lead.landmark,
            contact_person=lead.contact_person,
            designation=lead.designation,
            contact_email=lead.contact_email,
            contact_phone=lead.contact_phone,
            contacted_date=lead.contacted_date,
            is_chain=lead.is_chain,
            chain_name=lead.chain_name,
            remarks=lead.remarks,
            place_id=lead.place_id,
            status=lead.status,
            stage=lead.stage,
            probability=lead.probability,
            assigned_to_user_id=lead.assigned_to_user_id,
            assigned_to_name=lead.assigned_to_name,
            locked_until=lead.locked_until,
            days_remaining=lead.days_remaining(now) if lead.status == LeadStatus.LOCKED else None,
            created_at=lead.created_at,
            created_by=lead.created_by,
            version=lead.version,
            updates=[LeadUpdateResponse.from_entity(update) for update in lead.history()],
        )


class DuplicateCheckResponse(BaseModel):
    """Outcome of a duplicate check."""

    is_duplicate: bool
    match_type: str
    message: str
    duplicate_leads: list[LeadResponse] = []
