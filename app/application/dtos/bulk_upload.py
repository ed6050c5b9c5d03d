"""Bulk upload DTOs."""

from datetime import datetime
from typing import Optional

from app.application.dtos.base import DTO
from app.domain.entities.bulk_upload_row import BulkRowStatus, BulkUploadBatch, BulkUploadRow


class VerificationSummary(DTO):
    """Counts by row status after a verification run."""

    processed: int
    cancelled: bool
    counts: dict[str, int]


class CommitSummary(DTO):
    """End-of-run summary of a commit."""

    uploaded: int
    failed: int
    skipped: int
    cancelled: bool


class RowEditRequest(DTO):
    """Manual override of a row's verified fields (edit dialog)."""

    school_name: Optional[str] = None
    address: Optional[str] = None
    zip_code: Optional[str] = None
    landmark: Optional[str] = None
    region_id: Optional[str] = None
    region_name: Optional[str] = None
    place_id: Optional[str] = None
    contact_person: Optional[str] = None
    designation: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    assigned_to_user_id: Optional[str] = None
    assigned_to_user_name: Optional[str] = None


class BulkRowResponse(DTO):
    """Row as shown in the bulk upload table."""

    id: str
    status: BulkRowStatus
    message: Optional[str] = None
    region_defaulted: bool
    original: dict[str, str]
    verified: dict[str, Optional[str]]
    upload_date: datetime

    @classmethod
    def from_entity(cls, row: BulkUploadRow) -> "BulkRowResponse":
        return cls(
            id=row.id,
            status=row.status,
            message=row.message,
            region_defaulted=row.region_defaulted,
            original={
                "contact_person": row.original.contact_person,
                "school_name": row.original.school_name,
                "designation": row.original.designation,
                "incharge_name": row.original.incharge_name,
            },
            verified={
                "school_name": row.verified.school_name,
                "address": row.verified.address,
                "zip_code": row.verified.zip_code,
                "landmark": row.verified.landmark,
                "region_id": row.verified.region_id,
                "region_name": row.verified.region_name,
                "place_id": row.verified.place_id,
                "contact_person": row.verified.contact_person,
                "designation": row.verified.designation,
                "contact_phone": row.verified.contact_phone,
                "contact_email": row.verified.contact_email,
                "assigned_to_user_id": row.verified.assigned_to_user_id,
                "assigned_to_user_name": row.verified.assigned_to_user_name,
            },
            upload_date=row.upload_date,
        )


class BulkBatchResponse(DTO):
    """Batch with its rows."""

    id: str
    uploaded_by: str
    verifying: bool
    cancel_requested: bool
    created_at: datetime
    rows: list[BulkRowResponse]

    @classmethod
    def from_entity(cls, batch: BulkUploadBatch) -> "BulkBatchResponse":
        return cls(
            id=batch.id,
            uploaded_by=batch.uploaded_by,
            verifying=batch.verifying,
            cancel_requested=batch.cancel_requested,
            created_at=batch.created_at,
            rows=[BulkRowResponse.from_entity(row) for row in batch.rows],
        )
