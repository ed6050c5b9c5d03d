"""Bulk upload row and batch entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

CONTACT_PHONE_PLACEHOLDER = "00000 00000"
WILL_UPDATE_MARKER = "Will Update"


class BulkRowStatus(str, Enum):
    """Verification / commit state of a bulk upload row."""

    PENDING = "PENDING"
    VERIFYING = "VERIFYING"
    VERIFIED = "VERIFIED"
    DUPLICATE = "DUPLICATE"
    ERROR = "ERROR"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NO_MATCH = "NO_MATCH"
    MULTIPLE_MATCHES = "MULTIPLE_MATCHES"
    UPLOADED = "UPLOADED"


@dataclass
class OriginalRowData:
    """Spreadsheet values as read, positional columns A..D."""

    contact_person: str
    school_name: str
    designation: str
    incharge_name: str


@dataclass
class VerifiedRowData:
    """Values that will be written to the lead on commit."""

    school_name: str
    contact_person: str = ""
    designation: str = ""
    address: str = ""
    zip_code: str = ""
    landmark: str = ""
    region_id: str = ""
    region_name: str = ""
    place_id: Optional[str] = None
    contact_phone: str = CONTACT_PHONE_PLACEHOLDER
    contact_email: str = ""
    assigned_to_user_id: str = ""
    assigned_to_user_name: str = ""


@dataclass
class BulkUploadRow:
    """A single spreadsheet row moving through the bulk upload pipeline."""

    id: str
    original: OriginalRowData
    verified: VerifiedRowData
    status: BulkRowStatus = BulkRowStatus.PENDING
    message: Optional[str] = None
    region_defaulted: bool = False
    existing_lead_id: Optional[str] = None
    upload_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def mark(self, status: BulkRowStatus, message: Optional[str] = None) -> None:
        """Set the row status and message together."""
        self.status = status
        self.message = message

    @property
    def will_update(self) -> bool:
        """Duplicate row flagged for an upsert of the existing NEW-stage lead."""
        return self.status == BulkRowStatus.DUPLICATE and WILL_UPDATE_MARKER in (self.message or "")

    @property
    def is_committable(self) -> bool:
        """Only VERIFIED rows and Will Update duplicates are written on commit."""
        return self.status == BulkRowStatus.VERIFIED or self.will_update


@dataclass
class BulkUploadBatch:
    """Rows uploaded together, kept between verification and commit."""

    id: str
    uploaded_by: str
    rows: list[BulkUploadRow] = field(default_factory=list)
    cancel_requested: bool = False
    verifying: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def find_row(self, row_id: str) -> Optional[BulkUploadRow]:
        """Look up a row by id."""
        for row in self.rows:
            if row.id == row_id:
                return row
        return None
