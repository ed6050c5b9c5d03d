"""Export record builders for lead and performance reports."""

from typing import Any

from app.application.dtos.dashboard import UserPerformance
from app.domain.entities.lead import Lead
from app.domain.entities.user import User

LEAD_CSV_COLUMNS = [
    "School Name",
    "Region",
    "Contact Person",
    "Phone",
    "Email",
    "Address",
    "Status",
    "Stage",
    "Assigned To",
    "Created Date",
]
LEAD_XLSX_COLUMNS = LEAD_CSV_COLUMNS + ["Is Chain", "Chain Name", "Remarks"]

USER_PERFORMANCE_COLUMNS = [
    "User",
    "Email",
    "Leads Generated",
    "Demo Showed",
    "Quotation Sent",
    "Negotiation",
    "Converted",
    "Cancelled",
    "Expired",
    "Conversion Rate",
]


def lead_records(leads: list[Lead], extended: bool = True) -> list[dict[str, Any]]:
    """
    Leads as export records.

    Args:
        leads: Leads to export
        extended: Include chain and remarks columns (spreadsheet export)

    Returns:
        One record per lead keyed by LEAD_XLSX_COLUMNS or LEAD_CSV_COLUMNS
    """
    records = []
    for lead in leads:
        record: dict[str, Any] = {
            "School Name": lead.school_name,
            "Region": lead.region_name,
            "Contact Person": lead.contact_person,
            "Phone": lead.contact_phone,
            "Email": lead.contact_email or "N/A",
            "Address": lead.address,
            "Status": lead.status.value,
            "Stage": lead.stage.value,
            "Assigned To": lead.assigned_to_name or "Unassigned",
            "Created Date": lead.created_at.strftime("%d/%m/%Y"),
        }
        if extended:
            record["Is Chain"] = "Yes" if lead.is_chain else "No"
            record["Chain Name"] = lead.chain_name or "N/A"
            record["Remarks"] = lead.remarks
        records.append(record)
    return records


def conversion_rate(converted: int, generated: int) -> str:
    """Whole-percent conversion rate, "0%" when nothing was generated."""
    if generated <= 0:
        return "0%"
    return f"{round(converted / generated * 100)}%"


def user_performance_records(
    performance: list[UserPerformance], users: list[User]
) -> list[dict[str, Any]]:
    """
    Per-user performance as export records.

    Args:
        performance: Performance entries
        users: User directory (email lookup)

    Returns:
        One record per entry keyed by USER_PERFORMANCE_COLUMNS
    """
    emails = {user.id: user.email for user in users}
    return [
        {
            "User": entry.full_name,
            "Email": emails.get(entry.user_id, ""),
            "Leads Generated": entry.generated,
            "Demo Showed": entry.demo_showed,
            "Quotation Sent": entry.quotation_sent,
            "Negotiation": entry.negotiation,
            "Converted": entry.converted,
            "Cancelled": entry.cancelled,
            "Expired": entry.expired,
            "Conversion Rate": conversion_rate(entry.converted, entry.generated),
        }
        for entry in performance
    ]
