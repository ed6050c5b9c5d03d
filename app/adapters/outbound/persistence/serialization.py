"""Entity <-> row conversions shared by the SQL repositories."""

from datetime import datetime, timezone
from typing import Any, Optional

from app.domain.entities.lead import Attachment, Lead, LeadUpdate
from app.domain.entities.notification import Notification
from app.domain.entities.user import Region, User, UserRole
from app.domain.value_objects.lead_status import LeadStage, LeadStatus

from .models import LeadModel, NotificationModel, RegionModel, UserModel


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Make a datetime timezone-aware (SQLite returns naive datetimes)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def serialize_update(update: LeadUpdate) -> dict[str, Any]:
    """
    Serialize a LeadUpdate to a JSON-compatible dictionary.

    Args:
        update: History entry

    Returns:
        Dictionary representation of the entry
    """
    return {
        "id": update.id,
        "remarks": update.remarks,
        "updated_by": update.updated_by,
        "status": update.status.value,
        "stage": update.stage.value,
        "timestamp": update.timestamp.isoformat(),
        "stage_transition": update.stage_transition.value if update.stage_transition else None,
        "attachments": [{"name": a.name, "url": a.url} for a in update.attachments],
        "probability": update.probability,
    }


def deserialize_update(data: dict[str, Any]) -> LeadUpdate:
    """
    Deserialize a dictionary to a LeadUpdate.

    Args:
        data: Dictionary representation of the entry

    Returns:
        History entry
    """
    stage_transition = data.get("stage_transition")
    return LeadUpdate(
        id=data["id"],
        remarks=data.get("remarks", ""),
        updated_by=data.get("updated_by", ""),
        status=LeadStatus(data["status"]),
        stage=LeadStage(data["stage"]),
        timestamp=ensure_utc(datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))),
        stage_transition=LeadStage(stage_transition) if stage_transition else None,
        attachments=[Attachment(name=a["name"], url=a["url"]) for a in data.get("attachments", [])],
        probability=data.get("probability"),
    )


def lead_from_model(model: LeadModel) -> Lead:
    """Convert LeadModel to a Lead entity."""
    return Lead(
        id=model.id,
        school_name=model.school_name,
        created_by=model.created_by,
        region_id=model.region_id,
        region_name=model.region_name,
        address=model.address,
        zip_code=model.zip_code,
        landmark=model.landmark,
        contact_person=model.contact_person,
        designation=model.designation,
        contact_email=model.contact_email,
        contact_phone=model.contact_phone,
        contacted_date=ensure_utc(model.contacted_date),
        is_chain=model.is_chain,
        chain_name=model.chain_name,
        remarks=model.remarks,
        place_id=model.place_id,
        status=LeadStatus(model.status),
        stage=LeadStage(model.stage),
        probability=model.probability,
        assigned_to_user_id=model.assigned_to_user_id,
        assigned_to_name=model.assigned_to_name,
        locked_until=ensure_utc(model.locked_until),
        created_at=ensure_utc(model.created_at),
        updates=[deserialize_update(item) for item in (model.updates_json or [])],
        version=model.version,
    )


def lead_to_values(lead: Lead) -> dict[str, Any]:
    """
    Column values for a lead, excluding id and version.

    Args:
        lead: Lead entity

    Returns:
        Mapping of LeadModel column name to value
    """
    return {
        "school_name": lead.school_name,
        "region_id": lead.region_id,
        "region_name": lead.region_name,
        "address": lead.address,
        "zip_code": lead.zip_code,
        "landmark": lead.landmark,
        "contact_person": lead.contact_person,
        "designation": lead.designation,
        "contact_email": lead.contact_email,
        "contact_phone": lead.contact_phone,
        "contacted_date": lead.contacted_date,
        "is_chain": lead.is_chain,
        "chain_name": lead.chain_name,
        "remarks": lead.remarks,
        "place_id": lead.place_id,
        "status": lead.status.value,
        "stage": lead.stage.value,
        "probability": lead.probability,
        "assigned_to_user_id": lead.assigned_to_user_id,
        "assigned_to_name": lead.assigned_to_name,
        "locked_until": lead.locked_until,
        "created_at": lead.created_at,
        "created_by": lead.created_by,
        "updates_json": [serialize_update(update) for update in lead.updates],
    }


def user_from_model(model: UserModel) -> User:
    """Convert UserModel to a User entity."""
    return User(
        id=model.id,
        email=model.email,
        full_name=model.full_name,
        role=UserRole(model.role),
        default_lock_in_months=model.default_lock_in_months,
        assigned_regions=list(model.assigned_regions or []),
        is_active=model.is_active,
        created_at=ensure_utc(model.created_at),
    )


def copy_user_to_model(user: User, model: UserModel) -> UserModel:
    """Copy user fields onto a model."""
    model.email = user.email
    model.full_name = user.full_name
    model.role = user.role.value
    model.default_lock_in_months = user.default_lock_in_months
    model.assigned_regions = list(user.assigned_regions)
    model.is_active = user.is_active
    model.created_at = user.created_at
    return model


def region_from_model(model: RegionModel) -> Region:
    """Convert RegionModel to a Region entity."""
    return Region(
        id=model.id,
        name=model.name,
        remarks=model.remarks,
        is_active=model.is_active,
    )


def notification_from_model(model: NotificationModel) -> Notification:
    """Convert NotificationModel to a Notification entity."""
    return Notification(
        id=model.id,
        user_id=model.user_id,
        title=model.title,
        message=model.message,
        type=model.type,
        read=model.read,
        created_at=ensure_utc(model.created_at),
        link=model.link,
    )


def notification_to_model(notification: Notification) -> NotificationModel:
    """Convert a Notification entity to a new NotificationModel."""
    return NotificationModel(
        id=notification.id,
        user_id=notification.user_id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        read=notification.read,
        created_at=notification.created_at,
        link=notification.link,
    )
