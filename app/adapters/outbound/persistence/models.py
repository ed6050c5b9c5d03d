"""SQLAlchemy ORM models for the tracker's collections."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadModel(Base):
    """SQLAlchemy model for leads table."""

    __tablename__ = "leads"

    id = Column(String, primary_key=True, index=True)
    school_name = Column(String, nullable=False, index=True)
    region_id = Column(String, nullable=False, default="")
    region_name = Column(String, nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    zip_code = Column(String, nullable=False, default="", index=True)
    landmark = Column(String, nullable=True)
    contact_person = Column(String, nullable=False, default="")
    designation = Column(String, nullable=True)
    contact_email = Column(String, nullable=False, default="")
    contact_phone = Column(String, nullable=False, default="", index=True)
    contacted_date = Column(DateTime(timezone=True), nullable=True)
    is_chain = Column(Boolean, nullable=False, default=False)
    chain_name = Column(String, nullable=True)
    remarks = Column(Text, nullable=False, default="")
    place_id = Column(String, nullable=True)
    status = Column(String, nullable=False, index=True)  # PENDING, LOCKED, POOL, ...
    stage = Column(String, nullable=False)  # NEW, CONTACTED, ...
    probability = Column(Integer, nullable=True)
    assigned_to_user_id = Column(String, nullable=True, index=True)
    assigned_to_name = Column(String, nullable=True)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_by = Column(String, nullable=False, index=True)
    updates_json = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=0)


class UserModel(Base):
    """SQLAlchemy model for users table (keyed by identity provider id)."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    default_lock_in_months = Column(Integer, nullable=False, default=3)
    assigned_regions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class RegionModel(Base):
    """SQLAlchemy model for regions table."""

    __tablename__ = "regions"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    remarks = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class NotificationModel(Base):
    """SQLAlchemy model for notifications table."""

    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="info")
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    link = Column(String, nullable=True)
