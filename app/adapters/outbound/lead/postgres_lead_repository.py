"""Postgres-backed lead repository adapter."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.outbound.persistence.models import LeadModel
from app.adapters.outbound.persistence.serialization import (
    lead_from_model,
    lead_to_values,
    notification_to_model,
)
from app.application.ports.lead_repository import LeadRepository
from app.domain.entities.lead import Lead
from app.domain.entities.notification import Notification
from app.domain.errors import ConflictError, NotFoundError
from app.domain.value_objects.lead_status import LeadStatus
from app.infrastructure.db import get_db_session
from app.infrastructure.logging.logger import logger


class PostgresLeadRepository(LeadRepository):
    """Postgres implementation of lead repository."""

    def __init__(self) -> None:
        """Initialize Postgres repository."""
        pass

    def _conditional_update(
        self, db: Session, lead: Lead, expected_status: Optional[LeadStatus]
    ) -> None:
        """
        Issue a compare-and-swap UPDATE inside the caller's transaction.

        Args:
            db: Open session
            lead: Lead entity carrying the version it was read at
            expected_status: Status the stored row must still have

        Raises:
            NotFoundError: If the row does not exist
            ConflictError: If the version or status no longer match
        """
        query = db.query(LeadModel).filter(
            LeadModel.id == lead.id, LeadModel.version == lead.version
        )
        if expected_status is not None:
            query = query.filter(LeadModel.status == expected_status.value)

        values = lead_to_values(lead)
        values["version"] = lead.version + 1
        updated = query.update(values, synchronize_session=False)
        if updated == 1:
            return

        exists = db.query(LeadModel.id).filter(LeadModel.id == lead.id).first()
        if exists is None:
            raise NotFoundError("Lead", lead.id)
        raise ConflictError(f"Lead {lead.id} was modified by another request")

    async def get(self, lead_id: str) -> Optional[Lead]:
        """
        Get a lead by id.

        Args:
            lead_id: Lead identifier

        Returns:
            Lead entity, or None if not found
        """
        db: Session = get_db_session()
        try:
            model = db.query(LeadModel).filter(LeadModel.id == lead_id).first()
            if model is None:
                return None
            return lead_from_model(model)
        except SQLAlchemyError as e:
            logger.error(f"Database error while getting lead {lead_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def add(self, lead: Lead) -> None:
        """
        Insert a new lead.

        Args:
            lead: Lead entity to insert
        """
        db: Session = get_db_session()
        try:
            db.add(LeadModel(id=lead.id, version=lead.version, **lead_to_values(lead)))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while adding lead {lead.id}: {str(e)}")
            raise
        finally:
            db.close()

    async def update(self, lead: Lead, expected_status: Optional[LeadStatus] = None) -> Lead:
        """
        Conditionally overwrite a stored lead.

        Args:
            lead: Lead entity carrying the version it was read at
            expected_status: Status the stored lead must still have

        Returns:
            The stored lead with its incremented version
        """
        db: Session = get_db_session()
        try:
            self._conditional_update(db, lead, expected_status)
            db.commit()
            model = db.query(LeadModel).filter(LeadModel.id == lead.id).one()
            return lead_from_model(model)
        except (NotFoundError, ConflictError):
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while updating lead {lead.id}: {str(e)}")
            raise
        finally:
            db.close()

    async def update_many(
        self,
        leads: list[tuple[Lead, LeadStatus]],
        notification: Optional[Notification] = None,
    ) -> None:
        """
        Atomically write several leads (and optionally one notification).

        Args:
            leads: (lead, expected stored status) pairs
            notification: Notification to store in the same transaction
        """
        db: Session = get_db_session()
        try:
            for lead, expected_status in leads:
                self._conditional_update(db, lead, expected_status)
            if notification is not None:
                db.add(notification_to_model(notification))
            db.commit()
        except (NotFoundError, ConflictError):
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while updating {len(leads)} leads: {str(e)}")
            raise
        finally:
            db.close()

    async def find(
        self,
        school_name: Optional[str] = None,
        zip_code: Optional[str] = None,
        contact_phone: Optional[str] = None,
        status: Optional[LeadStatus] = None,
        assigned_to_user_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> list[Lead]:
        """
        Find leads by equality on the given fields, newest first.

        Returns:
            Matching leads ordered by created_at descending
        """
        db: Session = get_db_session()
        try:
            query = db.query(LeadModel)
            if school_name is not None:
                query = query.filter(LeadModel.school_name == school_name)
            if zip_code is not None:
                query = query.filter(LeadModel.zip_code == zip_code)
            if contact_phone is not None:
                query = query.filter(LeadModel.contact_phone == contact_phone)
            if status is not None:
                query = query.filter(LeadModel.status == status.value)
            if assigned_to_user_id is not None:
                query = query.filter(LeadModel.assigned_to_user_id == assigned_to_user_id)
            if created_by is not None:
                query = query.filter(LeadModel.created_by == created_by)
            models = query.order_by(LeadModel.created_at.desc()).all()
            return [lead_from_model(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while finding leads: {str(e)}")
            raise
        finally:
            db.close()

    async def list(self) -> list[Lead]:
        """
        List all leads.

        Returns:
            Every stored lead, newest first
        """
        return await self.find()
