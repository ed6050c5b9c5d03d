"""Postgres-backed notification repository adapter."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.outbound.persistence.models import NotificationModel
from app.adapters.outbound.persistence.serialization import (
    notification_from_model,
    notification_to_model,
)
from app.application.ports.notification_repository import NotificationRepository
from app.domain.entities.notification import Notification
from app.infrastructure.db import get_db_session
from app.infrastructure.logging.logger import logger


class PostgresNotificationRepository(NotificationRepository):
    """Postgres implementation of notification repository."""

    async def add(self, notification: Notification) -> None:
        """
        Store a notification.

        Args:
            notification: Notification entity
        """
        db: Session = get_db_session()
        try:
            db.add(notification_to_model(notification))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Database error while adding notification for {notification.user_id}: {str(e)}"
            )
            raise
        finally:
            db.close()

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        db: Session = get_db_session()
        try:
            query = db.query(NotificationModel).filter(NotificationModel.user_id == user_id)
            if unread_only:
                query = query.filter(NotificationModel.read.is_(False))
            models = query.order_by(NotificationModel.created_at.desc()).all()
            return [notification_from_model(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing notifications for {user_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        db: Session = get_db_session()
        try:
            updated = (
                db.query(NotificationModel)
                .filter(
                    NotificationModel.id == notification_id,
                    NotificationModel.user_id == user_id,
                )
                .update({"read": True}, synchronize_session=False)
            )
            db.commit()
            return updated > 0
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while marking notification {notification_id}: {str(e)}")
            raise
        finally:
            db.close()
