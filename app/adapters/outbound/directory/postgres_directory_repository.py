"""Postgres-backed user and region repository adapters."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.outbound.persistence.models import RegionModel, UserModel
from app.adapters.outbound.persistence.serialization import (
    copy_user_to_model,
    region_from_model,
    user_from_model,
)
from app.application.ports.directory_repository import RegionRepository, UserRepository
from app.domain.entities.user import Region, User, UserRole
from app.domain.errors import NotFoundError
from app.infrastructure.db import get_db_session
from app.infrastructure.logging.logger import logger


class PostgresUserRepository(UserRepository):
    """Postgres implementation of user repository."""

    async def get(self, user_id: str) -> Optional[User]:
        """
        Get a user by id.

        Args:
            user_id: Identity provider user id

        Returns:
            User entity, or None if not found
        """
        db: Session = get_db_session()
        try:
            model = db.query(UserModel).filter(UserModel.id == user_id).first()
            if model is None:
                return None
            return user_from_model(model)
        except SQLAlchemyError as e:
            logger.error(f"Database error while getting user {user_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def add(self, user: User) -> None:
        """
        Insert a user under its identity provider id.

        Args:
            user: User entity
        """
        db: Session = get_db_session()
        try:
            db.add(copy_user_to_model(user, UserModel(id=user.id)))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while adding user {user.id}: {str(e)}")
            raise
        finally:
            db.close()

    async def update(self, user: User) -> None:
        """Overwrite a stored user."""
        db: Session = get_db_session()
        try:
            model = db.query(UserModel).filter(UserModel.id == user.id).first()
            if model is None:
                raise NotFoundError("User", user.id)
            copy_user_to_model(user, model)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while updating user {user.id}: {str(e)}")
            raise
        finally:
            db.close()

    async def update_roles(self, user_ids: list[str], role: UserRole) -> None:
        """Atomically set the role of several users."""
        db: Session = get_db_session()
        try:
            models = db.query(UserModel).filter(UserModel.id.in_(user_ids)).all()
            found = {model.id for model in models}
            missing = [user_id for user_id in user_ids if user_id not in found]
            if missing:
                raise NotFoundError("User", missing[0])
            for model in models:
                model.role = role.value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while updating roles for {len(user_ids)} users: {str(e)}")
            raise
        finally:
            db.close()

    async def list(self) -> list[User]:
        """
        List all users.

        Returns:
            Every stored user
        """
        db: Session = get_db_session()
        try:
            models = db.query(UserModel).order_by(UserModel.created_at).all()
            return [user_from_model(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing users: {str(e)}")
            raise
        finally:
            db.close()


class PostgresRegionRepository(RegionRepository):
    """Postgres implementation of region repository."""

    async def get(self, region_id: str) -> Optional[Region]:
        db: Session = get_db_session()
        try:
            model = db.query(RegionModel).filter(RegionModel.id == region_id).first()
            return region_from_model(model) if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Database error while getting region {region_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def add(self, region: Region) -> None:
        db: Session = get_db_session()
        try:
            db.add(
                RegionModel(
                    id=region.id,
                    name=region.name,
                    remarks=region.remarks,
                    is_active=region.is_active,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while adding region {region.id}: {str(e)}")
            raise
        finally:
            db.close()

    async def update(self, region: Region) -> None:
        db: Session = get_db_session()
        try:
            model = db.query(RegionModel).filter(RegionModel.id == region.id).first()
            if model is None:
                raise NotFoundError("Region", region.id)
            model.name = region.name
            model.remarks = region.remarks
            model.is_active = region.is_active
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while updating region {region.id}: {str(e)}")
            raise
        finally:
            db.close()

    async def delete(self, region_id: str) -> None:
        db: Session = get_db_session()
        try:
            deleted = db.query(RegionModel).filter(RegionModel.id == region_id).delete()
            if deleted == 0:
                raise NotFoundError("Region", region_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while deleting region {region_id}: {str(e)}")
            raise
        finally:
            db.close()

    async def list(self) -> list[Region]:
        db: Session = get_db_session()
        try:
            models = db.query(RegionModel).order_by(RegionModel.name).all()
            return [region_from_model(model) for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Database error while listing regions: {str(e)}")
            raise
        finally:
            db.close()
