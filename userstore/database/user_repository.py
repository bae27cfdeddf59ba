"""Repository for User database operations."""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from userstore.database.models import UserDB, next_timestamp, normalize_user_row
from userstore.database.query import (
    Projection,
    build_filter_conditions,
    check_pagination,
    ordering,
    resolve_projection,
)
from userstore.errors import UserAlreadyExistsError, UserNotFoundError
from userstore.models.user import User, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def _is_valid_id(user_id: str) -> bool:
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        return False
    return True


class UserRepository:
    """Repository for User database operations.

    Every operation is one unit of work on the injected session. The unique
    index on `users.username` is the real uniqueness guarantee; the lookups
    done before writes only produce the conflict earlier.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_by_username(self, username: str, *, lock: bool = False) -> Optional[UserDB]:
        query = self.db.query(UserDB).filter(UserDB.username == username)
        if lock:
            query = query.with_for_update()
        return query.first()

    def create_user(self, candidate: UserCreate) -> User:
        """Create a new user.

        Raises:
            UserAlreadyExistsError: If the username is already taken, either
                found up front or reported by the unique index on insert.
        """
        if self._get_by_username(candidate.username) is not None:
            self.db.rollback()
            logger.info(f"Rejected duplicate username {candidate.username!r}")
            raise UserAlreadyExistsError(candidate.username)

        user_db = UserDB.from_pydantic(candidate)
        try:
            self.db.add(user_db)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Unique index rejected username {candidate.username!r}: {type(e).__name__}")
            raise UserAlreadyExistsError(candidate.username) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {candidate.username!r}: {type(e).__name__}: {str(e)}")
            raise

        self.db.refresh(user_db)
        logger.debug(f"Created user {user_db.id}: {user_db.username}")
        return user_db.to_pydantic()

    def read_user(self, user_id: str) -> User:
        """Get user by ID.

        Identifiers that are not valid UUIDs cannot match any record and are
        reported as not found.
        """
        if not _is_valid_id(user_id):
            raise UserNotFoundError(user_id, by_id=True)
        user_db = self.db.query(UserDB).filter(UserDB.id == str(user_id)).first()
        if not user_db:
            raise UserNotFoundError(user_id, by_id=True)
        return user_db.to_pydantic()

    def read_users(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        projection: Optional[Projection] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """List users sorted by name (ascending).

        Args:
            filters: Attribute -> value equality filters
            projection: Fields to include or exclude (see `resolve_projection`)
            skip: Number of matching users to skip
            limit: Maximum number of users to return (0 means no limit)

        Returns:
            Normalized records restricted to the projection; empty if none match.
        """
        check_pagination(skip, limit)
        fields = resolve_projection(projection)
        conditions = build_filter_conditions(filters)

        columns = [getattr(UserDB, field) for field in fields]
        query = self.db.query(*columns).filter(*conditions).order_by(*ordering())
        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)

        return [normalize_user_row(dict(row._mapping)) for row in query.all()]

    def update_user(self, username: str, patch: UserUpdate) -> User:
        """Apply a partial update to the user with the given username.

        Raises:
            UserNotFoundError: If no user has that username.
            UserAlreadyExistsError: If the patch renames the user onto a
                username owned by another user.
        """
        user_db = self._get_by_username(username, lock=True)
        if not user_db:
            self.db.rollback()
            raise UserNotFoundError(username)

        changes = patch.changes()
        new_username = changes.get("username")
        if new_username is not None and new_username != username:
            if self._get_by_username(new_username) is not None:
                self.db.rollback()
                logger.info(f"Rejected rename of {username!r} to taken username {new_username!r}")
                raise UserAlreadyExistsError(new_username)

        for field, value in changes.items():
            setattr(user_db, field, value)
        user_db.updated_at = next_timestamp(user_db.updated_at)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Unique index rejected rename of {username!r}: {type(e).__name__}")
            raise UserAlreadyExistsError(new_username or username) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {username!r}: {type(e).__name__}: {str(e)}")
            raise

        self.db.refresh(user_db)
        logger.debug(f"Updated user {user_db.id}: fields {sorted(changes)}")
        return user_db.to_pydantic()

    def delete_user(self, username: str) -> User:
        """Permanently delete the user with the given username.

        Returns:
            The user as it was immediately before deletion.
        """
        user_db = self._get_by_username(username, lock=True)
        if not user_db:
            self.db.rollback()
            raise UserNotFoundError(username)

        deleted = user_db.to_pydantic()
        try:
            self.db.delete(user_db)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {username!r}: {type(e).__name__}: {str(e)}")
            raise

        logger.debug(f"Deleted user {deleted.id}: {username}")
        return deleted
