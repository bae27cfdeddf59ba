"""SQLAlchemy database models for userstore."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime

from userstore.database.database import Base

# Attributes of the external record, in the order they are exposed.
USER_FIELDS = (
    "id",
    "username",
    "password",
    "name",
    "lastname",
    "email",
    "confirmed",
    "blocked",
    "status",
    "created_at",
    "updated_at",
)

# Store metadata that never leaves the repository.
INTERNAL_FIELDS = ("version",)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the DateTime columns are naive)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Return a timestamp strictly later than `previous`.

    Two mutations inside the same clock tick still get increasing values.
    """
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def normalize_user_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Map a raw store row to the external record shape.

    Internal metadata is dropped and only known attributes are kept, so the
    result never carries more than the external record defines.
    """
    return {key: row[key] for key in USER_FIELDS if key in row}


class UserDB(Base):
    """Database model for User."""
    
    __tablename__ = "users"
    
    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    
    # Logical key; the unique index is what actually guarantees uniqueness
    username = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=True)
    
    # User profile
    name = Column(String, nullable=True, index=True)
    lastname = Column(String, nullable=True)
    email = Column(String, nullable=True)
    
    # Flags
    confirmed = Column(Boolean, nullable=True)
    blocked = Column(Boolean, nullable=True)
    status = Column(Boolean, nullable=True)
    
    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    # Revision counter for optimistic concurrency
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    
    def to_row(self) -> Dict[str, Any]:
        """Raw column values, including internal metadata."""
        return {column.key: getattr(self, column.key) for column in self.__table__.columns}

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from userstore.models.user import User
        return User(**normalize_user_row(self.to_row()))
    
    @classmethod
    def from_pydantic(cls, candidate):
        """Create database model from a UserCreate candidate.

        id and timestamps are assigned here, never taken from the caller.
        """
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            username=candidate.username,
            password=candidate.password,
            name=candidate.name,
            lastname=candidate.lastname,
            email=candidate.email,
            confirmed=candidate.confirmed,
            blocked=candidate.blocked,
            status=candidate.status,
            created_at=now,
            updated_at=now,
        )
