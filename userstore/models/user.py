"""User data models for userstore."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class User(BaseModel):
    """Externally visible user record."""
    
    id: str = Field(..., description="Unique user identifier (UUID v4, assigned on creation)")
    username: str = Field(..., description="Unique login name")
    password: Optional[str] = Field(None, description="Password as provided by the caller")
    name: Optional[str] = Field(None, description="Given name")
    lastname: Optional[str] = Field(None, description="Family name")
    email: Optional[str] = Field(None, description="Email address")
    confirmed: Optional[bool] = Field(None, description="Whether the account has been confirmed")
    blocked: Optional[bool] = Field(None, description="Whether the account is blocked")
    status: Optional[bool] = Field(None, description="Account status flag")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")


class UserCreate(BaseModel):
    """Candidate user for creation. The store assigns id and timestamps."""
    
    username: str = Field(..., min_length=1, description="Unique login name")
    password: Optional[str] = Field(None, description="Password (hashing is the caller's concern)")
    name: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    confirmed: Optional[bool] = None
    blocked: Optional[bool] = None
    status: Optional[bool] = None


class UserUpdate(BaseModel):
    """Partial user fields. Only fields explicitly set are applied."""
    
    username: Optional[str] = Field(None, min_length=1)
    password: Optional[str] = None
    name: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    confirmed: Optional[bool] = None
    blocked: Optional[bool] = None
    status: Optional[bool] = None

    @field_validator("username")
    @classmethod
    def username_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("username cannot be null")
        return v

    def changes(self) -> dict:
        """Return only the fields the caller set."""
        return self.model_dump(exclude_unset=True)
