"""FastAPI web application for userstore."""

import logging
import os
from typing import Any, Dict, List, Optional
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from userstore.database.database import get_db
from userstore.database.query import parse_fields_param
from userstore.database.user_repository import UserRepository
from userstore.errors import APIError, InvalidQueryError
from userstore.models.user import User, UserCreate, UserUpdate

logger = logging.getLogger(__name__)

PAGE_LIMIT_DEFAULT = int(os.getenv("USERS_PAGE_LIMIT_DEFAULT", "50"))
PAGE_LIMIT_MAX = int(os.getenv("USERS_PAGE_LIMIT_MAX", "500"))

# Initialize FastAPI app
app = FastAPI(
    title="userstore API",
    description="Create, read, update and delete users with unique usernames",
    version="0.1.0"
)


# Response models
class UserResponse(BaseModel):
    """Response wrapping a single user."""
    user: User


class UserListResponse(BaseModel):
    """Response for a page of users."""
    users: List[Dict[str, Any]]
    skip: int
    limit: int


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status, content=exc.to_dict())


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


@app.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    candidate: UserCreate,
    repo: UserRepository = Depends(get_user_repository),
):
    """Create a user. 409 if the username is taken."""
    return UserResponse(user=repo.create_user(candidate))


@app.get("/users", response_model=UserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(PAGE_LIMIT_DEFAULT, ge=1, le=PAGE_LIMIT_MAX),
    fields: Optional[str] = Query(None, description="Comma separated fields; prefix with '-' to exclude"),
    username: Optional[str] = None,
    name: Optional[str] = None,
    lastname: Optional[str] = None,
    email: Optional[str] = None,
    confirmed: Optional[bool] = None,
    blocked: Optional[bool] = None,
    status: Optional[bool] = None,
    repo: UserRepository = Depends(get_user_repository),
):
    """List users sorted by name, one page at a time."""
    candidates = {
        "username": username,
        "name": name,
        "lastname": lastname,
        "email": email,
        "confirmed": confirmed,
        "blocked": blocked,
        "status": status,
    }
    filters = {key: value for key, value in candidates.items() if value is not None}
    try:
        users = repo.read_users(filters, parse_fields_param(fields), skip, limit)
    except InvalidQueryError as e:
        logger.info(f"Rejected user list query: {e}")
        raise APIError(400, "Invalid Query", str(e)) from e
    return UserListResponse(users=users, skip=skip, limit=limit)


@app.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
):
    """Get a user by id."""
    return UserResponse(user=repo.read_user(user_id))


@app.patch("/users/{username}", response_model=UserResponse)
async def update_user(
    username: str,
    patch: UserUpdate,
    repo: UserRepository = Depends(get_user_repository),
):
    """Partially update a user by username."""
    return UserResponse(user=repo.update_user(username, patch))


@app.delete("/users/{username}", response_model=UserResponse)
async def delete_user(
    username: str,
    repo: UserRepository = Depends(get_user_repository),
):
    """Delete a user by username and return the removed record."""
    return UserResponse(user=repo.delete_user(username))
