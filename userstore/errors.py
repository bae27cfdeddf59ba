"""Error types shared by the repository and its callers."""

from typing import Any, Dict


class APIError(Exception):
    """Failure carrying a status code, a short title and a readable detail."""

    def __init__(self, status: int, title: str, detail: str):
        super().__init__(detail)
        self.status = status
        self.title = title
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "title": self.title, "detail": self.detail}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, title={self.title!r}, detail={self.detail!r})"


class UserNotFoundError(APIError):
    """No live user matches the lookup key (id or username)."""

    def __init__(self, key: str, *, by_id: bool = False):
        if by_id:
            detail = f"No user id '{key}' found."
        else:
            detail = f"No user '{key}' found."
        super().__init__(404, "User Not Found", detail)
        self.key = key


class UserAlreadyExistsError(APIError):
    """A create or rename collides with another user's username."""

    def __init__(self, username: str):
        super().__init__(
            409,
            "User Already Exists",
            f"There is already a user with username '{username}'.",
        )
        self.username = username


class InvalidQueryError(ValueError):
    """Raised for malformed filters, projections or pagination bounds."""
