"""Filter, projection and pagination helpers for user list queries."""

from collections import abc
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from userstore.database.models import UserDB, USER_FIELDS
from userstore.errors import InvalidQueryError

Projection = Union[Mapping[str, Any], Sequence[str]]


def _check_field(field: str) -> None:
    if field not in USER_FIELDS:
        raise InvalidQueryError(f"Unknown user field '{field}'")


def build_filter_conditions(filters: Optional[Mapping[str, Any]]) -> List[Any]:
    """Translate an attribute -> value mapping into SQLAlchemy conditions.

    - scalar value: equality
    - None: IS NULL
    - list/tuple/set: IN (...)
    """
    conditions: List[Any] = []
    if not filters:
        return conditions

    for field, value in filters.items():
        _check_field(field)
        column = getattr(UserDB, field)
        if value is None:
            conditions.append(column.is_(None))
        elif isinstance(value, (list, tuple, set, frozenset)):
            conditions.append(column.in_(list(value)))
        else:
            conditions.append(column == value)
    return conditions


def resolve_projection(projection: Optional[Projection]) -> List[str]:
    """Return the ordered list of attributes selected by a projection.

    A mapping must be all-inclusive or all-exclusive. `id` is always returned
    unless an inclusive mapping turns it off explicitly.
    """
    if projection is None:
        return list(USER_FIELDS)

    if isinstance(projection, str):
        raise InvalidQueryError("Projection must be a mapping or a sequence of field names")

    if not isinstance(projection, abc.Mapping):
        projection = {field: True for field in projection}

    for field in projection:
        _check_field(field)

    if not projection:
        return list(USER_FIELDS)

    id_flag = projection.get("id")
    flags = {bool(flag) for field, flag in projection.items() if field != "id"}
    if len(flags) > 1:
        raise InvalidQueryError("Projection cannot mix inclusion and exclusion")

    if flags == {True} or (not flags and id_flag):
        keep_id = id_flag is None or bool(id_flag)
        return [
            field
            for field in USER_FIELDS
            if (field == "id" and keep_id) or (field != "id" and projection.get(field))
        ]

    # Exclusive projection (possibly only excluding id)
    return [field for field in USER_FIELDS if field not in projection or projection[field]]


def parse_fields_param(fields: Optional[str]) -> Optional[dict]:
    """Parse a comma separated field list ("name,email" or "-password").

    Returns a projection mapping, or None when no fields were given.
    """
    if not fields:
        return None
    projection = {}
    for raw in fields.split(","):
        item = raw.strip()
        if not item:
            continue
        if item.startswith("-"):
            projection[item[1:]] = False
        else:
            projection[item] = True
    return projection or None


def check_pagination(skip: int, limit: int) -> None:
    if skip < 0:
        raise InvalidQueryError(f"skip must be non-negative, got {skip}")
    if limit < 0:
        raise InvalidQueryError(f"limit must be non-negative, got {limit}")


def ordering() -> Iterable[Any]:
    """Sort order for list reads: name ascending, then a stable tiebreak."""
    return (UserDB.name.asc().nulls_first(), UserDB.created_at.asc(), UserDB.id.asc())
