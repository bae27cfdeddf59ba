"""Database migration runner for production.

Goal:
- Prefer Alembic migrations for deterministic schema management.
- If the users table already exists but Alembic history is out of sync
  (created by `create_all()` before migrations were tracked), verify the
  schema, including the unique username index, and `stamp head`.

Intended to be executed as a one-off job during deploys.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Tuple

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from userstore.database.database import DATABASE_URL, _is_sqlite_url, build_engine

logger = logging.getLogger(__name__)


def _alembic_cfg() -> Config:
    cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    return cfg


def _required_schema_checks() -> List[Tuple[str, str]]:
    """Return (kind, name) checks required to safely stamp head."""
    return [
        ("table", "users"),
        ("column:users", "username"),
        ("column:users", "created_at"),
        ("column:users", "updated_at"),
        ("column:users", "version"),
        ("unique:users", "username"),
    ]


def _has_unique_on(inspector, table: str, column: str) -> bool:
    for index in inspector.get_indexes(table):
        if index.get("unique") and index.get("column_names") == [column]:
            return True
    for constraint in inspector.get_unique_constraints(table):
        if constraint.get("column_names") == [column]:
            return True
    return False


def _missing_requirements(conn) -> List[str]:
    inspector = inspect(conn)
    tables = set(inspector.get_table_names())
    missing: List[str] = []
    for kind, name in _required_schema_checks():
        if kind == "table":
            if name not in tables:
                missing.append(f"missing table: {name}")
            continue

        table = kind.split(":", 1)[1]
        if table not in tables:
            # Already reported by the table check
            continue
        if kind.startswith("column:"):
            columns = {c["name"] for c in inspector.get_columns(table)}
            if name not in columns:
                missing.append(f"missing column: {table}.{name}")
        elif kind.startswith("unique:"):
            if not _has_unique_on(inspector, table, name):
                missing.append(f"missing unique index: {table}.{name}")
        else:
            missing.append(f"unknown check: {kind} {name}")
    return missing


def main() -> int:
    if _is_sqlite_url(DATABASE_URL):
        command.upgrade(_alembic_cfg(), "head")
        return 0

    engine = build_engine(DATABASE_URL)

    try:
        command.upgrade(_alembic_cfg(), "head")
        return 0
    except Exception as e:
        msg = str(e).lower()
        looks_like_already_applied = any(
            s in msg
            for s in [
                "duplicate",
                "already exists",
                "duplicate_table",
                "exists",
            ]
        )
        if not looks_like_already_applied:
            raise

        # Only stamp head if we can verify the expected schema is present.
        with engine.begin() as conn:
            missing = _missing_requirements(conn)
        if missing:
            raise RuntimeError(
                "Alembic upgrade failed and schema is not at expected baseline; refusing to stamp head. "
                + "; ".join(missing)
            ) from e

        logger.info("users schema already present; stamping Alembic head")
        command.stamp(_alembic_cfg(), "head")
        return 0


if __name__ == "__main__":
    sys.exit(main())
