"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Conflict-aware INSERT builders (do nothing / do update)
"""

import logging
from typing import Iterable, Optional, Type
from sqlalchemy.orm import Session
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

logger = logging.getLogger(__name__)


def dialect_name(db: Session) -> str:
    """Name of the dialect the session is bound to ('' if unknown)"""
    bind = db.get_bind()
    return getattr(getattr(bind, "dialect", None), "name", "") or ""


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    return dialect_name(db) == 'postgresql'


def is_sqlite(db: Session) -> bool:
    """Check if the database is SQLite"""
    return dialect_name(db) == 'sqlite'


def supports_on_conflict(db: Session) -> bool:
    """PostgreSQL and SQLite (3.24+) both understand ON CONFLICT"""
    return is_postgres(db) or is_sqlite(db)


def _dialect_insert(db: Session, model: Type):
    if is_postgres(db):
        return pg_insert(model)
    return sqlite_insert(model)


def insert_do_nothing(db: Session, model: Type, values: dict, conflict_columns: Iterable[str]):
    """
    Build INSERT ... ON CONFLICT (cols) DO NOTHING for the session's dialect.

    Returns None when the dialect has no ON CONFLICT support; callers then
    fall back to a SAVEPOINT + IntegrityError check.
    """
    if not supports_on_conflict(db):
        return None
    stmt = _dialect_insert(db, model).values(**values)
    return stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))


def insert_do_update(
    db: Session,
    model: Type,
    values: dict,
    conflict_columns: Iterable[str],
    update_columns: Iterable[str]
) -> Optional[object]:
    """
    Build INSERT ... ON CONFLICT (cols) DO UPDATE SET col = EXCLUDED.col.

    Returns None when the dialect has no ON CONFLICT support.
    """
    if not supports_on_conflict(db):
        return None
    stmt = _dialect_insert(db, model).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={col: getattr(stmt.excluded, col) for col in update_columns},
    )
