"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Row locking for check-then-write sequences
- Classification of lock contention errors
"""

import logging
from typing import Optional, TypeVar, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# SQLSTATE lock_not_available, raised by FOR UPDATE NOWAIT on PostgreSQL
_PG_LOCK_NOT_AVAILABLE = "55P03"


def dialect_name(db: Session) -> str:
    try:
        return db.get_bind().dialect.name
    except Exception:
        return ""


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    return dialect_name(db) == 'postgresql'


def is_sqlite(db: Session) -> bool:
    """Check if the database is SQLite"""
    return dialect_name(db) == 'sqlite'


def acquire_row_lock(
    db: Session,
    model: Type[T],
    filter_condition,
    nowait: bool = False,
    skip_locked: bool = False,
    options: tuple = (),
) -> Optional[T]:
    """
    Acquire a row-level lock on a database record.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filter_condition: Filter to find the row
        nowait: If True, raise error immediately if lock unavailable (PostgreSQL only)
        skip_locked: If True, skip locked rows (PostgreSQL only)
        options: Loader options applied to the query

    Returns:
        The locked model instance, or None if not found

    Raises:
        OperationalError: If nowait=True and row is locked by another transaction

    On SQLite no lock clause is emitted; the engine starts every
    transaction with BEGIN IMMEDIATE instead.

    Example:
        unit = acquire_row_lock(db, WarehouseUnit, WarehouseUnit.id == unit_id, nowait=True)
    """
    query = db.query(model).filter(filter_condition)
    if options:
        query = query.options(*options)

    # Only apply locking on PostgreSQL
    if is_postgres(db):
        if skip_locked:
            query = query.with_for_update(skip_locked=True)
        elif nowait:
            query = query.with_for_update(nowait=True)
        else:
            query = query.with_for_update()

    return query.first()


def is_lock_contention(exc: DBAPIError) -> bool:
    """True when the error means another transaction holds the lock"""
    pgcode = getattr(getattr(exc, "orig", None), "pgcode", None)
    if pgcode == _PG_LOCK_NOT_AVAILABLE:
        return True
    message = str(exc).lower()
    return "could not obtain lock" in message or "database is locked" in message
