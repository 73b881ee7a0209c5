"""
Generic create/read/update/delete operations shared by every entity kind.

Each operation takes the request's Session and an EntityKind; the registry
supplies the model, its read shape and its not-found wording. Update and
delete report "not found" from the affected row count rather than a prior
lookup.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, NoReturn, Optional

from sqlalchemy import delete as sql_delete
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from media_catalog.errors import NotFoundError, PersistenceError, error_message
from media_catalog.models import Base, EntityValidationError
from media_catalog.registry import EntityKind, entity_for

logger = logging.getLogger(__name__)


def _driver_text(exc: SQLAlchemyError) -> str:
    """First line of the DB-API error, e.g. the foreign key violation sentence."""
    orig = getattr(exc, "orig", None)
    text = str(orig if orig is not None else exc).strip()
    return text.splitlines()[0] if text else ""


def _fail(db: Session, kind: EntityKind, action: str, exc: Exception) -> NoReturn:
    db.rollback()
    if isinstance(exc, EntityValidationError):
        logger.info("%s %s rejected: %s", action, kind.value, exc)
        raise PersistenceError(error_message(exc)) from exc
    if isinstance(exc, IntegrityError):
        logger.info("%s %s violated a constraint: %s", action, kind.value, _driver_text(exc))
        raise PersistenceError(error_message(_driver_text(exc))) from exc
    logger.exception("%s %s failed", action, kind.value)
    raise PersistenceError(error_message(exc)) from exc


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_exact(flag: Optional[str]) -> bool:
    return flag == "true"


# PUBLIC_INTERFACE
def create(db: Session, kind: EntityKind, payload: Dict[str, Any]) -> Base:
    """
    Insert a new row built from `payload`.

    Returns:
        The created row, refreshed from the database.

    Raises:
        PersistenceError: validation, uniqueness, foreign key or database failure.
    """
    model = entity_for(kind).model
    try:
        row = model(**model.check_values(payload))
        db.add(row)
        db.flush()
        db.refresh(row)
    except (EntityValidationError, SQLAlchemyError) as exc:
        _fail(db, kind, "create", exc)

    logger.info("Created %s id=%s", kind.value, row.id)
    return row


# PUBLIC_INTERFACE
def read_all(
    db: Session,
    kind: EntityKind,
    name: Optional[str] = None,
    exact: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Base]:
    """
    List rows of a kind using its read shape.

    `name` filters by exact match when `exact` is exactly "true", otherwise by
    case-insensitive substring. `limit` caps the number of rows.
    """
    entity = entity_for(kind)
    model = entity.model
    stmt = select(model).options(*entity.shape.options).order_by(*entity.shape.order_by)

    if name:
        if _is_exact(exact):
            stmt = stmt.where(model.name == name)
        else:
            stmt = stmt.where(model.name.ilike(f"%{_escape_like(name)}%", escape="\\"))
    if limit is not None:
        stmt = stmt.limit(limit)

    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        _fail(db, kind, "list", exc)


# PUBLIC_INTERFACE
def read_by_id(db: Session, kind: EntityKind, row_id: uuid.UUID) -> Base:
    """
    Load one row by id using its read shape.

    Raises:
        NotFoundError: "The <kind> could not be found."
    """
    entity = entity_for(kind)
    model = entity.model
    stmt = select(model).options(*entity.shape.options).where(model.id == row_id)
    try:
        row = db.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        _fail(db, kind, "read", exc)

    if row is None:
        raise NotFoundError(entity.not_found_message)
    return row


# PUBLIC_INTERFACE
def find(db: Session, kind: EntityKind, row_id: uuid.UUID) -> Optional[Base]:
    """Plain primary-key lookup without eager loads; None when absent."""
    try:
        return db.get(entity_for(kind).model, row_id)
    except SQLAlchemyError as exc:
        _fail(db, kind, "find", exc)


# PUBLIC_INTERFACE
def patch(db: Session, kind: EntityKind, payload: Dict[str, Any], row_id: uuid.UUID) -> None:
    """
    Replace the supplied fields of one row in place.

    Ownership checks, where they apply, are the caller's job and must run first.

    Raises:
        NotFoundError: no row matched `row_id`.
        PersistenceError: validation or database failure.
    """
    entity = entity_for(kind)
    model = entity.model
    try:
        values = model.check_values(payload, partial=True)
        values["updated_at"] = datetime.now(timezone.utc)
        result = db.execute(
            update(model)
            .where(model.id == row_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    except (EntityValidationError, SQLAlchemyError) as exc:
        _fail(db, kind, "patch", exc)

    if not result.rowcount:
        raise NotFoundError(entity.not_found_message)
    logger.info("Patched %s id=%s fields=%s", kind.value, row_id, sorted(payload))


# PUBLIC_INTERFACE
def delete(db: Session, kind: EntityKind, row_id: uuid.UUID) -> None:
    """
    Physically remove one row.

    Raises:
        NotFoundError: no row matched `row_id`.
    """
    entity = entity_for(kind)
    model = entity.model
    try:
        result = db.execute(
            sql_delete(model)
            .where(model.id == row_id)
            .execution_options(synchronize_session=False)
        )
    except SQLAlchemyError as exc:
        _fail(db, kind, "delete", exc)

    if not result.rowcount:
        raise NotFoundError(entity.not_found_message)
    logger.info("Deleted %s id=%s", kind.value, row_id)
