"""
SQLAlchemy models for the media catalog: users own albums, albums own songs.

Field validation lives here, next to the columns it guards: create and patch
both run `check_values` before touching the database, so required/empty/format
failures surface with the same wording regardless of the database backend.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityValidationError(ValueError):
    """One or more field values were rejected by a model."""

    def __init__(self, problems: List[str]) -> None:
        self.problems = problems
        super().__init__(",\n".join(problems))


# PUBLIC_INTERFACE
def is_valid_email(value: str) -> bool:
    """Syntactic email check (no DNS lookups)."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _as_email(value: Any) -> str:
    if not isinstance(value, str) or not is_valid_email(value):
        raise ValueError("The email must be valid")
    return value


def _as_integer(value: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError("The position must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError("The position must be an integer")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    @classmethod
    def check_values(cls, values: Dict[str, Any], *, partial: bool = False) -> Dict[str, Any]:
        """
        Validate and coerce column values for an insert (or a partial update).

        Column `info` drives the checks:
          - "required": message used when a non-nullable column is missing or None
          - "not_empty": message used when the value is an empty string
          - "check": callable coercing the value or raising ValueError(message)

        Returns:
            Only the values that map to columns, coerced.

        Raises:
            EntityValidationError: listing every failing field.
        """
        cleaned: Dict[str, Any] = {}
        problems: List[str] = []

        for column in cls.__table__.columns:
            key = column.key
            info = column.info
            required = info.get("required") or f"{cls.__name__}.{key} cannot be null"

            if key not in values:
                if not (partial or column.nullable or column.primary_key or column.default is not None):
                    problems.append(f"notNull Violation: {required}")
                continue

            value = values[key]
            if value is None:
                if column.nullable:
                    cleaned[key] = None
                else:
                    problems.append(f"notNull Violation: {required}")
                continue

            if value == "" and "not_empty" in info:
                problems.append(f"Validation error: {info['not_empty']}")
                continue

            check: Optional[Callable[[Any], Any]] = info.get("check")
            if check is not None:
                try:
                    value = check(value)
                except ValueError as exc:
                    problems.append(f"Validation error: {exc}")
                    continue

            cleaned[key] = value

        if problems:
            raise EntityValidationError(problems)
        return cleaned


class User(Base):
    """User account row (name + email + password hash)."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        info={"required": "Must provide a user name", "not_empty": "The user name cannot be empty"},
    )
    email: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        index=True,
        info={
            "required": "Must provide an email",
            "not_empty": "The email cannot be empty",
            "check": _as_email,
        },
    )
    # Always a bcrypt hash; hashing happens before the row reaches the model.
    password: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        info={"required": "Must provide a password", "not_empty": "The password cannot be empty"},
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    albums: Mapped[List["Album"]] = relationship(
        "Album",
        back_populates="user",
        order_by="Album.created_at.desc()",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Album(Base):
    """Album row; `url` points at stored cover media."""

    __tablename__ = "albums"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        info={"required": "Must provide an album name", "not_empty": "The album name cannot be empty"},
    )
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    user: Mapped[User] = relationship("User", back_populates="albums")
    songs: Mapped[List["Song"]] = relationship(
        "Song",
        back_populates="album",
        order_by="Song.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Song(Base):
    """Song row. Its owner is the user owning its album."""

    __tablename__ = "songs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        info={"required": "Must provide a song name", "not_empty": "The song name cannot be empty"},
    )
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        info={
            "required": "Must provide a song position",
            "not_empty": "The position cannot be empty",
            "check": _as_integer,
        },
    )
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    album_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("albums.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    album: Mapped[Album] = relationship("Album", back_populates="songs")
