"""Shared fixtures: a fresh in-memory database per test and a stubbed caller identity."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from media_catalog import db
from media_catalog.auth import CurrentUser, get_current_user, hash_password
from media_catalog.main import app
from media_catalog.models import Album, Base, Song, User

MISSING_ID = "bf65bf17-10ed-43b8-8f05-15a85648fdc9"

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def engine(tmp_path, monkeypatch):
    monkeypatch.setenv("MEDIA_ROOT", str(tmp_path / "media"))
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    engine = db.init_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    app.dependency_overrides.clear()
    db.dispose_engine()


@pytest.fixture
def client() -> TestClient:
    # No context manager: the lifespan would build its own engine from env vars.
    return TestClient(app)


@pytest.fixture
def login_as() -> Callable[[Any], None]:
    """Make every authenticated route see `user_id` as the caller."""

    def _login(user_id: Any) -> None:
        identity = CurrentUser(id=uuid.UUID(str(user_id)))
        app.dependency_overrides[get_current_user] = lambda: identity

    return _login


def add_row(row: Base) -> Base:
    """Persist a row and hand it back detached with its columns loaded."""
    with db.get_db_session() as session:
        session.add(row)
        session.flush()
        session.refresh(row)
        session.expunge(row)
    return row


def fetch(model: type, row_id: Any) -> Optional[Dict[str, Any]]:
    """Column values of a row as stored, or None."""
    if isinstance(row_id, str):
        row_id = uuid.UUID(row_id)
    with db.get_db_session() as session:
        row = session.get(model, row_id)
        if row is None:
            return None
        return {column.key: getattr(row, column.key) for column in model.__table__.columns}


def count(model: type) -> int:
    with db.get_db_session() as session:
        return session.query(model).count()


def make_user(name: str = "validName", email: str = "valid@email.com", password: str = "validPassword") -> User:
    return add_row(User(name=name, email=email, password=hash_password(password)))


def make_album(user: User, name: str = "fakeName", age_days: int = 0, **fields: Any) -> Album:
    return add_row(
        Album(name=name, user_id=user.id, created_at=_EPOCH - timedelta(days=age_days), **fields)
    )


def make_song(album: Album, name: str = "fakeSong", position: int = 0, **fields: Any) -> Song:
    return add_row(Song(name=name, position=position, album_id=album.id, **fields))
