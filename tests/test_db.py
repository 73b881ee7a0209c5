"""Tests for database URL configuration."""

import pytest

from media_catalog.db import _build_database_url, _redact_sqlalchemy_url

_DB_ENV = ("DATABASE_URL", "POSTGRES_URL", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB", "POSTGRES_PORT")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _DB_ENV:
        monkeypatch.delenv(name, raising=False)


def test_database_url_wins_and_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/catalog")
    monkeypatch.setenv("POSTGRES_URL", "ignored")

    assert _build_database_url() == "postgresql://u:p@db:5432/catalog"


def test_postgres_url_as_host(monkeypatch) -> None:
    monkeypatch.setenv("POSTGRES_URL", "db:6001")
    monkeypatch.setenv("POSTGRES_USER", "u")
    monkeypatch.setenv("POSTGRES_PASSWORD", "p")
    monkeypatch.setenv("POSTGRES_DB", "catalog")

    assert _build_database_url() == "postgresql+psycopg2://u:p@db:6001/catalog"


def test_host_without_credentials_is_incomplete(monkeypatch) -> None:
    monkeypatch.setenv("POSTGRES_URL", "db")

    with pytest.raises(RuntimeError, match="incomplete"):
        _build_database_url()


def test_missing_configuration() -> None:
    with pytest.raises(RuntimeError, match="missing"):
        _build_database_url()


def test_password_is_redacted() -> None:
    assert _redact_sqlalchemy_url("postgresql+psycopg2://u:secret@db:5432/x") == (
        "postgresql+psycopg2://u:***@db:5432/x"
    )
    assert _redact_sqlalchemy_url("sqlite://") == "sqlite://"


def test_postgres_port_overrides_host_port(monkeypatch) -> None:
    monkeypatch.setenv("POSTGRES_URL", "db:6001")
    monkeypatch.setenv("POSTGRES_PORT", "5433")
    monkeypatch.setenv("POSTGRES_USER", "u")
    monkeypatch.setenv("POSTGRES_PASSWORD", "p")
    monkeypatch.setenv("POSTGRES_DB", "catalog")

    assert _build_database_url() == "postgresql+psycopg2://u:p@db:5433/catalog"


def test_postgres_defaults_to_standard_port(monkeypatch) -> None:
    monkeypatch.setenv("POSTGRES_URL", "db")
    monkeypatch.setenv("POSTGRES_USER", "u")
    monkeypatch.setenv("POSTGRES_PASSWORD", "p")
    monkeypatch.setenv("POSTGRES_DB", "catalog")

    assert _build_database_url() == "postgresql+psycopg2://u:p@db:5432/catalog"
