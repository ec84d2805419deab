"""Tests for environment-driven settings and backend selection."""
from __future__ import annotations

from pathlib import Path

import pytest

from contact_book.config import ConfigError, Settings, load_settings
from contact_book.contacts import build_store
from contact_book.contacts.file_store import JsonFileContactStore
from contact_book.contacts.sql_store import SqlContactStore


ENV_VARS = [
    "CONTACTS_ENV",
    "CONTACTS_STORAGE",
    "CONTACTS_DATA_FILE",
    "CONTACTS_DATABASE_URL",
    "CONTACTS_PAGE_SIZE",
    "CONTACTS_MAX_PAGE_SIZE",
    "CONTACTS_IMPORT_MODE",
    "CONTACTS_IMPORT_ERROR_LIMIT",
    "CONTACTS_ALLOWED_ORIGINS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so monkeypatch restores the original state, including
        # anything load_dotenv writes during the test.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Keep a developer's .env out of these tests.
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    settings = load_settings(dotenv_path=str(tmp_path / "missing.env"))

    assert settings.storage == "file"
    assert settings.data_file == Path("contacts_data.json")
    assert settings.default_page_size == 10
    assert settings.max_page_size == 100
    assert settings.import_mode == "skip"
    assert settings.import_error_limit == 10
    assert "http://localhost:5173" in settings.allowed_origins
    assert settings.environment == "local"


def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("CONTACTS_STORAGE", "SQL")
    clean_env.setenv("CONTACTS_DATABASE_URL", "sqlite:///x.db")
    clean_env.setenv("CONTACTS_PAGE_SIZE", "8")
    clean_env.setenv("CONTACTS_IMPORT_MODE", "overwrite")
    clean_env.setenv("CONTACTS_ALLOWED_ORIGINS", "https://a.example, ,https://b.example")

    settings = load_settings(dotenv_path=str(tmp_path / "missing.env"))

    assert settings.storage == "sql"
    assert settings.database_url == "sqlite:///x.db"
    assert settings.default_page_size == 8
    assert settings.import_mode == "overwrite"
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]


def test_dotenv_file_is_loaded(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("CONTACTS_PAGE_SIZE=25\n", encoding="utf-8")

    settings = load_settings(dotenv_path=str(env_file))

    assert settings.default_page_size == 25


@pytest.mark.parametrize(
    "name,value",
    [
        ("CONTACTS_STORAGE", "redis"),
        ("CONTACTS_PAGE_SIZE", "ten"),
        ("CONTACTS_PAGE_SIZE", "0"),
        ("CONTACTS_IMPORT_MODE", "merge"),
        ("CONTACTS_PAGE_SIZE", "500"),
    ],
)
def test_invalid_values_raise(clean_env, tmp_path, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings(dotenv_path=str(tmp_path / "missing.env"))


def test_build_store_selects_backend(tmp_path):
    file_store = build_store(Settings(storage="file", data_file=tmp_path / "c.json"))
    sql_store = build_store(
        Settings(storage="sql", database_url=f"sqlite:///{tmp_path / 'c.db'}", default_page_size=5)
    )

    assert isinstance(file_store, JsonFileContactStore)
    assert isinstance(sql_store, SqlContactStore)
    assert sql_store.default_page_size == 5


def test_build_store_rejects_unknown_backend():
    with pytest.raises(ConfigError):
        build_store(Settings(storage="memory"))
