"""Configuration helpers for the Contact Book service and CLI."""
from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


STORAGE_BACKENDS = ("file", "sql")
IMPORT_MODES = ("skip", "overwrite")

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class ConfigError(RuntimeError):
    """Raised when configuration values are missing or invalid."""


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the contact store and API."""

    storage: str = "file"
    data_file: Path = Path("contacts_data.json")
    database_url: str = "sqlite:///contacts.db"
    default_page_size: int = 10
    max_page_size: int = 100
    import_mode: str = "skip"
    import_error_limit: int = 10
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    environment: str = "local"


def _int_env(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}.")
    return value


def _choice_env(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = (os.getenv(name) or default).strip().lower()
    if value not in choices:
        raise ConfigError(
            f"{name} must be one of {', '.join(choices)}; got {value!r}."
        )
    return value


def load_settings(*, dotenv_path: Optional[str] = None) -> Settings:
    """Load settings from environment variables (and a .env file if present).

    Args:
        dotenv_path: Optional explicit .env location. Existing environment
            variables always win over values in the file.

    Returns:
        Settings with the resolved storage and paging configuration.

    Raises:
        ConfigError: if a value is present but invalid.
    """

    load_dotenv(dotenv_path)

    default_page_size = _int_env("CONTACTS_PAGE_SIZE", 10)
    max_page_size = _int_env("CONTACTS_MAX_PAGE_SIZE", 100)
    if default_page_size > max_page_size:
        raise ConfigError(
            "CONTACTS_PAGE_SIZE cannot exceed CONTACTS_MAX_PAGE_SIZE "
            f"({default_page_size} > {max_page_size})."
        )

    origins_raw = os.getenv("CONTACTS_ALLOWED_ORIGINS")
    if origins_raw is None:
        origins = list(DEFAULT_ALLOWED_ORIGINS)
    else:
        origins = [origin.strip() for origin in origins_raw.split(",") if origin.strip()]

    return Settings(
        storage=_choice_env("CONTACTS_STORAGE", "file", STORAGE_BACKENDS),
        data_file=Path(os.getenv("CONTACTS_DATA_FILE", "contacts_data.json")),
        database_url=os.getenv("CONTACTS_DATABASE_URL", "sqlite:///contacts.db"),
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        import_mode=_choice_env("CONTACTS_IMPORT_MODE", "skip", IMPORT_MODES),
        import_error_limit=_int_env("CONTACTS_IMPORT_ERROR_LIMIT", 10, minimum=0),
        allowed_origins=origins,
        environment=os.getenv("CONTACTS_ENV", "local"),
    )
