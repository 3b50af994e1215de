"""Configuration management for Finlytics.

This module centralizes all configuration values including the database
location, formatting locale and currency, and environment variable
overrides.  A ``.env`` file at the project root is honoured when present.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from dotenv import load_dotenv

# Base project root - assumes this file is in finlytics/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

load_dotenv(_PROJECT_ROOT / ".env")

DEFAULT_DB_RELATIVE_PATH = Path("data") / "finlytics.sqlite"
DEFAULT_LOCALE = "en-IN"
DEFAULT_CURRENCY = "INR"
DEFAULT_DUE_SOON_DAYS = 5


def normalize_database_path(value: Optional[str], root: Path = _PROJECT_ROOT) -> Path:
    """Turn a path or ``sqlite:``/``file:`` URL into an absolute file path.

    Example:
        >>> normalize_database_path("sqlite:///tmp/fin.db")
        PosixPath('/tmp/fin.db')
    """
    if not value or not value.strip():
        return (root / DEFAULT_DB_RELATIVE_PATH).resolve()

    text = value.strip()
    if text.lower().startswith("sqlite:"):
        parsed = urlparse(text)
        host = f"//{parsed.netloc}" if parsed.netloc else ""
        text = unquote(f"{host}{parsed.path or ''}")
    if text.lower().startswith("file:"):
        text = text[len("file:"):]
    # sqlite:///C:/data.db parses to /C:/data.db on Windows
    if sys.platform == "win32" and len(text) > 2 and text[0] == "/" and text[2] == ":":
        text = text[1:]

    path = Path(text)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def get_db_path() -> Path:
    """Resolve the SQLite file from the environment at call time."""
    raw = (
        os.getenv("FINLYTICS_DB_PATH")
        or os.getenv("FINLYTICS_DATABASE_URL")
        or os.getenv("DATABASE_URL")
    )
    return normalize_database_path(raw)


def get_due_soon_days() -> int:
    """Days before a billing date at which a subscription counts as due soon."""
    raw = os.getenv("FINLYTICS_DUE_SOON_DAYS", str(DEFAULT_DUE_SOON_DAYS))
    try:
        days = int(raw)
    except ValueError:
        return DEFAULT_DUE_SOON_DAYS
    return days if days >= 0 else DEFAULT_DUE_SOON_DAYS


def get_log_level() -> Optional[str]:
    return os.getenv("FINLYTICS_LOG_LEVEL")


@dataclass(frozen=True)
class FormattingConfig:
    """Locale and currency used when presenting amounts.

    These never affect the math, only how numbers are rendered.
    """

    locale: str = DEFAULT_LOCALE
    currency_code: str = DEFAULT_CURRENCY


def formatting_config() -> FormattingConfig:
    """Build a :class:`FormattingConfig` from ``FINLYTICS_LOCALE``/``FINLYTICS_CURRENCY``."""
    locale = os.getenv("FINLYTICS_LOCALE", "").strip() or DEFAULT_LOCALE
    currency = os.getenv("FINLYTICS_CURRENCY", "").strip().upper() or DEFAULT_CURRENCY
    return FormattingConfig(locale=locale, currency_code=currency)


def ensure_data_directories() -> None:
    """Create the directory holding the database if it doesn't exist."""
    get_db_path().parent.mkdir(parents=True, exist_ok=True)
