"""
presenter/config/settings.py
Centralized runtime settings.

All values are loaded from environment variables (a project-level .env file
is read first). Import the `settings` singleton rather than calling os.getenv
in feature code.
"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(dotenv_path=ENV_FILE)


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    """Get an integer value from environment variable, falling back on bad input."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_list_env(key: str) -> List[str]:
    """Comma separated list, empty entries dropped."""
    return [item.strip() for item in os.getenv(key, "").split(",") if item.strip()]


class Settings:
    """
    Application settings.

    To add a new setting:
    1. Add it here as a class attribute
    2. Load it from an environment variable with a safe default
    3. Read it through `settings.<NAME>`
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./presenter.db")
    DATABASE_ECHO: bool = get_bool_env("DATABASE_ECHO", False)

    # Authentication
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = get_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
    AUTH_COOKIE_NAME: str = os.getenv("AUTH_COOKIE_NAME", "auth-token")
    COOKIE_SECURE: bool = get_bool_env("COOKIE_SECURE", False)
    BCRYPT_ROUNDS: int = get_int_env("BCRYPT_ROUNDS", 10)
    MIN_PASSWORD_LENGTH: int = 6

    # Rate limiting (auth routes only)
    RATE_LIMIT_ENABLED: bool = get_bool_env("RATE_LIMIT_ENABLED", True)
    AUTH_RATE_LIMIT: str = os.getenv("AUTH_RATE_LIMIT", "30/minute")

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ] + get_list_env("ALLOWED_ORIGINS")

    # Presentation timer
    TIMER_WARNING_THRESHOLD_SECONDS: int = get_int_env("TIMER_WARNING_THRESHOLD_SECONDS", 120)

    # Grade audit: resubmissions that leave the score unchanged are audited too.
    # Set to false to audit only real score changes.
    AUDIT_UNCHANGED_SCORES: bool = get_bool_env("AUDIT_UNCHANGED_SCORES", True)

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Singleton instance for easy importing
settings = Settings()
