"""
Environment-aware configuration.
Values come from the process environment (a .env file is read if present).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_int(name: str, default: int) -> int:
    """Positive integer from env; malformed or non-positive values fall back to default."""
    raw = os.getenv(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_flag(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Access tokens (JWT)
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TTL = timedelta(minutes=_env_int("JWT_ACCESS_TTL_MIN", 60))
    # Refresh tokens (opaque, stored hashed)
    JWT_REFRESH_TTL = timedelta(hours=_env_int("JWT_REFRESH_TTL_H", 720))

    DEFAULT_USER_ROLE = os.getenv("DEFAULT_USER_ROLE", "admin")
    # When true, an unknown email at login answers 401 like a wrong password
    LOGIN_CONCEAL_UNKNOWN_EMAIL = _env_flag("LOGIN_CONCEAL_UNKNOWN_EMAIL")


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    JWT_SECRET = "test-secret-0123456789abcdef0123456789"
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG = False
    # No fallback: a missing secret must stop the app from starting
    JWT_SECRET = os.getenv("JWT_SECRET")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
