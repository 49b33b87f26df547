"""
Environment-aware configuration.
Secrets and lifetimes come from the environment (or .env); nothing here is
a usable production default.
"""
import os
import re
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str) -> timedelta:
    """
    Parse "900", "900s", "15m", "1h" or "7d" into a timedelta.
    Bare numbers are seconds.
    """
    match = re.fullmatch(r"\s*(\d+)\s*([smhd]?)\s*", str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit or "s"]: int(amount)})


def parse_days(value: str | None, default: int = 7) -> int:
    """
    Leading integer of "7", "7d" or "7 DAY"; `default` when there is none or it is 0.
    """
    match = re.match(r"\s*(\d+)", value or "")
    if not match:
        return default
    return int(match.group(1)) or default


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # CORS: comma-separated list of dashboard origins; cookies require explicit origins
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
        if origin.strip()
    ]
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///dairy-auth.db")
    # Access tokens
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "dairy-auth")
    ACCESS_TOKEN_EXPIRES = parse_duration(os.getenv("ACCESS_EXPIRES_IN", "15m"))
    # Refresh tokens (days)
    REFRESH_TOKEN_TTL_DAYS = parse_days(os.getenv("REFRESH_EXPIRES_IN"))
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/")
    REFRESH_COOKIE_SECURE = _env_flag("REFRESH_COOKIE_SECURE", "true")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # Local-only fallback; create_app refuses to start without a secret elsewhere
    JWT_ACCESS_SECRET = BaseConfig.JWT_ACCESS_SECRET or "dev-secret-change-me-0123456789abcdef"


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_ACCESS_SECRET = "test-secret-0123456789abcdef0123456789"
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    REFRESH_TOKEN_TTL_DAYS = 7
    REFRESH_COOKIE_NAME = "refreshToken"
    REFRESH_COOKIE_PATH = "/"
    REFRESH_COOKIE_SECURE = True


class ProductionConfig(BaseConfig):
    DEBUG = False


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
