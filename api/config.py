"""
Environment-aware configuration.
Flask config classes hold raw values read from the environment (and .env);
AuthSettings is the frozen view of the token settings that the token issuer
and session manager receive.
"""
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from dotenv import load_dotenv

from utils.exceptions import ConfigurationError

load_dotenv()  # Read .env if present


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # CORS: comma-separated list of origins; cookies need explicit origins in prod
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
    SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
    # Token secrets have no defaults: the app refuses to start without them
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    REFRESH_TOKEN_EXPIRES = timedelta(days=1)
    REFRESH_COOKIE_NAME = "refreshToken"


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    LOG_LEVEL = "WARNING"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


@dataclass(frozen=True)
class AuthSettings:
    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=1)
    cookie_name: str = "refreshToken"

    @classmethod
    def from_config(cls, config: Mapping) -> "AuthSettings":
        """Build settings from a Flask config mapping.

        Raises ConfigurationError when either token secret is missing or blank.
        """
        missing = [
            key for key in ("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET")
            if not (config.get(key) or "").strip()
        ]
        if missing:
            raise ConfigurationError(f"Missing required setting(s): {', '.join(missing)}")
        if config["ACCESS_TOKEN_SECRET"] == config["REFRESH_TOKEN_SECRET"]:
            raise ConfigurationError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", timedelta(minutes=15)),
            refresh_ttl=config.get("REFRESH_TOKEN_EXPIRES", timedelta(days=1)),
            cookie_name=config.get("REFRESH_COOKIE_NAME", "refreshToken"),
        )
