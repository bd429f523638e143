"""
Project Tracker
Configuration classes for the Flask App Factory, plus the engine settings
value handed to services at call time.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])

    settings = settings_from_config(app.config)
"""

import os
import secrets
from dataclasses import dataclass

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Default SQLite path for local use
_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'project_tracker.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

_DEV_SECRET = secrets.token_hex(32)

DEFAULT_JIRA_URL = "https://jira.company.com/browse/"
DEFAULT_EMAIL_DOMAIN = "company.com"
DEFAULT_PROJECT_TYPES = ("Personal", "Team", "Company")


def _split_list(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not raw:
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
    }

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Tracker settings
    JIRA_URL = os.getenv("JIRA_URL", DEFAULT_JIRA_URL)
    DEFAULT_EMAIL_DOMAIN = os.getenv("DEFAULT_EMAIL_DOMAIN", DEFAULT_EMAIL_DOMAIN)
    PROJECT_TYPES = _split_list(os.getenv("PROJECT_TYPES"), DEFAULT_PROJECT_TYPES)


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "") or _SQLITE_DEV


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    JIRA_URL = DEFAULT_JIRA_URL
    DEFAULT_EMAIL_DOMAIN = DEFAULT_EMAIL_DOMAIN
    PROJECT_TYPES = DEFAULT_PROJECT_TYPES


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    # Heroku-style URLs use postgres:// but SQLAlchemy 2.0 requires postgresql://
    _raw_db_url = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = _raw_db_url.replace("postgres://", "postgresql://", 1) if _raw_db_url else None
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


@dataclass(frozen=True)
class TrackerSettings:
    """Engine settings passed explicitly into link reconstruction and the façade."""

    jira_url: str = DEFAULT_JIRA_URL
    default_email_domain: str = DEFAULT_EMAIL_DOMAIN
    project_types: tuple[str, ...] = DEFAULT_PROJECT_TYPES

    def to_dict(self) -> dict:
        return {
            "jira_url": self.jira_url,
            "default_email_domain": self.default_email_domain,
            "project_types": list(self.project_types),
        }


def settings_from_config(app_config) -> TrackerSettings:
    """Build a TrackerSettings value from a Flask config mapping."""
    types = app_config.get("PROJECT_TYPES", DEFAULT_PROJECT_TYPES)
    if isinstance(types, str):
        types = _split_list(types, DEFAULT_PROJECT_TYPES)
    return TrackerSettings(
        jira_url=app_config.get("JIRA_URL", DEFAULT_JIRA_URL),
        default_email_domain=app_config.get("DEFAULT_EMAIL_DOMAIN", DEFAULT_EMAIL_DOMAIN),
        project_types=tuple(types),
    )
