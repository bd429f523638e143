"""
Project Tracker
Shared SQLAlchemy handle for all models.

Usage:
    from tracker.models import db
"""

from datetime import datetime, timezone
import uuid

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow() -> datetime:
    """Current instant, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque generated primary key for projects, milestones and notes."""
    return str(uuid.uuid4())


def iso(value) -> str | None:
    return value.isoformat() if value else None
