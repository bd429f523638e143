"""
Flask-Migrate / Alembic entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi db migrate -m "description"
    flask --app wsgi timeline --granularity week --now 2025-01-01
"""

from tracker import create_app

app = create_app()
