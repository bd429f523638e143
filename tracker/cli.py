"""
Flask CLI commands.

    flask --app wsgi timeline --granularity week --team Platform --now 2025-01-01
"""

import json
from datetime import date

import click
from flask import Flask, current_app

from tracker.config import settings_from_config
from tracker.core.exceptions import NotFoundError, ValidationError
from tracker.services import resource_service
from tracker.services.timeline import Granularity
from tracker.utils.helpers import parse_instant


def register_cli(app: Flask) -> None:
    @app.cli.command("timeline")
    @click.option("--granularity", type=click.Choice([g.value for g in Granularity]), default="week",
                  show_default=True)
    @click.option("--team", default=None, help="Only people in this team get rows.")
    @click.option("--project", default=None, help="Only this project's assignments.")
    @click.option("--now", "now_raw", default=None, help="Reference date (YYYY-MM-DD); defaults to today.")
    def timeline_cmd(granularity, team, project, now_raw):
        """Print the resource timeline grid as JSON."""
        try:
            now = parse_instant(now_raw) if now_raw else date.today()
            grid = resource_service.compute_timeline(
                granularity,
                now,
                filter_team=team,
                filter_project=project,
            )
        except (ValidationError, NotFoundError) as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(json.dumps(grid.to_dict(), indent=2))

    @app.cli.command("deadlines")
    @click.option("--today", "today_raw", default=None, help="Reference date (YYYY-MM-DD).")
    def deadlines_cmd(today_raw):
        """Print projects and milestones with due dates, earliest first."""
        try:
            today = parse_instant(today_raw) if today_raw else date.today()
        except ValidationError as exc:
            raise click.ClickException(str(exc)) from exc
        items = resource_service.upcoming_deadlines(settings_from_config(current_app.config), today)
        click.echo(json.dumps(items, indent=2))
