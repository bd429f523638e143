"""
Project Tracker
Blueprint helpers shared by the JSON adapter.
"""

from datetime import date

from flask import current_app, request

from tracker.config import TrackerSettings, settings_from_config
from tracker.utils.helpers import parse_instant


def current_settings() -> TrackerSettings:
    """Settings value for the running app, read at call time."""
    return settings_from_config(current_app.config)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def request_now(param: str = "now") -> date:
    """``now`` from the query string; the system clock only when absent."""
    raw = request.args.get(param)
    if raw:
        return parse_instant(raw)
    return date.today()
