"""
Resources Blueprint — timeline, deadlines and settings.

Endpoints:
    GET /api/v1/timeline?granularity=&team=&project=&now=
    GET /api/v1/deadlines?today=
    GET /api/v1/settings?current_type=

``now`` / ``today`` default to the server date only here, at the edge.
"""

import logging

from flask import Blueprint, jsonify, request

from tracker.blueprints import current_settings, request_now
from tracker.services import resource_service

logger = logging.getLogger(__name__)

resource_bp = Blueprint("resource", __name__, url_prefix="/api/v1")


@resource_bp.route("/timeline", methods=["GET"])
def timeline():
    """Occupancy grid: rows per person, one cell per period."""
    grid = resource_service.compute_timeline(
        request.args.get("granularity", "week"),
        request_now("now"),
        filter_team=request.args.get("team") or None,
        filter_project=request.args.get("project") or None,
    )
    return jsonify(grid.to_dict()), 200


@resource_bp.route("/deadlines", methods=["GET"])
def deadlines():
    items = resource_service.upcoming_deadlines(current_settings(), request_now("today"))
    return jsonify({"items": items, "total": len(items)}), 200


@resource_bp.route("/settings", methods=["GET"])
def settings():
    current = current_settings()
    payload = current.to_dict()
    payload["project_type_options"] = resource_service.project_type_options(
        current, request.args.get("current_type"),
    )
    return jsonify(payload), 200
