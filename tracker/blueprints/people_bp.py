"""
People & Teams Blueprint.

Thin JSON adapter over person_service and team_service. Service errors
propagate to the app-level error handlers.

Endpoints:
  People:        GET/POST       /people
                 GET            /people/search?q=
                 GET/PUT/DELETE /people/<email>
  Teams:         GET/POST       /teams
                 GET            /teams/search?q=
                 GET/PUT/DELETE /teams/<name>
  Membership:    GET/POST       /teams/<name>/members
                 DELETE         /teams/<name>/members/<email>
"""

import logging

from flask import Blueprint, jsonify, request

from tracker.blueprints import json_body
from tracker.services import person_service, resource_service, team_service

logger = logging.getLogger(__name__)

people_bp = Blueprint("people", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════════
# People
# ═════════════════════════════════════════════════════════════════════════════


@people_bp.route("/people", methods=["GET"])
def list_people():
    """List people with resolved team/manager.

    Query params: team?
    Returns: { "items": [...], "total": int }
    """
    items = resource_service.list_people_view(team=request.args.get("team"))
    return jsonify({"items": items, "total": len(items)}), 200


@people_bp.route("/people", methods=["POST"])
def create_person():
    person = person_service.create_person(json_body())
    return jsonify(person.to_dict()), 201


@people_bp.route("/people/search", methods=["GET"])
def search_people():
    people = person_service.search_people(request.args.get("q", ""))
    return jsonify({"items": [p.to_dict() for p in people], "total": len(people)}), 200


@people_bp.route("/people/<email>", methods=["GET"])
def get_person(email):
    return jsonify(resource_service.person_view(email)), 200


@people_bp.route("/people/<email>", methods=["PUT"])
def update_person(email):
    person = person_service.update_person(email, json_body())
    return jsonify(person.to_dict()), 200


@people_bp.route("/people/<email>", methods=["DELETE"])
def delete_person(email):
    person_service.delete_person(email)
    return jsonify({"deleted": email}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Teams
# ═════════════════════════════════════════════════════════════════════════════


@people_bp.route("/teams", methods=["GET"])
def list_teams():
    teams = team_service.list_teams()
    return jsonify({"items": [t.to_dict() for t in teams], "total": len(teams)}), 200


@people_bp.route("/teams", methods=["POST"])
def create_team():
    team = team_service.create_team(json_body())
    return jsonify(team.to_dict()), 201


@people_bp.route("/teams/search", methods=["GET"])
def search_teams():
    teams = team_service.search_teams(request.args.get("q", ""))
    return jsonify({"items": [t.to_dict() for t in teams], "total": len(teams)}), 200


@people_bp.route("/teams/<name>", methods=["GET"])
def get_team(name):
    return jsonify(team_service.get_team(name).to_dict()), 200


@people_bp.route("/teams/<name>", methods=["PUT"])
def update_team(name):
    team = team_service.update_team(name, json_body())
    return jsonify(team.to_dict()), 200


@people_bp.route("/teams/<name>", methods=["DELETE"])
def delete_team(name):
    team_service.delete_team(name)
    return jsonify({"deleted": name}), 200


@people_bp.route("/teams/<name>/members", methods=["GET"])
def list_team_members(name):
    members = team_service.get_team_members(name)
    return jsonify({"items": [p.to_dict() for p in members], "total": len(members)}), 200


@people_bp.route("/teams/<name>/members", methods=["POST"])
def add_team_member(name):
    """Body: { "email": str }"""
    data = json_body()
    person = team_service.add_team_member(name, data.get("email") or data.get("person_email"))
    return jsonify(person.to_dict()), 200


@people_bp.route("/teams/<name>/members/<email>", methods=["DELETE"])
def remove_team_member(name, email):
    person = team_service.remove_team_member(name, email)
    return jsonify(person.to_dict()), 200
