"""
Projects Blueprint — projects, milestones, stakeholders, resources and notes.

All business logic is delegated to the service layer; service exceptions
are mapped to JSON errors by the app-level handlers.

Endpoints:
  Projects:              GET/POST       /projects
                         GET/PUT/DELETE /projects/<id>
  Milestones:            GET/POST       /projects/<id>/milestones
                         GET/PUT/DELETE /milestones/<id>
  Stakeholders:          GET/POST       /projects/<id>/stakeholders
                         PUT/DELETE     /projects/<id>/stakeholders/<email>
  Project resources:     GET/POST       /projects/<id>/resources
                         PUT/DELETE     /projects/<id>/resources/<email>
  Milestone resources:   GET/POST       /milestones/<id>/resources
                         PUT/DELETE     /milestones/<id>/resources/<email>
  Notes:                 GET/POST       /projects/<id>/notes
                         GET/POST       /milestones/<id>/notes
                         GET/POST       /projects/<id>/stakeholders/<email>/notes
                         PUT/DELETE     /notes/<kind>/<note_id>
"""

import logging

from flask import Blueprint, abort, jsonify, request

from tracker.blueprints import current_settings, json_body
from tracker.services import assignment_service, note_service, project_service, resource_service

logger = logging.getLogger(__name__)

project_bp = Blueprint("project", __name__, url_prefix="/api/v1")


def _items(items):
    return jsonify({"items": items, "total": len(items)})


def _items_of(rows):
    return _items([r.to_dict() for r in rows])


def _project(project):
    return resource_service.project_views(current_settings(), [project])[0]


def _milestone(milestone):
    return resource_service.milestone_views(current_settings(), [milestone])[0]


# ═════════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects", methods=["GET"])
def list_projects():
    """List projects ordered by name. Query params: team?"""
    items = resource_service.list_projects_view(current_settings(), team=request.args.get("team"))
    return _items(items), 200


@project_bp.route("/projects", methods=["POST"])
def create_project():
    project = project_service.create_project(json_body())
    return jsonify(_project(project)), 201


@project_bp.route("/projects/<project_id>", methods=["GET"])
def get_project(project_id):
    return jsonify(resource_service.project_view(current_settings(), project_id)), 200


@project_bp.route("/projects/<project_id>", methods=["PUT"])
def update_project(project_id):
    project = project_service.update_project(project_id, json_body())
    return jsonify(_project(project)), 200


@project_bp.route("/projects/<project_id>", methods=["DELETE"])
def delete_project(project_id):
    """Delete a project with everything it owns. Returns per-table counts."""
    counts = project_service.delete_project(project_id)
    return jsonify({"deleted": project_id, "cascade": counts}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Milestones
# ═════════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects/<project_id>/milestones", methods=["GET"])
def list_milestones(project_id):
    milestones = project_service.get_project_milestones(project_id)
    return _items(resource_service.milestone_views(current_settings(), milestones)), 200


@project_bp.route("/projects/<project_id>/milestones", methods=["POST"])
def create_milestone(project_id):
    """Body: { "name": str, "number"?: int, "due_date"?: str, ... }"""
    milestone = project_service.create_milestone(project_id, json_body())
    return jsonify(_milestone(milestone)), 201


@project_bp.route("/milestones/<milestone_id>", methods=["GET"])
def get_milestone(milestone_id):
    return jsonify(resource_service.milestone_view(current_settings(), milestone_id)), 200


@project_bp.route("/milestones/<milestone_id>", methods=["PUT"])
def update_milestone(milestone_id):
    milestone = project_service.update_milestone(milestone_id, json_body())
    return jsonify(_milestone(milestone)), 200


@project_bp.route("/milestones/<milestone_id>", methods=["DELETE"])
def delete_milestone(milestone_id):
    counts = project_service.delete_milestone(milestone_id)
    return jsonify({"deleted": milestone_id, "cascade": counts}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Stakeholders
# ═════════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects/<project_id>/stakeholders", methods=["GET"])
def list_stakeholders(project_id):
    links = assignment_service.get_project_stakeholders(project_id)
    return _items(resource_service.stakeholder_views(links)), 200


@project_bp.route("/projects/<project_id>/stakeholders", methods=["POST"])
def add_stakeholder(project_id):
    """Upsert. Body: { "stakeholder_email": str, "role"?: str }"""
    link = assignment_service.add_project_stakeholder(project_id, json_body())
    return jsonify(resource_service.stakeholder_views([link])[0]), 201


@project_bp.route("/projects/<project_id>/stakeholders/<email>", methods=["PUT"])
def update_stakeholder(project_id, email):
    link = assignment_service.update_project_stakeholder(project_id, email, json_body())
    return jsonify(resource_service.stakeholder_views([link])[0]), 200


@project_bp.route("/projects/<project_id>/stakeholders/<email>", methods=["DELETE"])
def remove_stakeholder(project_id, email):
    counts = assignment_service.remove_project_stakeholder(project_id, email)
    return jsonify({"deleted": email, "cascade": counts}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Resources
# ═════════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects/<project_id>/resources", methods=["GET"])
def list_project_resources(project_id):
    rows = assignment_service.get_project_resources(project_id)
    return _items(resource_service.resource_views(rows)), 200


@project_bp.route("/projects/<project_id>/resources", methods=["POST"])
def add_project_resource(project_id):
    """Upsert. Body: { "person_email": str, "role"?: str }"""
    row = assignment_service.add_project_resource(project_id, json_body())
    return jsonify(resource_service.resource_views([row])[0]), 201


@project_bp.route("/projects/<project_id>/resources/<email>", methods=["PUT"])
def update_project_resource(project_id, email):
    row = assignment_service.update_project_resource(project_id, email, json_body())
    return jsonify(resource_service.resource_views([row])[0]), 200


@project_bp.route("/projects/<project_id>/resources/<email>", methods=["DELETE"])
def remove_project_resource(project_id, email):
    assignment_service.remove_project_resource(project_id, email)
    return jsonify({"deleted": email}), 200


@project_bp.route("/milestones/<milestone_id>/resources", methods=["GET"])
def list_milestone_resources(milestone_id):
    rows = assignment_service.get_milestone_resources(milestone_id)
    return _items(resource_service.resource_views(rows)), 200


@project_bp.route("/milestones/<milestone_id>/resources", methods=["POST"])
def add_milestone_resource(milestone_id):
    row = assignment_service.add_milestone_resource(milestone_id, json_body())
    return jsonify(resource_service.resource_views([row])[0]), 201


@project_bp.route("/milestones/<milestone_id>/resources/<email>", methods=["PUT"])
def update_milestone_resource(milestone_id, email):
    row = assignment_service.update_milestone_resource(milestone_id, email, json_body())
    return jsonify(resource_service.resource_views([row])[0]), 200


@project_bp.route("/milestones/<milestone_id>/resources/<email>", methods=["DELETE"])
def remove_milestone_resource(milestone_id, email):
    assignment_service.remove_milestone_resource(milestone_id, email)
    return jsonify({"deleted": email}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Notes
# ═════════════════════════════════════════════════════════════════════════════

_NOTE_UPDATERS = {
    "project": note_service.update_project_note,
    "milestone": note_service.update_milestone_note,
    "stakeholder": note_service.update_stakeholder_note,
}
_NOTE_DELETERS = {
    "project": note_service.delete_project_note,
    "milestone": note_service.delete_milestone_note,
    "stakeholder": note_service.delete_stakeholder_note,
}


@project_bp.route("/projects/<project_id>/notes", methods=["GET"])
def list_project_notes(project_id):
    return _items_of(note_service.get_project_notes(project_id)), 200


@project_bp.route("/projects/<project_id>/notes", methods=["POST"])
def add_project_note(project_id):
    """Body: { "title": str, "body"?: str }"""
    note = note_service.add_project_note(project_id, json_body())
    return jsonify(note.to_dict()), 201


@project_bp.route("/milestones/<milestone_id>/notes", methods=["GET"])
def list_milestone_notes(milestone_id):
    return _items_of(note_service.get_milestone_notes(milestone_id)), 200


@project_bp.route("/milestones/<milestone_id>/notes", methods=["POST"])
def add_milestone_note(milestone_id):
    note = note_service.add_milestone_note(milestone_id, json_body())
    return jsonify(note.to_dict()), 201


@project_bp.route("/projects/<project_id>/stakeholders/<email>/notes", methods=["GET"])
def list_stakeholder_notes(project_id, email):
    return _items_of(note_service.get_stakeholder_notes(project_id, email)), 200


@project_bp.route("/projects/<project_id>/stakeholders/<email>/notes", methods=["POST"])
def add_stakeholder_note(project_id, email):
    note = note_service.add_stakeholder_note(project_id, email, json_body())
    return jsonify(note.to_dict()), 201


@project_bp.route("/notes/<kind>/<note_id>", methods=["PUT"])
def update_note(kind, note_id):
    """kind: project | milestone | stakeholder"""
    if kind not in _NOTE_UPDATERS:
        abort(404)
    note = _NOTE_UPDATERS[kind](note_id, json_body())
    return jsonify(note.to_dict()), 200


@project_bp.route("/notes/<kind>/<note_id>", methods=["DELETE"])
def delete_note(kind, note_id):
    if kind not in _NOTE_DELETERS:
        abort(404)
    _NOTE_DELETERS[kind](note_id)
    return jsonify({"deleted": note_id}), 200
