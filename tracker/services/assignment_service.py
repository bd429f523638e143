"""Stakeholder and resource-assignment service.

Both link kinds are keyed by (owner, person). ``add_*`` is an upsert: an
existing pair has its attributes overwritten while ``created_at`` is kept;
a new pair is inserted. ``update_*`` requires the pair to exist.

Functions:
    - add_project_stakeholder / update_project_stakeholder / remove_project_stakeholder
    - get_project_stakeholders
    - add_project_resource / update_project_resource / remove_project_resource
    - get_project_resources
    - add_milestone_resource / update_milestone_resource / remove_milestone_resource
    - get_milestone_resources
"""
import logging
from typing import Any

from sqlalchemy import select

from tracker.core.exceptions import NotFoundError
from tracker.models import db, utcnow
from tracker.models.project import MilestoneResource, ProjectResource, ProjectStakeholder
from tracker.services import integrity
from tracker.services.project_service import get_milestone, get_project
from tracker.utils.helpers import clean_text, require_text

logger = logging.getLogger(__name__)


def _person_email(data: dict[str, Any], *keys: str) -> str:
    for key in keys:
        if data.get(key):
            return require_text(data[key], key)
    return require_text(None, keys[0])


def _upsert(model, key: tuple, fields: dict[str, Any], role) -> tuple[Any, bool]:
    """Insert or overwrite a link row. Returns (row, created)."""
    row = db.session.get(model, key)
    if row is not None:
        row.role = role
        return row, False
    row = model(role=role, created_at=utcnow(), **fields)
    db.session.add(row)
    return row, True


# ── Project stakeholders ─────────────────────────────────────────────────────


def add_project_stakeholder(project_id: str, data: dict[str, Any]) -> ProjectStakeholder:
    """Link a person to a project as a stakeholder (upsert on the pair).

    Args:
        project_id: Owning project.
        data: ``stakeholder_email`` (or ``email``) and optional ``role``.

    Raises:
        DanglingReferenceError: project or person does not exist.
    """
    email = _person_email(data, "stakeholder_email", "email")
    role = clean_text(data.get("role"))
    with integrity.atomic():
        integrity.require_project(project_id)
        integrity.require_person("stakeholder_email", email)
        row, created = _upsert(
            ProjectStakeholder, (project_id, email),
            {"project_id": project_id, "stakeholder_email": email}, role,
        )
    logger.info("Project stakeholder %s project=%s email=%s",
                "added" if created else "updated", project_id, email,
                extra={"project_id": project_id, "person_email": email})
    return row


def update_project_stakeholder(project_id: str, email: str, data: dict[str, Any]) -> ProjectStakeholder:
    with integrity.atomic():
        row = db.session.get(ProjectStakeholder, (project_id, email))
        if row is None:
            raise NotFoundError("ProjectStakeholder", f"{project_id}/{email}")
        if "role" in data:
            row.role = clean_text(data["role"])
    return row


def remove_project_stakeholder(project_id: str, email: str) -> dict[str, int]:
    """Remove a stakeholder link together with its stakeholder notes."""
    with integrity.atomic():
        if db.session.get(ProjectStakeholder, (project_id, email)) is None:
            raise NotFoundError("ProjectStakeholder", f"{project_id}/{email}")
        counts = integrity.cascade_stakeholder(project_id, email)
    logger.info("Project stakeholder removed project=%s email=%s cascade=%s", project_id, email, counts,
                extra={"project_id": project_id, "person_email": email})
    return counts


def get_project_stakeholders(project_id: str) -> list[ProjectStakeholder]:
    get_project(project_id)
    stmt = (
        select(ProjectStakeholder)
        .where(ProjectStakeholder.project_id == project_id)
        .order_by(ProjectStakeholder.stakeholder_email)
    )
    return list(db.session.execute(stmt).scalars())


# ── Project resources ────────────────────────────────────────────────────────


def add_project_resource(project_id: str, data: dict[str, Any]) -> ProjectResource:
    """Assign a person to a project (upsert on the pair)."""
    email = _person_email(data, "person_email", "email")
    role = clean_text(data.get("role"))
    with integrity.atomic():
        integrity.require_project(project_id)
        integrity.require_person("person_email", email)
        row, created = _upsert(
            ProjectResource, (project_id, email),
            {"project_id": project_id, "person_email": email}, role,
        )
    logger.info("Project resource %s project=%s email=%s",
                "added" if created else "updated", project_id, email,
                extra={"project_id": project_id, "person_email": email})
    return row


def update_project_resource(project_id: str, email: str, data: dict[str, Any]) -> ProjectResource:
    with integrity.atomic():
        row = db.session.get(ProjectResource, (project_id, email))
        if row is None:
            raise NotFoundError("ProjectResource", f"{project_id}/{email}")
        if "role" in data:
            row.role = clean_text(data["role"])
    return row


def remove_project_resource(project_id: str, email: str) -> None:
    with integrity.atomic():
        row = db.session.get(ProjectResource, (project_id, email))
        if row is None:
            raise NotFoundError("ProjectResource", f"{project_id}/{email}")
        db.session.delete(row)
    logger.info("Project resource removed project=%s email=%s", project_id, email,
                extra={"project_id": project_id, "person_email": email})


def get_project_resources(project_id: str) -> list[ProjectResource]:
    get_project(project_id)
    stmt = (
        select(ProjectResource)
        .where(ProjectResource.project_id == project_id)
        .order_by(ProjectResource.person_email)
    )
    return list(db.session.execute(stmt).scalars())


# ── Milestone resources ──────────────────────────────────────────────────────


def add_milestone_resource(milestone_id: str, data: dict[str, Any]) -> MilestoneResource:
    """Assign a person to a milestone (upsert on the pair)."""
    email = _person_email(data, "person_email", "email")
    role = clean_text(data.get("role"))
    with integrity.atomic():
        integrity.require_milestone(milestone_id)
        integrity.require_person("person_email", email)
        row, created = _upsert(
            MilestoneResource, (milestone_id, email),
            {"milestone_id": milestone_id, "person_email": email}, role,
        )
    logger.info("Milestone resource %s milestone=%s email=%s",
                "added" if created else "updated", milestone_id, email,
                extra={"milestone_id": milestone_id, "person_email": email})
    return row


def update_milestone_resource(milestone_id: str, email: str, data: dict[str, Any]) -> MilestoneResource:
    with integrity.atomic():
        row = db.session.get(MilestoneResource, (milestone_id, email))
        if row is None:
            raise NotFoundError("MilestoneResource", f"{milestone_id}/{email}")
        if "role" in data:
            row.role = clean_text(data["role"])
    return row


def remove_milestone_resource(milestone_id: str, email: str) -> None:
    with integrity.atomic():
        row = db.session.get(MilestoneResource, (milestone_id, email))
        if row is None:
            raise NotFoundError("MilestoneResource", f"{milestone_id}/{email}")
        db.session.delete(row)
    logger.info("Milestone resource removed milestone=%s email=%s", milestone_id, email,
                extra={"milestone_id": milestone_id, "person_email": email})


def get_milestone_resources(milestone_id: str) -> list[MilestoneResource]:
    get_milestone(milestone_id)
    stmt = (
        select(MilestoneResource)
        .where(MilestoneResource.milestone_id == milestone_id)
        .order_by(MilestoneResource.person_email)
    )
    return list(db.session.execute(stmt).scalars())
