"""Project service layer — business logic for projects and milestones.

Transaction policy: public functions run inside ``integrity.atomic()`` and
commit on success; helpers only flush.

Provides:
- Project CRUD with person/team reference checks
- Milestone CRUD with per-project unique, never-reused numbering
- Cascading deletes (project → milestones/stakeholders/resources/notes,
  milestone → resources/notes) executed as one transaction
"""
import logging
from typing import Any

from sqlalchemy import func, select

from tracker.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from tracker.models import db, utcnow
from tracker.models.project import Milestone, Project
from tracker.services import integrity
from tracker.utils.helpers import clean_text, parse_date, require_text

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_TYPE = "Personal"

PROJECT_PERSON_FIELDS = ("requirements_owner", "technical_lead", "manager")
PROJECT_TEAM_FIELDS = ("team",)
PROJECT_TEXT_FIELDS = ("description", "jira_initiative")
PROJECT_DATE_FIELDS = ("start_date", "due_date")

MILESTONE_TEXT_FIELDS = ("description", "design_doc_url", "jira_epic")


def _project_values(data: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    """Normalise project input. With ``partial`` only supplied keys are returned."""
    values: dict[str, Any] = {}
    if not partial or "name" in data:
        values["name"] = require_text(data.get("name"), "name")
    if not partial or "type" in data:
        # Any string round-trips; the configured type list is display-only.
        values["type"] = clean_text(data.get("type")) or DEFAULT_PROJECT_TYPE
    for field in PROJECT_PERSON_FIELDS + PROJECT_TEAM_FIELDS + PROJECT_TEXT_FIELDS:
        if not partial or field in data:
            values[field] = clean_text(data.get(field))
    for field in PROJECT_DATE_FIELDS:
        if not partial or field in data:
            values[field] = parse_date(data.get(field), field)
    return values


# ═════════════════════════════════════════════════════════════════════════════
# PROJECT CRUD
# ═════════════════════════════════════════════════════════════════════════════


def create_project(data: dict[str, Any]) -> Project:
    """Create a project with a generated id.

    Args:
        data: ``name`` is required. Optional: description, type,
            requirements_owner, technical_lead, manager, team, start_date,
            due_date, jira_initiative.

    Raises:
        ValidationError: name missing or a date is unparseable.
        DanglingReferenceError: a person/team field names a missing record.
    """
    values = _project_values(data, partial=False)
    with integrity.atomic():
        integrity.check_references(values, PROJECT_PERSON_FIELDS, PROJECT_TEAM_FIELDS)
        now = utcnow()
        project = Project(created_at=now, updated_at=now, milestone_counter=0, **values)
        db.session.add(project)
        db.session.flush()
        project_id = project.id

    logger.info("Project created id=%s name=%s", project_id, values["name"][:200],
                extra={"project_id": project_id})
    return project


def get_project(project_id: str) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def update_project(project_id: str, data: dict[str, Any]) -> Project:
    """Update the supplied project fields and re-stamp ``updated_at``."""
    if "id" in data and data["id"] != project_id:
        raise ValidationError("id cannot be changed", details={"id": "immutable"})

    values = _project_values(data, partial=True)
    with integrity.atomic():
        project = get_project(project_id)
        integrity.check_references(values, PROJECT_PERSON_FIELDS, PROJECT_TEAM_FIELDS)
        for field, value in values.items():
            setattr(project, field, value)
        project.updated_at = utcnow()

    logger.info("Project updated id=%s fields=%s", project_id, sorted(values),
                extra={"project_id": project_id})
    return project


def delete_project(project_id: str) -> dict[str, int]:
    """Delete a project and everything it owns in one transaction.

    Returns:
        Per-table counts of deleted rows.
    """
    with integrity.atomic():
        get_project(project_id)
        counts = integrity.cascade_project(project_id)

    logger.info("Project deleted id=%s cascade=%s", project_id, counts,
                extra={"project_id": project_id})
    return counts


def list_projects(team: str | None = None) -> list[Project]:
    """List projects ordered by name (then id), optionally one team's."""
    stmt = select(Project)
    if team:
        stmt = stmt.where(Project.team == team)
    stmt = stmt.order_by(Project.name, Project.id)
    return list(db.session.execute(stmt).scalars())


# ═════════════════════════════════════════════════════════════════════════════
# MILESTONE CRUD
# ═════════════════════════════════════════════════════════════════════════════


def _parse_number(value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid milestone number: {value!r}", details={"number": str(value)}) from exc
    if number < 1:
        raise ValidationError("Milestone number must be positive", details={"number": str(value)})
    return number


def _number_taken(project_id: str, number: int, exclude_id: str | None = None) -> bool:
    stmt = select(Milestone.id).where(
        Milestone.project_id == project_id,
        Milestone.number == number,
    )
    if exclude_id:
        stmt = stmt.where(Milestone.id != exclude_id)
    return db.session.execute(stmt).first() is not None


def _next_number(project: Project) -> int:
    """Next milestone number; numbers freed by deletion are not handed out again."""
    highest = db.session.execute(
        select(func.max(Milestone.number)).where(Milestone.project_id == project.id)
    ).scalar()
    return max(project.milestone_counter or 0, highest or 0) + 1


def create_milestone(project_id: str, data: dict[str, Any]) -> Milestone:
    """Create a milestone in a project.

    ``number`` may be supplied explicitly; otherwise the next number is
    assigned. Numbers are unique within the project.

    Raises:
        DanglingReferenceError: project or technical_lead does not exist.
        AlreadyExistsError: the number is already used in this project.
    """
    name = require_text(data.get("name"), "name")
    values = {field: clean_text(data.get(field)) for field in MILESTONE_TEXT_FIELDS}
    values["technical_lead"] = clean_text(data.get("technical_lead"))
    values["due_date"] = parse_date(data.get("due_date"), "due_date")

    with integrity.atomic():
        project = integrity.require_project(project_id)
        integrity.require_person("technical_lead", values["technical_lead"])

        if data.get("number") is not None:
            number = _parse_number(data["number"])
            if _number_taken(project_id, number):
                raise AlreadyExistsError("Milestone", "number", number)
        else:
            number = _next_number(project)

        now = utcnow()
        milestone = Milestone(
            project_id=project_id, number=number, name=name,
            created_at=now, updated_at=now, **values,
        )
        db.session.add(milestone)
        project.milestone_counter = max(project.milestone_counter or 0, number)
        db.session.flush()
        milestone_id = milestone.id

    logger.info("Milestone created id=%s project=%s number=%s", milestone_id, project_id, number,
                extra={"project_id": project_id, "milestone_id": milestone_id})
    return milestone


def get_milestone(milestone_id: str) -> Milestone:
    milestone = db.session.get(Milestone, milestone_id)
    if milestone is None:
        raise NotFoundError("Milestone", milestone_id)
    return milestone


def update_milestone(milestone_id: str, data: dict[str, Any]) -> Milestone:
    """Update milestone fields. Moving a milestone to another project is not allowed."""
    with integrity.atomic():
        milestone = get_milestone(milestone_id)
        if "project_id" in data and data["project_id"] != milestone.project_id:
            raise ValidationError("Milestones cannot move between projects",
                                  details={"project_id": "immutable"})

        values: dict[str, Any] = {}
        if "name" in data:
            values["name"] = require_text(data["name"], "name")
        for field in MILESTONE_TEXT_FIELDS + ("technical_lead",):
            if field in data:
                values[field] = clean_text(data[field])
        if "due_date" in data:
            values["due_date"] = parse_date(data["due_date"], "due_date")
        if data.get("number") is not None:
            number = _parse_number(data["number"])
            if number != milestone.number:
                if _number_taken(milestone.project_id, number, exclude_id=milestone_id):
                    raise AlreadyExistsError("Milestone", "number", number)
                project = db.session.get(Project, milestone.project_id)
                project.milestone_counter = max(project.milestone_counter or 0, number)
            values["number"] = number

        integrity.check_references(values, person_fields=("technical_lead",))
        for field, value in values.items():
            setattr(milestone, field, value)
        milestone.updated_at = utcnow()

    logger.info("Milestone updated id=%s fields=%s", milestone_id, sorted(values),
                extra={"milestone_id": milestone_id})
    return milestone


def delete_milestone(milestone_id: str) -> dict[str, int]:
    """Delete a milestone with its resources and notes in one transaction."""
    with integrity.atomic():
        get_milestone(milestone_id)
        counts = integrity.cascade_milestones([milestone_id])

    logger.info("Milestone deleted id=%s cascade=%s", milestone_id, counts,
                extra={"milestone_id": milestone_id})
    return counts


def get_project_milestones(project_id: str) -> list[Milestone]:
    """Milestones of one project ordered by number."""
    get_project(project_id)
    stmt = (
        select(Milestone)
        .where(Milestone.project_id == project_id)
        .order_by(Milestone.number)
    )
    return list(db.session.execute(stmt).scalars())
