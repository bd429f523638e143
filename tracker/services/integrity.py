"""Integrity layer — reference checks, unit of work and cascade collection.

Transaction policy: every public service mutation runs inside ``atomic()``.
The block commits once on success; any exception rolls the whole session
back and propagates, so a failed cascade never leaves partial state.

Reference checks run before a row is written. A reference to a missing
person, team, project or milestone raises DanglingReferenceError naming the
offending field. Person/team deletions are not cascaded: existing rows keep
their (now dangling) values and only new writes are checked.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import delete, select

from tracker.core.exceptions import DanglingReferenceError
from tracker.models import db
from tracker.models.notes import MilestoneNote, ProjectNote, StakeholderNote
from tracker.models.people import Person, Team
from tracker.models.project import (
    Milestone,
    MilestoneResource,
    Project,
    ProjectResource,
    ProjectStakeholder,
)

logger = logging.getLogger(__name__)


@contextmanager
def atomic():
    """Run a block as one transaction: commit on success, rollback on any error."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


# ── Reference checks ─────────────────────────────────────────────────────────


def _exists(model, key) -> bool:
    return db.session.get(model, key) is not None


def require_person(field: str, email: str | None) -> None:
    """Fail if ``email`` is set but names no Person."""
    if email and not _exists(Person, email):
        logger.warning("Rejected dangling person reference field=%s value=%s", field, email)
        raise DanglingReferenceError(field, email)


def require_team(field: str, name: str | None) -> None:
    if name and not _exists(Team, name):
        logger.warning("Rejected dangling team reference field=%s value=%s", field, name)
        raise DanglingReferenceError(field, name)


def require_project(project_id: str, field: str = "project_id") -> Project:
    project = db.session.get(Project, project_id) if project_id else None
    if project is None:
        raise DanglingReferenceError(field, project_id)
    return project


def require_milestone(milestone_id: str, field: str = "milestone_id") -> Milestone:
    milestone = db.session.get(Milestone, milestone_id) if milestone_id else None
    if milestone is None:
        raise DanglingReferenceError(field, milestone_id)
    return milestone


def require_stakeholder(project_id: str, email: str) -> ProjectStakeholder:
    link = db.session.get(ProjectStakeholder, (project_id, email))
    if link is None:
        raise DanglingReferenceError("stakeholder", f"{project_id}/{email}")
    return link


def check_references(values: dict, person_fields=(), team_fields=()) -> None:
    """Verify every person/team reference present in ``values``."""
    for field in person_fields:
        if field in values:
            require_person(field, values[field])
    for field in team_fields:
        if field in values:
            require_team(field, values[field])


# ── Cascades ─────────────────────────────────────────────────────────────────


def cascade_milestones(milestone_ids: list[str]) -> dict[str, int]:
    """Delete milestone-scoped children, then the milestones themselves.

    Must be called inside ``atomic()``. Returns per-table delete counts.
    """
    counts = {"milestone_notes": 0, "milestone_resources": 0, "milestones": 0}
    if not milestone_ids:
        return counts
    counts["milestone_notes"] = db.session.execute(
        delete(MilestoneNote).where(MilestoneNote.milestone_id.in_(milestone_ids))
    ).rowcount
    counts["milestone_resources"] = db.session.execute(
        delete(MilestoneResource).where(MilestoneResource.milestone_id.in_(milestone_ids))
    ).rowcount
    counts["milestones"] = db.session.execute(
        delete(Milestone).where(Milestone.id.in_(milestone_ids))
    ).rowcount
    return counts


def cascade_project(project_id: str) -> dict[str, int]:
    """Delete everything a project owns, children before parents, then the project.

    Must be called inside ``atomic()``. Returns per-table delete counts.
    """
    milestone_ids = list(
        db.session.execute(
            select(Milestone.id).where(Milestone.project_id == project_id)
        ).scalars()
    )
    counts = cascade_milestones(milestone_ids)
    counts["stakeholder_notes"] = db.session.execute(
        delete(StakeholderNote).where(StakeholderNote.project_id == project_id)
    ).rowcount
    counts["project_stakeholders"] = db.session.execute(
        delete(ProjectStakeholder).where(ProjectStakeholder.project_id == project_id)
    ).rowcount
    counts["project_resources"] = db.session.execute(
        delete(ProjectResource).where(ProjectResource.project_id == project_id)
    ).rowcount
    counts["project_notes"] = db.session.execute(
        delete(ProjectNote).where(ProjectNote.project_id == project_id)
    ).rowcount
    counts["projects"] = db.session.execute(
        delete(Project).where(Project.id == project_id)
    ).rowcount
    return counts


def cascade_stakeholder(project_id: str, email: str) -> dict[str, int]:
    """Delete a stakeholder link and its notes. Must be called inside ``atomic()``."""
    notes = db.session.execute(
        delete(StakeholderNote).where(
            StakeholderNote.project_id == project_id,
            StakeholderNote.stakeholder_email == email,
        )
    ).rowcount
    links = db.session.execute(
        delete(ProjectStakeholder).where(
            ProjectStakeholder.project_id == project_id,
            ProjectStakeholder.stakeholder_email == email,
        )
    ).rowcount
    return {"stakeholder_notes": notes, "project_stakeholders": links}
