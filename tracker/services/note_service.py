"""Note service — markdown notes on projects, milestones and stakeholder links.

Notes live independently of their owner's edits but are cascade-deleted
with it. Lists are ordered newest first.
"""
import logging
from typing import Any

from sqlalchemy import select

from tracker.core.exceptions import NotFoundError
from tracker.models import db, utcnow
from tracker.models.notes import MilestoneNote, ProjectNote, StakeholderNote
from tracker.models.project import ProjectStakeholder
from tracker.services import integrity
from tracker.services.project_service import get_milestone, get_project
from tracker.utils.helpers import require_text

logger = logging.getLogger(__name__)


def _note_values(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": require_text(data.get("title"), "title"),
        "body": data.get("body") or "",
    }


def _update_note(model, note_id: str, data: dict[str, Any]):
    with integrity.atomic():
        note = db.session.get(model, note_id)
        if note is None:
            raise NotFoundError(model.__name__, note_id)
        if "title" in data:
            note.title = require_text(data["title"], "title")
        if "body" in data:
            note.body = data["body"] or ""
        note.updated_at = utcnow()
    logger.info("%s updated id=%s", model.__name__, note_id)
    return note


def _delete_note(model, note_id: str) -> None:
    with integrity.atomic():
        note = db.session.get(model, note_id)
        if note is None:
            raise NotFoundError(model.__name__, note_id)
        db.session.delete(note)
    logger.info("%s deleted id=%s", model.__name__, note_id)


def _create(note) -> Any:
    now = utcnow()
    note.created_at = now
    note.updated_at = now
    db.session.add(note)
    db.session.flush()
    logger.info("%s created id=%s", type(note).__name__, note.id)
    return note


# ── Project notes ────────────────────────────────────────────────────────────


def add_project_note(project_id: str, data: dict[str, Any]) -> ProjectNote:
    values = _note_values(data)
    with integrity.atomic():
        integrity.require_project(project_id)
        note = _create(ProjectNote(project_id=project_id, **values))
    return note


def update_project_note(note_id: str, data: dict[str, Any]) -> ProjectNote:
    return _update_note(ProjectNote, note_id, data)


def delete_project_note(note_id: str) -> None:
    _delete_note(ProjectNote, note_id)


def get_project_notes(project_id: str) -> list[ProjectNote]:
    get_project(project_id)
    stmt = (
        select(ProjectNote)
        .where(ProjectNote.project_id == project_id)
        .order_by(ProjectNote.created_at.desc(), ProjectNote.id)
    )
    return list(db.session.execute(stmt).scalars())


# ── Milestone notes ──────────────────────────────────────────────────────────


def add_milestone_note(milestone_id: str, data: dict[str, Any]) -> MilestoneNote:
    values = _note_values(data)
    with integrity.atomic():
        integrity.require_milestone(milestone_id)
        note = _create(MilestoneNote(milestone_id=milestone_id, **values))
    return note


def update_milestone_note(note_id: str, data: dict[str, Any]) -> MilestoneNote:
    return _update_note(MilestoneNote, note_id, data)


def delete_milestone_note(note_id: str) -> None:
    _delete_note(MilestoneNote, note_id)


def get_milestone_notes(milestone_id: str) -> list[MilestoneNote]:
    get_milestone(milestone_id)
    stmt = (
        select(MilestoneNote)
        .where(MilestoneNote.milestone_id == milestone_id)
        .order_by(MilestoneNote.created_at.desc(), MilestoneNote.id)
    )
    return list(db.session.execute(stmt).scalars())


# ── Stakeholder notes ────────────────────────────────────────────────────────


def add_stakeholder_note(project_id: str, stakeholder_email: str, data: dict[str, Any]) -> StakeholderNote:
    """Attach a note to an existing (project, stakeholder) link."""
    values = _note_values(data)
    with integrity.atomic():
        integrity.require_stakeholder(project_id, stakeholder_email)
        note = _create(StakeholderNote(
            project_id=project_id, stakeholder_email=stakeholder_email, **values,
        ))
    return note


def update_stakeholder_note(note_id: str, data: dict[str, Any]) -> StakeholderNote:
    return _update_note(StakeholderNote, note_id, data)


def delete_stakeholder_note(note_id: str) -> None:
    _delete_note(StakeholderNote, note_id)


def get_stakeholder_notes(project_id: str, stakeholder_email: str) -> list[StakeholderNote]:
    if db.session.get(ProjectStakeholder, (project_id, stakeholder_email)) is None:
        raise NotFoundError("ProjectStakeholder", f"{project_id}/{stakeholder_email}")
    stmt = (
        select(StakeholderNote)
        .where(
            StakeholderNote.project_id == project_id,
            StakeholderNote.stakeholder_email == stakeholder_email,
        )
        .order_by(StakeholderNote.created_at.desc(), StakeholderNote.id)
    )
    return list(db.session.execute(stmt).scalars())
