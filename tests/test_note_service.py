"""Tests for note_service — notes on projects, milestones and stakeholder links."""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.core.exceptions import DanglingReferenceError, NotFoundError, ValidationError
from tracker.models import db
from tracker.services import assignment_service, note_service, project_service


def test_project_notes_newest_first(project):
    old = note_service.add_project_note(project.id, {"title": "Old", "body": "# first"})
    old.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    db.session.commit()
    note_service.add_project_note(project.id, {"title": "New"})

    titles = [n.title for n in note_service.get_project_notes(project.id)]
    assert titles == ["New", "Old"]


def test_note_requires_title(project):
    with pytest.raises(ValidationError):
        note_service.add_project_note(project.id, {"body": "no title"})


def test_note_for_missing_project(session):
    with pytest.raises(DanglingReferenceError):
        note_service.add_project_note("nope", {"title": "x"})


def test_update_note_keeps_created_at(project):
    note = note_service.add_project_note(project.id, {"title": "Draft"})
    created_at = note.created_at

    updated = note_service.update_project_note(note.id, {"title": "Final", "body": "Done"})

    assert (updated.title, updated.body) == ("Final", "Done")
    assert updated.created_at == created_at


def test_delete_note(project):
    note = note_service.add_project_note(project.id, {"title": "Temp"})
    note_service.delete_project_note(note.id)
    assert note_service.get_project_notes(project.id) == []
    with pytest.raises(NotFoundError):
        note_service.delete_project_note(note.id)


def test_milestone_notes(project):
    m = project_service.create_milestone(project.id, {"name": "Build"})
    note = note_service.add_milestone_note(m.id, {"title": "Risks"})
    note_service.update_milestone_note(note.id, {"body": "Vendor delay"})
    [stored] = note_service.get_milestone_notes(m.id)
    assert stored.body == "Vendor delay"
    assert stored.to_dict()["milestone_id"] == m.id


def test_stakeholder_note_requires_link(project, bob):
    with pytest.raises(DanglingReferenceError):
        note_service.add_stakeholder_note(project.id, "bob@x.com", {"title": "x"})

    assignment_service.add_project_stakeholder(project.id, {"stakeholder_email": "bob@x.com"})
    note = note_service.add_stakeholder_note(project.id, "bob@x.com", {"title": "Prefers email"})
    assert [n.id for n in note_service.get_stakeholder_notes(project.id, "bob@x.com")] == [note.id]


def test_stakeholder_note_lifecycle(project, bob):
    assignment_service.add_project_stakeholder(project.id, {"stakeholder_email": "bob@x.com"})
    note = note_service.add_stakeholder_note(project.id, "bob@x.com", {"title": "A"})
    note_service.update_stakeholder_note(note.id, {"title": "B"})
    assert note_service.get_stakeholder_notes(project.id, "bob@x.com")[0].title == "B"
    note_service.delete_stakeholder_note(note.id)
    assert note_service.get_stakeholder_notes(project.id, "bob@x.com") == []


def test_note_lists_for_missing_owner(project):
    with pytest.raises(NotFoundError):
        note_service.get_project_notes("nope")
    with pytest.raises(NotFoundError):
        note_service.get_milestone_notes("nope")
    with pytest.raises(NotFoundError):
        note_service.get_stakeholder_notes(project.id, "ghost@x.com")
