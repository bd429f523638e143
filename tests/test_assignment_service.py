"""Tests for assignment_service — stakeholder and resource links (upsert semantics)."""

import pytest
from sqlalchemy import func, select

from tracker.core.exceptions import DanglingReferenceError, NotFoundError, ValidationError
from tracker.models import db
from tracker.models.notes import StakeholderNote
from tracker.models.project import ProjectResource, ProjectStakeholder
from tracker.services import assignment_service, note_service, project_service


def _count(model) -> int:
    return db.session.execute(select(func.count()).select_from(model)).scalar()


class TestStakeholders:
    def test_add_twice_keeps_one_row_and_first_created_at(self, project, bob):
        first = assignment_service.add_project_stakeholder(
            project.id, {"stakeholder_email": "bob@x.com", "role": "Sponsor"}
        )
        created_at = first.created_at

        second = assignment_service.add_project_stakeholder(
            project.id, {"stakeholder_email": "bob@x.com", "role": "Reviewer"}
        )

        assert _count(ProjectStakeholder) == 1
        assert second.role == "Reviewer"
        assert second.created_at == created_at

    def test_email_alias(self, project, bob):
        link = assignment_service.add_project_stakeholder(project.id, {"email": "bob@x.com"})
        assert link.stakeholder_email == "bob@x.com"

    def test_unknown_person_rejected(self, project):
        with pytest.raises(DanglingReferenceError):
            assignment_service.add_project_stakeholder(project.id, {"stakeholder_email": "ghost@x.com"})

    def test_missing_email_rejected(self, project):
        with pytest.raises(ValidationError):
            assignment_service.add_project_stakeholder(project.id, {"role": "Sponsor"})

    def test_update_requires_existing_link(self, project, bob):
        with pytest.raises(NotFoundError):
            assignment_service.update_project_stakeholder(project.id, "bob@x.com", {"role": "x"})

    def test_remove_cascades_notes(self, project, bob):
        assignment_service.add_project_stakeholder(project.id, {"stakeholder_email": "bob@x.com"})
        note_service.add_stakeholder_note(project.id, "bob@x.com", {"title": "Kickoff"})

        counts = assignment_service.remove_project_stakeholder(project.id, "bob@x.com")

        assert counts == {"stakeholder_notes": 1, "project_stakeholders": 1}
        assert _count(StakeholderNote) == 0

    def test_list_ordered_by_email(self, project, alice, bob):
        for email in ("bob@x.com", "alice@x.com"):
            assignment_service.add_project_stakeholder(project.id, {"stakeholder_email": email})
        emails = [s.stakeholder_email for s in assignment_service.get_project_stakeholders(project.id)]
        assert emails == ["alice@x.com", "bob@x.com"]


class TestResources:
    def test_project_resource_upsert(self, project, bob):
        assignment_service.add_project_resource(project.id, {"person_email": "bob@x.com", "role": "Dev"})
        row = assignment_service.add_project_resource(project.id, {"person_email": "bob@x.com"})
        assert _count(ProjectResource) == 1
        assert row.role is None

    def test_update_project_resource_role(self, project, bob):
        assignment_service.add_project_resource(project.id, {"person_email": "bob@x.com"})
        row = assignment_service.update_project_resource(project.id, "bob@x.com", {"role": "Lead"})
        assert row.role == "Lead"

    def test_remove_missing_resource(self, project):
        with pytest.raises(NotFoundError):
            assignment_service.remove_project_resource(project.id, "bob@x.com")

    def test_missing_project_is_dangling(self, bob):
        with pytest.raises(DanglingReferenceError):
            assignment_service.add_project_resource("nope", {"person_email": "bob@x.com"})

    def test_milestone_resources(self, project, alice, bob):
        m = project_service.create_milestone(project.id, {"name": "Build"})
        assignment_service.add_milestone_resource(m.id, {"person_email": "bob@x.com"})
        assignment_service.add_milestone_resource(m.id, {"email": "alice@x.com", "role": "QA"})

        rows = assignment_service.get_milestone_resources(m.id)
        assert [(r.person_email, r.role) for r in rows] == [("alice@x.com", "QA"), ("bob@x.com", None)]

        assignment_service.remove_milestone_resource(m.id, "bob@x.com")
        assert [r.person_email for r in assignment_service.get_milestone_resources(m.id)] == ["alice@x.com"]

    def test_milestone_resource_for_missing_milestone(self, bob):
        with pytest.raises(DanglingReferenceError):
            assignment_service.add_milestone_resource("nope", {"person_email": "bob@x.com"})

    def test_list_for_missing_project(self):
        with pytest.raises(NotFoundError):
            assignment_service.get_project_resources("nope")
