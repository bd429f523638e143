"""Tests for project_service — projects, milestone numbering and cascading deletes."""

from datetime import date

import pytest
from sqlalchemy import func, select

from tracker.core.exceptions import (
    AlreadyExistsError,
    DanglingReferenceError,
    NotFoundError,
    ValidationError,
)
from tracker.models import db
from tracker.models.notes import MilestoneNote, ProjectNote, StakeholderNote
from tracker.models.project import (
    Milestone,
    MilestoneResource,
    Project,
    ProjectResource,
    ProjectStakeholder,
)
from tracker.services import assignment_service, note_service, project_service


def _count(model) -> int:
    return db.session.execute(select(func.count()).select_from(model)).scalar()


# ═════════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════════


class TestProjects:
    def test_create_assigns_id_and_defaults(self, project):
        fetched = project_service.get_project(project.id)
        assert len(fetched.id) == 36
        assert fetched.type == "Personal"
        assert fetched.milestone_counter == 0

    def test_dates_are_parsed(self):
        p = project_service.create_project(
            {"name": "Dated", "start_date": "2025-02-01", "due_date": "01.03.2025"}
        )
        assert p.start_date == date(2025, 2, 1)
        assert p.due_date == date(2025, 3, 1)

    def test_bad_date_rejected(self):
        with pytest.raises(ValidationError):
            project_service.create_project({"name": "Bad", "due_date": "soon"})

    def test_unconfigured_type_round_trips(self):
        p = project_service.create_project({"name": "Odd", "type": "Skunkworks"})
        assert project_service.get_project(p.id).type == "Skunkworks"

    @pytest.mark.parametrize("field", ["requirements_owner", "technical_lead", "manager"])
    def test_person_references_checked(self, field):
        with pytest.raises(DanglingReferenceError) as exc:
            project_service.create_project({"name": "X", field: "ghost@x.com"})
        assert exc.value.field == field
        assert _count(Project) == 0

    def test_team_reference_checked(self):
        with pytest.raises(DanglingReferenceError):
            project_service.create_project({"name": "X", "team": "Ghosts"})

    def test_update_fields(self, project, bob):
        updated = project_service.update_project(project.id, {"manager": "bob@x.com", "due_date": "2025-09-30"})
        assert updated.manager == "bob@x.com"
        assert updated.due_date == date(2025, 9, 30)
        assert updated.technical_lead == "alice@x.com"

    def test_id_is_immutable(self, project):
        with pytest.raises(ValidationError):
            project_service.update_project(project.id, {"id": "other"})

    def test_list_by_team(self, project):
        project_service.create_project({"name": "Zeus"})
        assert [p.name for p in project_service.list_projects()] == ["Apollo", "Zeus"]
        assert [p.name for p in project_service.list_projects(team="Platform")] == ["Apollo"]

    def test_get_missing(self):
        with pytest.raises(NotFoundError):
            project_service.get_project("nope")

    def test_jira_url_only_with_settings_and_ticket(self, settings):
        p = project_service.create_project({"name": "Ticketed", "jira_initiative": "INIT-7"})
        assert "jira_url" not in p.to_dict()
        assert p.to_dict(settings)["jira_url"] == "https://jira.company.com/browse/INIT-7"
        bare = project_service.create_project({"name": "Bare"})
        assert "jira_url" not in bare.to_dict(settings)


# ═════════════════════════════════════════════════════════════════════════════
# Milestones
# ═════════════════════════════════════════════════════════════════════════════


class TestMilestones:
    def test_numbers_assigned_sequentially(self, project):
        m1 = project_service.create_milestone(project.id, {"name": "Design"})
        m2 = project_service.create_milestone(project.id, {"name": "Build"})
        assert (m1.number, m2.number) == (1, 2)

    def test_numbers_are_not_reused_after_delete(self, project):
        project_service.create_milestone(project.id, {"name": "A"})
        m2 = project_service.create_milestone(project.id, {"name": "B"})
        project_service.delete_milestone(m2.id)
        m3 = project_service.create_milestone(project.id, {"name": "C"})
        assert m3.number == 3

    def test_explicit_number_collision(self, project):
        project_service.create_milestone(project.id, {"name": "A", "number": 5})
        with pytest.raises(AlreadyExistsError):
            project_service.create_milestone(project.id, {"name": "B", "number": 5})
        assert project_service.create_milestone(project.id, {"name": "C"}).number == 6

    def test_numbers_are_per_project(self, project):
        other = project_service.create_project({"name": "Other"})
        project_service.create_milestone(project.id, {"name": "A"})
        assert project_service.create_milestone(other.id, {"name": "A"}).number == 1

    def test_missing_project_is_dangling(self):
        with pytest.raises(DanglingReferenceError):
            project_service.create_milestone("nope", {"name": "A"})

    def test_invalid_number(self, project):
        with pytest.raises(ValidationError):
            project_service.create_milestone(project.id, {"name": "A", "number": 0})

    def test_update_number_collision(self, project):
        project_service.create_milestone(project.id, {"name": "A"})
        m2 = project_service.create_milestone(project.id, {"name": "B"})
        with pytest.raises(AlreadyExistsError):
            project_service.update_milestone(m2.id, {"number": 1})

    def test_cannot_move_between_projects(self, project):
        other = project_service.create_project({"name": "Other"})
        m = project_service.create_milestone(project.id, {"name": "A"})
        with pytest.raises(ValidationError):
            project_service.update_milestone(m.id, {"project_id": other.id})

    def test_list_ordered_by_number(self, project):
        project_service.create_milestone(project.id, {"name": "Late", "number": 9})
        project_service.create_milestone(project.id, {"name": "Early", "number": 2})
        names = [m.name for m in project_service.get_project_milestones(project.id)]
        assert names == ["Early", "Late"]

    def test_milestone_jira_url(self, project, settings):
        m = project_service.create_milestone(project.id, {"name": "A", "jira_epic": "EPIC-1"})
        assert m.to_dict(settings)["jira_url"] == "https://jira.company.com/browse/EPIC-1"


# ═════════════════════════════════════════════════════════════════════════════
# Cascades
# ═════════════════════════════════════════════════════════════════════════════


def _populate(project_id: str, email: str) -> str:
    """Give a project one of every owned record; returns the milestone id."""
    m = project_service.create_milestone(project_id, {"name": "M"})
    assignment_service.add_project_stakeholder(project_id, {"stakeholder_email": email})
    assignment_service.add_project_resource(project_id, {"person_email": email})
    assignment_service.add_milestone_resource(m.id, {"person_email": email})
    note_service.add_project_note(project_id, {"title": "P note"})
    note_service.add_milestone_note(m.id, {"title": "M note"})
    note_service.add_stakeholder_note(project_id, email, {"title": "S note"})
    return m.id


class TestCascade:
    def test_delete_project_removes_exactly_what_it_owns(self, project, bob):
        keep = project_service.create_project({"name": "Keep"})
        _populate(project.id, "bob@x.com")
        _populate(keep.id, "bob@x.com")

        counts = project_service.delete_project(project.id)

        assert counts == {
            "milestone_notes": 1,
            "milestone_resources": 1,
            "milestones": 1,
            "stakeholder_notes": 1,
            "project_stakeholders": 1,
            "project_resources": 1,
            "project_notes": 1,
            "projects": 1,
        }
        for model in (Milestone, MilestoneResource, MilestoneNote, ProjectStakeholder,
                      ProjectResource, ProjectNote, StakeholderNote, Project):
            assert _count(model) == 1, model.__name__
        assert project_service.get_project(keep.id).name == "Keep"

    def test_delete_milestone_removes_its_children(self, project, bob):
        milestone_id = _populate(project.id, "bob@x.com")

        counts = project_service.delete_milestone(milestone_id)

        assert counts == {"milestone_notes": 1, "milestone_resources": 1, "milestones": 1}
        assert _count(ProjectResource) == 1
        assert _count(ProjectNote) == 1
        assert _count(StakeholderNote) == 1

    def test_delete_missing_project(self):
        with pytest.raises(NotFoundError):
            project_service.delete_project("nope")

    def test_failed_cascade_rolls_back(self, project, bob, monkeypatch):
        _populate(project.id, "bob@x.com")

        from tracker.services import integrity

        def _boom(project_id):
            integrity.cascade_milestones(
                list(db.session.execute(select(Milestone.id)).scalars())
            )
            raise RuntimeError("disk full")

        monkeypatch.setattr(integrity, "cascade_project", _boom)
        with pytest.raises(RuntimeError):
            project_service.delete_project(project.id)

        assert _count(Milestone) == 1
        assert _count(MilestoneResource) == 1
        assert _count(MilestoneNote) == 1
