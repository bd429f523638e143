"""Tests for resource_service — timeline façade, deadlines and reference views."""

from datetime import date

import pytest
from sqlalchemy import event

from tracker.config import TrackerSettings
from tracker.models import db
from tracker.services import (
    assignment_service,
    person_service,
    project_service,
    resource_service,
    team_service,
)
from tracker.services.timeline import PALETTE

NOW = date(2025, 1, 1)


class _StatementCounter:
    def __init__(self):
        self.count = 0

    def __call__(self, *args, **kwargs):
        self.count += 1


def _count_statements(fn):
    counter = _StatementCounter()
    event.listen(db.engine, "before_cursor_execute", counter)
    try:
        result = fn()
    finally:
        event.remove(db.engine, "before_cursor_execute", counter)
    return result, counter.count


# ═════════════════════════════════════════════════════════════════════════════
# Timeline
# ═════════════════════════════════════════════════════════════════════════════


class TestComputeTimeline:
    def test_milestone_without_start_uses_default_window(self, alice):
        p1 = project_service.create_project({"name": "P1"})
        m1 = project_service.create_milestone(p1.id, {"name": "M1", "due_date": "2025-06-15"})
        assignment_service.add_milestone_resource(m1.id, {"person_email": "alice@x.com"})

        grid = resource_service.compute_timeline("week", NOW)

        occupied = [bool(grid.cell("alice@x.com", i)) for i in range(len(grid.periods))]
        june_15_week = next(
            i for i, p in enumerate(grid.periods) if p.start <= date(2025, 6, 15) <= p.display_end
        )
        assert occupied[: june_15_week + 1] == [True] * (june_15_week + 1)
        assert not any(occupied[june_15_week + 1:])
        entry = grid.cell("alice@x.com", 0)[0]
        assert (entry.label, entry.title) == ("M1", "P1 - M1")

    def test_overlapping_projects_give_two_entries(self, bob):
        for name in ("Alpha", "Beta"):
            p = project_service.create_project({"name": name})
            assignment_service.add_project_resource(p.id, {"person_email": "bob@x.com"})

        grid = resource_service.compute_timeline("week", NOW)

        assert [e.label for e in grid.cell("bob@x.com", 2)] == ["Alpha", "Beta"]

    def test_project_dates_bound_the_assignment(self, bob):
        p = project_service.create_project(
            {"name": "Short", "start_date": "2025-02-01", "due_date": "2025-02-28"}
        )
        assignment_service.add_project_resource(p.id, {"person_email": "bob@x.com"})

        grid = resource_service.compute_timeline("month", NOW)

        assert [len(grid.cell("bob@x.com", i)) for i in range(6)] == [1, 1, 0, 0, 0, 0]

    def test_long_running_project_without_due_date_stays_in_flight(self, bob):
        p = project_service.create_project({"name": "Legacy", "start_date": "2024-06-01"})
        assignment_service.add_project_resource(p.id, {"person_email": "bob@x.com"})

        grid = resource_service.compute_timeline("month", NOW)

        assert [len(grid.cell("bob@x.com", i)) for i in range(6)] == [1, 1, 1, 1, 1, 1]

    def test_team_and_project_filters(self, alice, bob):
        a = project_service.create_project({"name": "Alpha"})
        b = project_service.create_project({"name": "Beta"})
        for p in (a, b):
            assignment_service.add_project_resource(p.id, {"person_email": "alice@x.com"})
            assignment_service.add_project_resource(p.id, {"person_email": "bob@x.com"})

        grid = resource_service.compute_timeline(
            "week", NOW, filter_team="Platform", filter_project=b.id
        )

        assert [r.person.email for r in grid.rows] == ["alice@x.com"]
        assert [e.project_id for e in grid.cell("alice@x.com", 0)] == [b.id]
        assert grid.legend == [{"project_id": b.id, "name": "Beta", "color": PALETTE[0]}]

    def test_colours_follow_project_order(self, bob):
        for name in ("Beta", "Alpha"):
            project_service.create_project({"name": name})
        grid = resource_service.compute_timeline("week", NOW)
        assert [(item["name"], item["color"]) for item in grid.legend] == [
            ("Alpha", PALETTE[0]),
            ("Beta", PALETTE[1]),
        ]

    def test_deterministic_serialisation(self, alice, bob):
        p = project_service.create_project({"name": "Alpha", "due_date": "2025-04-01"})
        assignment_service.add_project_resource(p.id, {"person_email": "alice@x.com"})
        m = project_service.create_milestone(p.id, {"name": "M"})
        assignment_service.add_milestone_resource(m.id, {"person_email": "bob@x.com"})

        first = resource_service.compute_timeline("day", NOW).to_dict()
        second = resource_service.compute_timeline("day", NOW).to_dict()
        assert first == second

    def test_reads_are_batched(self, alice):
        def _seed(count):
            for i in range(count):
                p = project_service.create_project({"name": f"P{i}"})
                assignment_service.add_project_resource(p.id, {"person_email": "alice@x.com"})
                for j in range(2):
                    m = project_service.create_milestone(p.id, {"name": f"M{j}"})
                    assignment_service.add_milestone_resource(m.id, {"person_email": "alice@x.com"})

        _seed(1)
        _, small = _count_statements(lambda: resource_service.compute_timeline("week", NOW))
        _seed(5)
        grid, large = _count_statements(lambda: resource_service.compute_timeline("week", NOW))

        assert small == large
        assert large <= 5
        assert len(grid.cell("alice@x.com", 0)) == 18


def test_build_assignments_is_pure(project, bob):
    m = project_service.create_milestone(project.id, {"name": "M", "due_date": "2025-03-01"})
    pr = assignment_service.add_project_resource(project.id, {"person_email": "bob@x.com"})
    mr = assignment_service.add_milestone_resource(m.id, {"person_email": "bob@x.com"})

    result = resource_service.build_assignments([project], [m], [pr], [mr], NOW)

    assert [(a.project_name, a.milestone_name, a.start, a.end) for a in result] == [
        ("Apollo", None, date(2025, 1, 1), date(2025, 7, 1)),
        ("Apollo", "M", date(2025, 1, 1), date(2025, 3, 1)),
    ]


# ═════════════════════════════════════════════════════════════════════════════
# Deadlines
# ═════════════════════════════════════════════════════════════════════════════


def test_upcoming_deadlines(settings):
    p = project_service.create_project({"name": "Launch", "due_date": "2025-03-01", "jira_initiative": "INIT-1"})
    project_service.create_milestone(p.id, {"name": "Beta", "due_date": "2025-02-01"})
    project_service.create_milestone(p.id, {"name": "Undated"})
    project_service.create_project({"name": "Someday"})

    items = resource_service.upcoming_deadlines(settings, date(2025, 2, 15))

    assert [(i["type"], i["name"], i["due_date"], i["overdue"]) for i in items] == [
        ("milestone", "Beta", "2025-02-01", True),
        ("project", "Launch", "2025-03-01", False),
    ]
    assert items[0]["ticket_url"] is None
    assert items[1]["ticket_url"] == "https://jira.company.com/browse/INIT-1"
    assert items[0]["project_id"] == p.id


def test_deadline_urls_use_settings_at_call_time():
    project_service.create_project({"name": "X", "due_date": "2025-03-01", "jira_initiative": "K-1"})
    custom = TrackerSettings(jira_url="https://tickets.example/")
    [item] = resource_service.upcoming_deadlines(custom, NOW)
    assert item["ticket_url"] == "https://tickets.example/K-1"


# ═════════════════════════════════════════════════════════════════════════════
# People views & settings
# ═════════════════════════════════════════════════════════════════════════════


class TestPeopleViews:
    def test_resolved_references(self, alice, bob):
        person_service.update_person("bob@x.com", {"manager": "alice@x.com", "team": "Platform"})
        view = resource_service.person_view("bob@x.com")
        assert view["manager_display"] == "Alice Example"
        assert view["team_display"] == "Platform"
        assert view["team_missing"] is False
        assert view["manager_missing"] is False

    def test_dangling_team_and_manager(self, alice, bob):
        team_service.create_team({"name": "T1"})
        person_service.update_person("bob@x.com", {"manager": "alice@x.com", "team": "T1"})
        team_service.delete_team("T1")
        person_service.delete_person("alice@x.com")

        [row] = resource_service.list_people_view()
        assert row["team"] == "T1"
        assert row["team_display"] == "unknown"
        assert row["manager"] == "alice@x.com"
        assert row["manager_display"] == "unknown"
        assert row["team_missing"] and row["manager_missing"]

    def test_unset_references_are_not_missing(self, bob):
        view = resource_service.person_view("bob@x.com")
        assert view["team_display"] is None
        assert view["manager_display"] is None
        assert not view["team_missing"] and not view["manager_missing"]


class TestProjectViews:
    def test_resolved_references(self, settings, project):
        view = resource_service.project_view(settings, project.id)
        assert view["technical_lead_display"] == "Alice Example"
        assert view["team_display"] == "Platform"
        assert not view["technical_lead_missing"] and not view["team_missing"]
        assert view["manager_display"] is None and not view["manager_missing"]

    def test_deleted_lead_and_stakeholder_render_unknown(self, settings, project, bob):
        m = project_service.create_milestone(project.id, {"name": "M", "technical_lead": "alice@x.com"})
        assignment_service.add_project_stakeholder(project.id, {"stakeholder_email": "alice@x.com"})
        assignment_service.add_project_resource(project.id, {"person_email": "bob@x.com"})
        person_service.delete_person("alice@x.com")
        team_service.delete_team("Platform")

        [view] = resource_service.list_projects_view(settings)
        assert view["technical_lead"] == "alice@x.com"
        assert view["technical_lead_display"] == "unknown"
        assert view["technical_lead_missing"] is True
        assert (view["team_display"], view["team_missing"]) == ("unknown", True)

        milestone = resource_service.milestone_view(settings, m.id)
        assert (milestone["technical_lead_display"], milestone["technical_lead_missing"]) == ("unknown", True)

        [link] = resource_service.stakeholder_views(
            assignment_service.get_project_stakeholders(project.id)
        )
        assert link["stakeholder_email"] == "alice@x.com"
        assert (link["stakeholder_email_display"], link["stakeholder_email_missing"]) == ("unknown", True)

        [row] = resource_service.resource_views(assignment_service.get_project_resources(project.id))
        assert (row["person_email_display"], row["person_email_missing"]) == ("Bob Example", False)


@pytest.mark.unit
def test_project_type_options():
    settings = TrackerSettings()
    assert resource_service.project_type_options(settings) == ["Personal", "Team", "Company"]
    assert resource_service.project_type_options(settings, "Team") == ["Personal", "Team", "Company"]
    assert resource_service.project_type_options(settings, "Skunkworks")[-1] == "Skunkworks"
