"""Resource & schedule façade — composes store reads for the timeline and list views.

Reads for a project set are batched: milestones, project resources and
milestone resources are each fetched with one ``IN`` query, never one
round trip per project or milestone.

Functions:
    - compute_timeline: occupancy grid for all (or filtered) people
    - build_assignments: pure conversion of rows into timeline assignments
    - upcoming_deadlines: projects and milestones with due dates, earliest first
    - person_view / list_people_view: people with team/manager resolved
    - project_view(s) / milestone_view(s) / stakeholder_views / resource_views:
      stored references resolved, dangling ones shown as ``unknown``
    - project_type_options: configured project types for selectors
"""
import logging
from datetime import date
from typing import Any, Sequence

from sqlalchemy import select

from tracker.config import TrackerSettings
from tracker.models import db
from tracker.models.people import Person, Team
from tracker.models.project import (
    Milestone,
    MilestoneResource,
    Project,
    ProjectResource,
    ProjectStakeholder,
)
from tracker.services import person_service, project_service
from tracker.services.timeline import (
    Assignment,
    Granularity,
    TimelineGrid,
    TimelinePerson,
    TimelineProject,
    compute_grid,
    parse_granularity,
    resolve_window,
)
from tracker.utils.helpers import full_url

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


# ═════════════════════════════════════════════════════════════════════════════
# Timeline
# ═════════════════════════════════════════════════════════════════════════════


def build_assignments(
    projects: Sequence[Project],
    milestones: Sequence[Milestone],
    project_resources: Sequence[ProjectResource],
    milestone_resources: Sequence[MilestoneResource],
    now: date,
) -> list[Assignment]:
    """Turn stored rows into timeline assignments.

    Project assignments use the project's start/due dates; milestone
    assignments have no start date of their own and use the default
    window start with the milestone's due date. Output order follows the
    order of ``projects``: a project's own resources first, then its
    milestones' resources in milestone order.
    """
    milestones_by_project: dict[str, list[Milestone]] = {}
    for m in milestones:
        milestones_by_project.setdefault(m.project_id, []).append(m)

    project_res_by_project: dict[str, list[ProjectResource]] = {}
    for r in project_resources:
        project_res_by_project.setdefault(r.project_id, []).append(r)

    milestone_res_by_milestone: dict[str, list[MilestoneResource]] = {}
    for r in milestone_resources:
        milestone_res_by_milestone.setdefault(r.milestone_id, []).append(r)

    result: list[Assignment] = []
    for project in projects:
        start, end = resolve_window(project.start_date, project.due_date, now)
        for r in project_res_by_project.get(project.id, []):
            result.append(Assignment(
                person_email=r.person_email,
                project_id=project.id,
                project_name=project.name,
                start=start,
                end=end,
            ))
        for m in milestones_by_project.get(project.id, []):
            m_start, m_end = resolve_window(None, m.due_date, now)
            for r in milestone_res_by_milestone.get(m.id, []):
                result.append(Assignment(
                    person_email=r.person_email,
                    project_id=project.id,
                    project_name=project.name,
                    start=m_start,
                    end=m_end,
                    milestone_id=m.id,
                    milestone_name=m.name,
                ))
    return result


def _load_project_rows(projects: Sequence[Project]):
    project_ids = [p.id for p in projects]
    if not project_ids:
        return [], [], []

    milestones = list(db.session.execute(
        select(Milestone)
        .where(Milestone.project_id.in_(project_ids))
        .order_by(Milestone.project_id, Milestone.number)
    ).scalars())
    project_resources = list(db.session.execute(
        select(ProjectResource)
        .where(ProjectResource.project_id.in_(project_ids))
        .order_by(ProjectResource.project_id, ProjectResource.person_email)
    ).scalars())

    milestone_ids = [m.id for m in milestones]
    milestone_resources = []
    if milestone_ids:
        milestone_resources = list(db.session.execute(
            select(MilestoneResource)
            .where(MilestoneResource.milestone_id.in_(milestone_ids))
            .order_by(MilestoneResource.milestone_id, MilestoneResource.person_email)
        ).scalars())
    return milestones, project_resources, milestone_resources


def compute_timeline(
    granularity: Granularity | str,
    now: date,
    filter_team: str | None = None,
    filter_project: str | None = None,
) -> TimelineGrid:
    """Load projects, milestones, assignments and people, then bin them.

    Args:
        granularity: day, week or month.
        now: Reference date for the window; never read from the clock here.
        filter_team: Only people of this team get rows.
        filter_project: Only this project's assignments are shown.
    """
    granularity = parse_granularity(granularity)
    projects = project_service.list_projects()
    milestones, project_resources, milestone_resources = _load_project_rows(projects)
    assignments = build_assignments(projects, milestones, project_resources, milestone_resources, now)

    people = [
        TimelinePerson(p.email, p.name, p.team)
        for p in person_service.list_people(team=filter_team)
    ]
    grid = compute_grid(
        assignments,
        people,
        granularity,
        now,
        filter_team=filter_team,
        filter_project=filter_project,
        projects=[TimelineProject(p.id, p.name) for p in projects],
    )
    logger.debug(
        "Timeline computed granularity=%s now=%s people=%d assignments=%d periods=%d",
        granularity.value, now.isoformat(), len(people), len(assignments), len(grid.periods),
    )
    return grid


# ═════════════════════════════════════════════════════════════════════════════
# Deadlines
# ═════════════════════════════════════════════════════════════════════════════


def upcoming_deadlines(settings: TrackerSettings, today: date) -> list[dict[str, Any]]:
    """Projects and milestones that have a due date, earliest first.

    Each item carries ``overdue`` relative to ``today`` and a ticket URL
    built from the configured base when a ticket id is set.
    """
    projects = list(db.session.execute(
        select(Project).where(Project.due_date.is_not(None))
    ).scalars())
    milestones = list(db.session.execute(
        select(Milestone).where(Milestone.due_date.is_not(None))
    ).scalars())

    items: list[dict[str, Any]] = []
    for p in projects:
        items.append({
            "id": p.id,
            "type": "project",
            "name": p.name,
            "project_id": p.id,
            "due_date": p.due_date,
            "ticket": p.jira_initiative,
        })
    for m in milestones:
        items.append({
            "id": m.id,
            "type": "milestone",
            "name": m.name,
            "project_id": m.project_id,
            "due_date": m.due_date,
            "ticket": m.jira_epic,
        })

    # type/name/id keep ties stable
    items.sort(key=lambda i: (i["due_date"], i["type"] != "project", i["name"], i["id"]))
    for item in items:
        due = item["due_date"]
        item["ticket_url"] = full_url(settings.jira_url, item["ticket"]) if item["ticket"] else None
        item["overdue"] = due < today
        item["due_date"] = due.isoformat()
    return items


# ═════════════════════════════════════════════════════════════════════════════
# Reference views
# ═════════════════════════════════════════════════════════════════════════════

PROJECT_PERSON_FIELDS = ("requirements_owner", "technical_lead", "manager")


def _known(emails: set[str], teams: set[str]) -> tuple[dict[str, str], set[str]]:
    people_names: dict[str, str] = {}
    if emails:
        people_names = dict(db.session.execute(
            select(Person.email, Person.name).where(Person.email.in_(emails))
        ).all())
    team_names: set[str] = set()
    if teams:
        team_names = set(db.session.execute(
            select(Team.name).where(Team.name.in_(teams))
        ).scalars())
    return people_names, team_names


def _resolved(
    items: list[dict[str, Any]],
    person_fields: Sequence[str] = (),
    team_fields: Sequence[str] = (),
) -> list[dict[str, Any]]:
    """Add ``<field>_display`` and ``<field>_missing`` for each reference.

    A person reference displays the person's name, a team reference its
    name. A set reference to a record that no longer exists displays as
    ``unknown`` and is flagged missing; the raw value is left in place.
    """
    emails = {i[f] for i in items for f in person_fields if i[f]}
    teams = {i[f] for i in items for f in team_fields if i[f]}
    people_names, team_names = _known(emails, teams)

    for item in items:
        for field in person_fields:
            value = item[field]
            missing = bool(value) and value not in people_names
            item[f"{field}_display"] = UNKNOWN if missing else people_names.get(value)
            item[f"{field}_missing"] = missing
        for field in team_fields:
            value = item[field]
            missing = bool(value) and value not in team_names
            item[f"{field}_display"] = UNKNOWN if missing else value
            item[f"{field}_missing"] = missing
    return items


# ── People ───────────────────────────────────────────────────────────────────


def list_people_view(team: str | None = None) -> list[dict[str, Any]]:
    """People with team and manager resolved; dangling values render as ``unknown``."""
    people = person_service.list_people(team=team)
    return _resolved([p.to_dict() for p in people], ("manager",), ("team",))


def person_view(email: str) -> dict[str, Any]:
    person = person_service.get_person(email)
    return _resolved([person.to_dict()], ("manager",), ("team",))[0]


# ── Projects & milestones ────────────────────────────────────────────────────


def project_views(settings: TrackerSettings, projects: Sequence[Project]) -> list[dict[str, Any]]:
    """Project dicts with owner, lead, manager and team resolved."""
    items = [p.to_dict(settings) for p in projects]
    return _resolved(items, PROJECT_PERSON_FIELDS, ("team",))


def list_projects_view(settings: TrackerSettings, team: str | None = None) -> list[dict[str, Any]]:
    return project_views(settings, project_service.list_projects(team=team))


def project_view(settings: TrackerSettings, project_id: str) -> dict[str, Any]:
    return project_views(settings, [project_service.get_project(project_id)])[0]


def milestone_views(settings: TrackerSettings, milestones: Sequence[Milestone]) -> list[dict[str, Any]]:
    items = [m.to_dict(settings) for m in milestones]
    return _resolved(items, ("technical_lead",))


def milestone_view(settings: TrackerSettings, milestone_id: str) -> dict[str, Any]:
    return milestone_views(settings, [project_service.get_milestone(milestone_id)])[0]


# ── Stakeholder & resource links ─────────────────────────────────────────────


def stakeholder_views(links: Sequence[ProjectStakeholder]) -> list[dict[str, Any]]:
    return _resolved([link.to_dict() for link in links], ("stakeholder_email",))


def resource_views(rows: Sequence[ProjectResource | MilestoneResource]) -> list[dict[str, Any]]:
    """Project or milestone resource rows with the person's name resolved."""
    return _resolved([r.to_dict() for r in rows], ("person_email",))


# ═════════════════════════════════════════════════════════════════════════════
# Settings helpers
# ═════════════════════════════════════════════════════════════════════════════


def project_type_options(settings: TrackerSettings, current: str | None = None) -> list[str]:
    """Configured project types; an out-of-list ``current`` value is appended."""
    options = list(settings.project_types)
    if current and current not in options:
        options.append(current)
    return options
