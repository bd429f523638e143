"""
Timeline engine — bins date-bounded resource assignments into a
person × period occupancy grid.

Pure module: no database access and no clock reads. ``now`` is always
passed in, so the same inputs always produce the same grid.

Usage:
    from tracker.services.timeline import Granularity, compute_grid
    grid = compute_grid(assignments, people, Granularity.WEEK, now=date(2025, 1, 1))
    grid.to_dict()
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

from tracker.core.exceptions import ValidationError

HORIZON_MONTHS = 6

PALETTE = (
    "#1890ff",
    "#52c41a",
    "#fa8c16",
    "#eb2f96",
    "#13c2c2",
    "#722ed1",
    "#f5222d",
    "#faad14",
    "#2f54eb",
    "#fa541c",
)


# ═════════════════════════════════════════════════════════════════════════════
# Enums & Data Classes
# ═════════════════════════════════════════════════════════════════════════════


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def parse_granularity(value: str | Granularity | None) -> Granularity:
    """Coerce user input to a Granularity; defaults to week."""
    if isinstance(value, Granularity):
        return value
    if not value:
        return Granularity.WEEK
    try:
        return Granularity(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(g.value for g in Granularity)
        raise ValidationError(
            f"Invalid granularity: {value!r}",
            details={"granularity": f"expected one of {allowed}"},
        ) from exc


@dataclass(frozen=True)
class Assignment:
    """One person working on a project (or one of its milestones) over a date range."""
    person_email: str
    project_id: str
    project_name: str
    start: date
    end: date
    milestone_id: str | None = None
    milestone_name: str | None = None


@dataclass(frozen=True)
class TimelinePerson:
    email: str
    name: str
    team: str | None = None


@dataclass(frozen=True)
class TimelineProject:
    id: str
    name: str


@dataclass(frozen=True)
class Period:
    start: date
    bound: date
    display_end: date
    label: str

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.display_end.isoformat(),
            "label": self.label,
        }


@dataclass(frozen=True)
class TimelineEntry:
    project_id: str
    milestone_id: str | None
    label: str
    title: str
    color: str

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "milestone_id": self.milestone_id,
            "label": self.label,
            "title": self.title,
            "color": self.color,
        }


@dataclass
class TimelineRow:
    person: TimelinePerson
    cells: list[list[TimelineEntry]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "email": self.person.email,
            "name": self.person.name,
            "team": self.person.team,
            "cells": [[entry.to_dict() for entry in cell] for cell in self.cells],
        }


@dataclass
class TimelineGrid:
    granularity: Granularity
    start: date
    end: date
    periods: list[Period] = field(default_factory=list)
    rows: list[TimelineRow] = field(default_factory=list)
    legend: list[dict] = field(default_factory=list)

    def cell(self, email: str, period_index: int) -> list[TimelineEntry]:
        for row in self.rows:
            if row.person.email == email:
                return row.cells[period_index]
        return []

    def to_dict(self) -> dict:
        return {
            "granularity": self.granularity.value,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "periods": [p.to_dict() for p in self.periods],
            "rows": [r.to_dict() for r in self.rows],
            "legend": list(self.legend),
        }


# ═════════════════════════════════════════════════════════════════════════════
# Date arithmetic
# ═════════════════════════════════════════════════════════════════════════════


def add_months(value: date, months: int) -> date:
    """Calendar month shift; the day is clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def timeline_start(now: date) -> date:
    return now.replace(day=1)


def resolve_window(start: date | None, due: date | None, now: date) -> tuple[date, date]:
    """Effective (start, end) of an assignment.

    A missing start falls back to the first day of ``now``'s month; a
    missing due date to the end of the default window, six calendar months
    after the first day of ``now``'s month.
    """
    effective_start = start or timeline_start(now)
    effective_end = due or add_months(timeline_start(now), HORIZON_MONTHS)
    return effective_start, effective_end


def _period(start: date, granularity: Granularity) -> Period:
    if granularity is Granularity.DAY:
        return Period(start, start + timedelta(days=1), start, f"{start:%b} {start.day}")
    if granularity is Granularity.WEEK:
        display_end = start + timedelta(days=6)
        return Period(start, start + timedelta(days=7), display_end,
                      f"{start:%b} {start.day} - {display_end.day}")
    last_day = calendar.monthrange(start.year, start.month)[1]
    return Period(start, add_months(start, 1), start.replace(day=last_day), f"{start:%b %Y}")


def generate_periods(granularity: Granularity, now: date) -> list[Period]:
    """Consecutive periods from the first of ``now``'s month, six months out (exclusive)."""
    start = timeline_start(now)
    horizon = add_months(start, HORIZON_MONTHS)
    periods = []
    cursor = start
    while cursor < horizon:
        period = _period(cursor, granularity)
        periods.append(period)
        cursor = period.bound
    return periods


def overlaps(assignment: Assignment, period: Period) -> bool:
    # closed interval on both ends
    return assignment.start <= period.bound and assignment.end >= period.start


# ═════════════════════════════════════════════════════════════════════════════
# Grid
# ═════════════════════════════════════════════════════════════════════════════


def _projects_from(assignments: Iterable[Assignment]) -> list[TimelineProject]:
    seen: dict[str, TimelineProject] = {}
    for a in assignments:
        if a.project_id not in seen:
            seen[a.project_id] = TimelineProject(a.project_id, a.project_name)
    return list(seen.values())


def _entry(assignment: Assignment, color: str) -> TimelineEntry:
    if assignment.milestone_id:
        label = assignment.milestone_name or assignment.project_name
        title = f"{assignment.project_name} - {assignment.milestone_name}"
    else:
        label = assignment.project_name
        title = assignment.project_name
    return TimelineEntry(assignment.project_id, assignment.milestone_id, label, title, color)


def compute_grid(
    assignments: Sequence[Assignment],
    people: Sequence[TimelinePerson],
    granularity: Granularity,
    now: date,
    filter_team: str | None = None,
    filter_project: str | None = None,
    projects: Sequence[TimelineProject] | None = None,
) -> TimelineGrid:
    """Build the occupancy grid.

    Args:
        assignments: Resource assignments, in the order cells should list them.
        people: Row candidates, in row order.
        granularity: Period size.
        now: Reference date; periods start at the first of its month.
        filter_team: Keep only people whose team matches.
        filter_project: Keep only assignments (and legend entries) of this project.
        projects: Legend order. Defaults to first appearance in ``assignments``.

    Returns:
        TimelineGrid. Concurrent assignments in one cell are all kept.
    """
    granularity = parse_granularity(granularity)
    periods = generate_periods(granularity, now)
    start = timeline_start(now)

    if projects is None:
        projects = _projects_from(assignments)
    legend_projects = [p for p in projects if not filter_project or p.id == filter_project]
    colors = {p.id: PALETTE[i % len(PALETTE)] for i, p in enumerate(legend_projects)}

    active = [a for a in assignments if not filter_project or a.project_id == filter_project]
    rows_people = [p for p in people if not filter_team or p.team == filter_team]

    by_person: dict[str, list[Assignment]] = {}
    for a in active:
        by_person.setdefault(a.person_email, []).append(a)

    rows = []
    for person in rows_people:
        mine = by_person.get(person.email, [])
        cells = []
        for period in periods:
            cells.append([
                _entry(a, colors.get(a.project_id, PALETTE[0]))
                for a in mine
                if overlaps(a, period)
            ])
        rows.append(TimelineRow(person, cells))

    legend = [{"project_id": p.id, "name": p.name, "color": colors[p.id]} for p in legend_projects]
    return TimelineGrid(
        granularity=granularity,
        start=start,
        end=add_months(start, HORIZON_MONTHS),
        periods=periods,
        rows=rows,
        legend=legend,
    )
