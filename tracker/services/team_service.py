"""Team service layer — team CRUD, search and membership.

Membership is carried by ``Person.team``: adding a member points the
person at the team, removing clears it. Deleting a team leaves members'
``team`` values in place (no cascade).
"""
import logging
from typing import Any

from sqlalchemy import select

from tracker.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from tracker.models import db, utcnow
from tracker.models.people import Person, Team
from tracker.services import integrity
from tracker.services.person_service import SEARCH_LIMIT, get_person
from tracker.utils.helpers import clean_text, require_text

logger = logging.getLogger(__name__)


def create_team(data: dict[str, Any]) -> Team:
    """Create a team. Raises AlreadyExistsError when the name is taken."""
    name = require_text(data.get("name"), "name")
    values = {
        "description": clean_text(data.get("description")),
        "manager": clean_text(data.get("manager")),
    }
    with integrity.atomic():
        if db.session.get(Team, name) is not None:
            raise AlreadyExistsError("Team", "name", name)
        integrity.check_references(values, person_fields=("manager",))
        now = utcnow()
        team = Team(name=name, created_at=now, updated_at=now, **values)
        db.session.add(team)
    logger.info("Team created name=%s", name)
    return team


def get_team(name: str) -> Team:
    team = db.session.get(Team, name)
    if team is None:
        raise NotFoundError("Team", name)
    return team


def update_team(name: str, data: dict[str, Any]) -> Team:
    """Update description/manager. The name is the key and cannot change."""
    if "name" in data and data["name"] != name:
        raise ValidationError("name cannot be changed", details={"name": "immutable"})

    with integrity.atomic():
        team = get_team(name)
        values = {
            field: clean_text(data[field])
            for field in ("description", "manager")
            if field in data
        }
        integrity.check_references(values, person_fields=("manager",))
        for field, value in values.items():
            setattr(team, field, value)
        team.updated_at = utcnow()
    logger.info("Team updated name=%s fields=%s", name, sorted(values))
    return team


def delete_team(name: str) -> None:
    """Delete a team; people and projects referencing it are not touched."""
    with integrity.atomic():
        team = get_team(name)
        db.session.delete(team)
    logger.info("Team deleted name=%s", name)


def list_teams() -> list[Team]:
    return list(db.session.execute(select(Team).order_by(Team.name)).scalars())


def search_teams(query: str, limit: int = SEARCH_LIMIT) -> list[Team]:
    """Case-insensitive substring search on team name, ordered by name."""
    query = (query or "").strip()
    if not query:
        return []
    stmt = (
        select(Team)
        .where(Team.name.icontains(query, autoescape=True))
        .order_by(Team.name)
        .limit(limit)
    )
    return list(db.session.execute(stmt).scalars())


# ── Membership ───────────────────────────────────────────────────────────────


def add_team_member(team_name: str, email: str) -> Person:
    """Point ``email`` at ``team_name``. Both must exist."""
    email = require_text(email, "email")
    with integrity.atomic():
        get_team(team_name)
        person = get_person(email)
        person.team = team_name
        person.updated_at = utcnow()
    logger.info("Team member added team=%s email=%s", team_name, email)
    return person


def remove_team_member(team_name: str, email: str) -> Person:
    """Clear a person's team. Raises NotFoundError if they are not a member."""
    with integrity.atomic():
        person = get_person(email)
        if person.team != team_name:
            raise NotFoundError("Team member", f"{team_name}/{email}")
        person.team = None
        person.updated_at = utcnow()
    logger.info("Team member removed team=%s email=%s", team_name, email)
    return person


def get_team_members(team_name: str) -> list[Person]:
    """People whose team is ``team_name``, ordered by name."""
    get_team(team_name)
    stmt = select(Person).where(Person.team == team_name).order_by(Person.name, Person.email)
    return list(db.session.execute(stmt).scalars())
