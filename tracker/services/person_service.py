"""Person service layer — people CRUD, search and manager rules.

Transaction policy: public mutations run inside ``integrity.atomic()`` and
commit on success. Reads never commit.

Provides:
- create/get/update/delete/list for Person (keyed by email)
- search_people: case-insensitive substring match on name, ordered by name
- Self-as-manager rejection (ConflictError); manager chains are not checked
"""
import logging
from typing import Any

from sqlalchemy import select

from tracker.core.exceptions import AlreadyExistsError, ConflictError, NotFoundError, ValidationError
from tracker.models import db, utcnow
from tracker.models.people import Person
from tracker.services import integrity
from tracker.utils.helpers import clean_text, require_text

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20

_PERSON_REFS = ("manager",)
_TEAM_REFS = ("team",)


def _check_manager(email: str, manager: str | None) -> None:
    if manager and manager == email:
        raise ConflictError(f"{email} cannot be their own manager")


def create_person(data: dict[str, Any]) -> Person:
    """Create a person.

    Args:
        data: ``email`` and ``name`` are required; ``team``, ``manager`` and
            ``notes`` are optional.

    Returns:
        The new Person.

    Raises:
        ValidationError: email or name missing.
        AlreadyExistsError: a person with this email exists.
        ConflictError: manager is the person themselves.
        DanglingReferenceError: team or manager does not exist.
    """
    email = require_text(data.get("email"), "email")
    name = require_text(data.get("name"), "name")
    values = {
        "team": clean_text(data.get("team")),
        "manager": clean_text(data.get("manager")),
        "notes": clean_text(data.get("notes")),
    }

    with integrity.atomic():
        if db.session.get(Person, email) is not None:
            raise AlreadyExistsError("Person", "email", email)
        _check_manager(email, values["manager"])
        integrity.check_references(values, _PERSON_REFS, _TEAM_REFS)

        now = utcnow()
        person = Person(email=email, name=name, created_at=now, updated_at=now, **values)
        db.session.add(person)

    logger.info("Person created email=%s", email, extra={"person_email": email})
    return person


def get_person(email: str) -> Person:
    """Fetch a person by exact (case-sensitive) email.

    Raises:
        NotFoundError: no such person.
    """
    person = db.session.get(Person, email)
    if person is None:
        raise NotFoundError("Person", email)
    return person


def update_person(email: str, data: dict[str, Any]) -> Person:
    """Update the supplied fields of a person and re-stamp ``updated_at``.

    The email key cannot change; ``created_at`` is never touched.
    """
    if "email" in data and data["email"] != email:
        raise ValidationError("email cannot be changed", details={"email": "immutable"})

    with integrity.atomic():
        person = get_person(email)
        values: dict[str, Any] = {}
        if "name" in data:
            values["name"] = require_text(data["name"], "name")
        for field in ("team", "manager", "notes"):
            if field in data:
                values[field] = clean_text(data[field])

        if "manager" in values:
            _check_manager(email, values["manager"])
        integrity.check_references(values, _PERSON_REFS, _TEAM_REFS)

        for field, value in values.items():
            setattr(person, field, value)
        person.updated_at = utcnow()

    logger.info("Person updated email=%s fields=%s", email, sorted(values), extra={"person_email": email})
    return person


def delete_person(email: str) -> None:
    """Delete a person. References held by other records are left dangling."""
    with integrity.atomic():
        person = get_person(email)
        db.session.delete(person)
    logger.info("Person deleted email=%s", email, extra={"person_email": email})


def list_people(team: str | None = None) -> list[Person]:
    """List people ordered by name (then email), optionally only one team's."""
    stmt = select(Person)
    if team:
        stmt = stmt.where(Person.team == team)
    stmt = stmt.order_by(Person.name, Person.email)
    return list(db.session.execute(stmt).scalars())


def search_people(query: str, limit: int = SEARCH_LIMIT) -> list[Person]:
    """Case-insensitive substring search on name for autocomplete.

    Wildcard characters in ``query`` match literally. An empty query
    returns no rows.
    """
    query = (query or "").strip()
    if not query:
        return []
    stmt = (
        select(Person)
        .where(Person.name.icontains(query, autoescape=True))
        .order_by(Person.name, Person.email)
        .limit(limit)
    )
    return list(db.session.execute(stmt).scalars())
