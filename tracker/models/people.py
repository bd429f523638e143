"""
Project Tracker
People and team models.

Models:
    - Person: keyed by email, optional team / manager references
    - Team: keyed by name, optional manager reference

Person.team, Person.manager and Team.manager are plain columns with no
storage-level foreign key: removing a person or team leaves existing
references in place, and read views render them as dangling.
"""

from tracker.models import db, iso, utcnow


# ── Person ───────────────────────────────────────────────────────────────────


class Person(db.Model):
    """A person who can lead, manage, own or work on projects."""

    __tablename__ = "people"

    email = db.Column(db.String(255), primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    team = db.Column(db.String(200), nullable=True, index=True, comment="Team.name (not enforced)")
    manager = db.Column(db.String(255), nullable=True, comment="Person.email (not enforced)")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "name": self.name,
            "team": self.team,
            "manager": self.manager,
            "notes": self.notes,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Person {self.email}>"


# ── Team ─────────────────────────────────────────────────────────────────────


class Team(db.Model):
    """A named group of people."""

    __tablename__ = "teams"

    name = db.Column(db.String(200), primary_key=True)
    description = db.Column(db.Text, nullable=True)
    manager = db.Column(db.String(255), nullable=True, comment="Person.email (not enforced)")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "manager": self.manager,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Team {self.name}>"
