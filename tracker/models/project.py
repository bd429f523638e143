"""
Project Tracker
Project domain models.

Models:
    - Project: tracked unit of work, optionally owned by a team
    - Milestone: numbered checkpoint within a project
    - ProjectStakeholder: (project, person) interest/oversight link
    - ProjectResource: (project, person) work assignment
    - MilestoneResource: (milestone, person) work assignment

Ownership links (milestone → project, stakeholder/resource → owner) are
declared ON DELETE CASCADE. Person references are plain columns; the
integrity layer checks them on write only.
"""

from tracker.models import db, iso, new_id, utcnow
from tracker.utils.helpers import full_url


# ── Project ──────────────────────────────────────────────────────────────────


class Project(db.Model):
    """A tracked project."""

    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(
        db.String(50), nullable=False, default="Personal",
        comment="Personal | Team | Company (configurable, not enforced)",
    )
    requirements_owner = db.Column(db.String(255), nullable=True)
    technical_lead = db.Column(db.String(255), nullable=True)
    manager = db.Column(db.String(255), nullable=True)
    team = db.Column(db.String(200), nullable=True, index=True)
    start_date = db.Column(db.Date, nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    jira_initiative = db.Column(db.String(100), nullable=True)
    milestone_counter = db.Column(
        db.Integer, nullable=False, default=0,
        comment="Highest milestone number ever assigned; numbers are not reused",
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def to_dict(self, settings=None) -> dict:
        """Serialize project fields; ``jira_url`` is derived, never stored."""
        result = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "requirements_owner": self.requirements_owner,
            "technical_lead": self.technical_lead,
            "manager": self.manager,
            "team": self.team,
            "start_date": iso(self.start_date),
            "due_date": iso(self.due_date),
            "jira_initiative": self.jira_initiative,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if settings is not None and self.jira_initiative:
            result["jira_url"] = full_url(settings.jira_url, self.jira_initiative)
        return result

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"


# ── Milestone ────────────────────────────────────────────────────────────────


class Milestone(db.Model):
    """Numbered milestone within a project."""

    __tablename__ = "milestones"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    number = db.Column(db.Integer, nullable=False, comment="Display order within project")
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    technical_lead = db.Column(db.String(255), nullable=True)
    design_doc_url = db.Column(db.String(500), nullable=True)
    due_date = db.Column(db.Date, nullable=True, index=True)
    jira_epic = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        db.UniqueConstraint("project_id", "number", name="uq_milestones_project_number"),
    )

    def to_dict(self, settings=None) -> dict:
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "number": self.number,
            "name": self.name,
            "description": self.description,
            "technical_lead": self.technical_lead,
            "design_doc_url": self.design_doc_url,
            "due_date": iso(self.due_date),
            "jira_epic": self.jira_epic,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if settings is not None and self.jira_epic:
            result["jira_url"] = full_url(settings.jira_url, self.jira_epic)
        return result

    def __repr__(self):
        return f"<Milestone {self.id}: #{self.number} {self.name}>"


# ── Stakeholders & resources ─────────────────────────────────────────────────


class ProjectStakeholder(db.Model):
    """Person with an interest in (not assigned to) a project."""

    __tablename__ = "project_stakeholders"

    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True,
    )
    stakeholder_email = db.Column(db.String(255), primary_key=True)
    role = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "stakeholder_email": self.stakeholder_email,
            "role": self.role,
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<ProjectStakeholder {self.project_id}/{self.stakeholder_email}>"


class ProjectResource(db.Model):
    """Person assigned to work on a project."""

    __tablename__ = "project_resources"

    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True,
    )
    person_email = db.Column(db.String(255), primary_key=True, index=True)
    role = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "person_email": self.person_email,
            "role": self.role,
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<ProjectResource {self.project_id}/{self.person_email}>"


class MilestoneResource(db.Model):
    """Person assigned to work on a milestone."""

    __tablename__ = "milestone_resources"

    milestone_id = db.Column(
        db.String(36), db.ForeignKey("milestones.id", ondelete="CASCADE"), primary_key=True,
    )
    person_email = db.Column(db.String(255), primary_key=True, index=True)
    role = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "milestone_id": self.milestone_id,
            "person_email": self.person_email,
            "role": self.role,
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<MilestoneResource {self.milestone_id}/{self.person_email}>"
