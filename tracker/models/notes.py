"""
Project Tracker
Markdown notes attached to projects, milestones and stakeholder links.

Each note variant is deleted together with its owner (ON DELETE CASCADE);
otherwise notes are created, edited and removed independently.
"""

from tracker.models import db, iso, new_id, utcnow


class _NoteMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(300), nullable=False)
    body = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class ProjectNote(_NoteMixin, db.Model):
    __tablename__ = "project_notes"

    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    def to_dict(self) -> dict:
        return {**self._base_dict(), "project_id": self.project_id}

    def __repr__(self):
        return f"<ProjectNote {self.id}: {self.title}>"


class MilestoneNote(_NoteMixin, db.Model):
    __tablename__ = "milestone_notes"

    milestone_id = db.Column(
        db.String(36), db.ForeignKey("milestones.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    def to_dict(self) -> dict:
        return {**self._base_dict(), "milestone_id": self.milestone_id}

    def __repr__(self):
        return f"<MilestoneNote {self.id}: {self.title}>"


class StakeholderNote(_NoteMixin, db.Model):
    """Note about one stakeholder's involvement in one project."""

    __tablename__ = "stakeholder_notes"

    project_id = db.Column(db.String(36), nullable=False)
    stakeholder_email = db.Column(db.String(255), nullable=False)

    __table_args__ = (
        db.ForeignKeyConstraint(
            ["project_id", "stakeholder_email"],
            ["project_stakeholders.project_id", "project_stakeholders.stakeholder_email"],
            ondelete="CASCADE",
        ),
        db.Index("ix_stakeholder_notes_owner", "project_id", "stakeholder_email"),
    )

    def to_dict(self) -> dict:
        return {
            **self._base_dict(),
            "project_id": self.project_id,
            "stakeholder_email": self.stakeholder_email,
        }

    def __repr__(self):
        return f"<StakeholderNote {self.id}: {self.title}>"
