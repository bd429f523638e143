"""initial_tracker_schema

Creates the project tracker tables:
  - people, teams                      — directory (references not FK-enforced)
  - projects, milestones               — work items; milestones cascade with project
  - project_stakeholders               — (project, person) interest links
  - project_resources, milestone_resources — (owner, person) work assignments
  - project_notes, milestone_notes, stakeholder_notes — markdown notes

Tables are created only when missing so the revision can run against a
database that already received them via db.create_all().

Revision ID: a1c3e5f70b21
Revises:
Create Date: 2026-10-18 09:12:40.118203
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = 'a1c3e5f70b21'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _note_columns():
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        *_timestamps(),
    ]


def upgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())

    # ── Directory ─────────────────────────────────────────────────────────
    if "people" not in existing:
        op.create_table(
            "people",
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("team", sa.String(length=200), nullable=True, comment="Team.name (not enforced)"),
            sa.Column("manager", sa.String(length=255), nullable=True, comment="Person.email (not enforced)"),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("email"),
        )
        op.create_index("ix_people_name", "people", ["name"])
        op.create_index("ix_people_team", "people", ["team"])

    if "teams" not in existing:
        op.create_table(
            "teams",
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("manager", sa.String(length=255), nullable=True, comment="Person.email (not enforced)"),
            *_timestamps(),
            sa.PrimaryKeyConstraint("name"),
        )

    # ── Projects & milestones ─────────────────────────────────────────────
    if "projects" not in existing:
        op.create_table(
            "projects",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("type", sa.String(length=50), nullable=False,
                      comment="Personal | Team | Company (configurable, not enforced)"),
            sa.Column("requirements_owner", sa.String(length=255), nullable=True),
            sa.Column("technical_lead", sa.String(length=255), nullable=True),
            sa.Column("manager", sa.String(length=255), nullable=True),
            sa.Column("team", sa.String(length=200), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("due_date", sa.Date(), nullable=True),
            sa.Column("jira_initiative", sa.String(length=100), nullable=True),
            sa.Column("milestone_counter", sa.Integer(), nullable=False,
                      comment="Highest milestone number ever assigned; numbers are not reused"),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_projects_name", "projects", ["name"])
        op.create_index("ix_projects_team", "projects", ["team"])

    if "milestones" not in existing:
        op.create_table(
            "milestones",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("project_id", sa.String(length=36), nullable=False),
            sa.Column("number", sa.Integer(), nullable=False, comment="Display order within project"),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("technical_lead", sa.String(length=255), nullable=True),
            sa.Column("design_doc_url", sa.String(length=500), nullable=True),
            sa.Column("due_date", sa.Date(), nullable=True),
            sa.Column("jira_epic", sa.String(length=100), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("project_id", "number", name="uq_milestones_project_number"),
        )
        op.create_index("ix_milestones_project_id", "milestones", ["project_id"])
        op.create_index("ix_milestones_due_date", "milestones", ["due_date"])

    # ── Links ─────────────────────────────────────────────────────────────
    if "project_stakeholders" not in existing:
        op.create_table(
            "project_stakeholders",
            sa.Column("project_id", sa.String(length=36), nullable=False),
            sa.Column("stakeholder_email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("project_id", "stakeholder_email"),
        )

    if "project_resources" not in existing:
        op.create_table(
            "project_resources",
            sa.Column("project_id", sa.String(length=36), nullable=False),
            sa.Column("person_email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("project_id", "person_email"),
        )
        op.create_index("ix_project_resources_person_email", "project_resources", ["person_email"])

    if "milestone_resources" not in existing:
        op.create_table(
            "milestone_resources",
            sa.Column("milestone_id", sa.String(length=36), nullable=False),
            sa.Column("person_email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["milestone_id"], ["milestones.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("milestone_id", "person_email"),
        )
        op.create_index("ix_milestone_resources_person_email", "milestone_resources", ["person_email"])

    # ── Notes ─────────────────────────────────────────────────────────────
    if "project_notes" not in existing:
        op.create_table(
            "project_notes",
            *_note_columns(),
            sa.Column("project_id", sa.String(length=36), nullable=False),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_project_notes_project_id", "project_notes", ["project_id"])

    if "milestone_notes" not in existing:
        op.create_table(
            "milestone_notes",
            *_note_columns(),
            sa.Column("milestone_id", sa.String(length=36), nullable=False),
            sa.ForeignKeyConstraint(["milestone_id"], ["milestones.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_milestone_notes_milestone_id", "milestone_notes", ["milestone_id"])

    if "stakeholder_notes" not in existing:
        op.create_table(
            "stakeholder_notes",
            *_note_columns(),
            sa.Column("project_id", sa.String(length=36), nullable=False),
            sa.Column("stakeholder_email", sa.String(length=255), nullable=False),
            sa.ForeignKeyConstraint(
                ["project_id", "stakeholder_email"],
                ["project_stakeholders.project_id", "project_stakeholders.stakeholder_email"],
                ondelete="CASCADE",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_stakeholder_notes_owner", "stakeholder_notes",
                        ["project_id", "stakeholder_email"])


def downgrade():
    for table in (
        "stakeholder_notes",
        "milestone_notes",
        "project_notes",
        "milestone_resources",
        "project_resources",
        "project_stakeholders",
        "milestones",
        "projects",
        "teams",
        "people",
    ):
        op.drop_table(table)
