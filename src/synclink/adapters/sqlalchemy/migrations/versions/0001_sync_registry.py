"""Create the sync registry tables.

Revision ID: 0001_sync_registry
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_sync_registry"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    if not _has_table("_sync_run"):
        op.create_table(
            "_sync_run",
            sa.Column("run_id", sa.Integer(), nullable=False),
            sa.Column("run_uuid", sa.String(36), nullable=False),
            sa.Column("run_command", sa.Text(), nullable=False),
            sa.Column("run_arguments_json", sa.Text(), nullable=False),
            sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("exit_status", sa.Integer(), nullable=True),
            sa.Column("error_count", sa.Integer(), nullable=True),
            sa.Column("warning_count", sa.Integer(), nullable=True),
            sa.Column("errors_json", sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint("run_id", name="pk__sync_run"),
            sa.UniqueConstraint("run_uuid", name="uq__sync_run_run_uuid"),
        )
    if not _has_table("_sync_provider"):
        op.create_table(
            "_sync_provider",
            sa.Column("provider_id", sa.Integer(), nullable=False),
            sa.Column("provider_hash", sa.String(64), nullable=False),
            sa.Column("provider_class", sa.Text(), nullable=False),
            sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("provider_id", name="pk__sync_provider"),
            sa.UniqueConstraint("provider_hash", name="uq__sync_provider_provider_hash"),
        )
    if not _has_table("_sync_entity_type"):
        op.create_table(
            "_sync_entity_type",
            sa.Column("entity_type_id", sa.Integer(), nullable=False),
            sa.Column("entity_type_class", sa.Text(), nullable=False),
            sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("entity_type_id", name="pk__sync_entity_type"),
            sa.UniqueConstraint(
                "entity_type_class", name="uq__sync_entity_type_entity_type_class"
            ),
        )


def downgrade() -> None:
    op.drop_table("_sync_entity_type")
    op.drop_table("_sync_provider")
    op.drop_table("_sync_run")
