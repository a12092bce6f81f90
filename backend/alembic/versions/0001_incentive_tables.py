"""Incentive reports, hours ledger, balance snapshots and audit log.

Revision ID: 0001
Revises:
Create Date: 2025-03-01
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "incentive_report",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("establishment_id", sa.String(length=64), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("status", sa.String(length=50), server_default="draft", nullable=False),
        sa.Column("value_per_captacion", sa.Float(), nullable=False),
        sa.Column("value_per_mecanizacion", sa.Float(), nullable=False),
        sa.Column("value_per_extra_hour", sa.Float(), nullable=False),
        sa.Column("value_responsibility_bonus", sa.Float(), nullable=True),
        sa.Column("supervisor_notes", sa.String(), nullable=True),
        sa.Column("manager_notes", sa.String(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("items_json", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.UniqueConstraint("establishment_id", "month", name="uq_incentive_report_period"),
    )
    op.create_index("ix_incentive_report_establishment_id", "incentive_report", ["establishment_id"])
    op.create_index("ix_incentive_report_status", "incentive_report", ["status"])

    op.create_table(
        "hours_ledger_entry",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("entry_type", sa.String(length=50), nullable=False),
        sa.Column("amount_hours", sa.Float(), nullable=False),
        sa.Column("reason", sa.String(length=1000), nullable=False),
        sa.Column("source_type", sa.String(length=50), nullable=False),
        sa.Column("source_id", sa.String(length=255), nullable=False),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("source_type", "source_id", "entry_type", name="uq_hours_ledger_idempotency"),
    )
    op.create_index("ix_hours_ledger_entry_employee_id", "hours_ledger_entry", ["employee_id"])

    op.create_table(
        "hours_balance_snapshot",
        sa.Column("employee_id", sa.String(length=64), primary_key=True),
        sa.Column("balance_hours", sa.Float(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("establishment_id", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_log_establishment_id", "audit_log", ["establishment_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("hours_balance_snapshot")
    op.drop_table("hours_ledger_entry")
    op.drop_table("incentive_report")
