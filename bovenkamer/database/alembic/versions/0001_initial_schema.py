"""Create form, participant, outcome and ledger tables

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-12-02 19:40:00
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _json() -> sa.types.TypeEngine:
    return sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "participant",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("registration_status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_participant"),
    )

    op.create_table(
        "form_definition",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("active_version", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_form_definition"),
        sa.UniqueConstraint("key", name="uq_form_definition_key"),
    )

    op.create_table(
        "form_section",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("form_id", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_form_section"),
        sa.ForeignKeyConstraint(
            ["form_id"], ["form_definition.id"],
            name="fk_form_section_form_id_form_definition",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_form_section_form_version", "form_section", ["form_id", "version"])

    op.create_table(
        "form_field",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("section_id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("field_type", sa.String(length=32), nullable=False),
        sa.Column("options", _json(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_form_field"),
        sa.ForeignKeyConstraint(
            ["section_id"], ["form_section.id"],
            name="fk_form_field_section_id_form_section",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("section_id", "key", name="uq_form_field_section_key"),
    )

    op.create_table(
        "form_response",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("field_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("number", sa.Float(), nullable=True),
        sa.Column("boolean", sa.Boolean(), nullable=True),
        sa.Column("participant_id", sa.Integer(), nullable=True),
        sa.Column("json_value", _json(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_form_response"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["participant.id"],
            name="fk_form_response_user_id_participant",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["field_id"], ["form_field.id"],
            name="fk_form_response_field_id_form_field",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["participant_id"], ["participant.id"],
            name="fk_form_response_participant_id_participant",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_form_response_user_field", "form_response", ["user_id", "field_id"])

    op.create_table(
        "prediction_outcome",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("results", _json(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_prediction_outcome"),
        sa.ForeignKeyConstraint(
            ["updated_by"], ["participant.id"],
            name="fk_prediction_outcome_updated_by_participant",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint("id = 1", name="ck_prediction_outcome_singleton"),
    )

    op.create_table(
        "points_ledger",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_points_ledger"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["participant.id"],
            name="fk_points_ledger_user_id_participant",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_points_ledger_user_source", "points_ledger", ["user_id", "source"])
    op.create_index(
        "uq_points_ledger_prediction",
        "points_ledger",
        ["user_id", "source"],
        unique=True,
        sqlite_where=sa.text("source = 'prediction'"),
        postgresql_where=sa.text("source = 'prediction'"),
    )


def downgrade() -> None:
    op.drop_index("uq_points_ledger_prediction", table_name="points_ledger")
    op.drop_index("ix_points_ledger_user_source", table_name="points_ledger")
    op.drop_table("points_ledger")
    op.drop_table("prediction_outcome")
    op.drop_index("ix_form_response_user_field", table_name="form_response")
    op.drop_table("form_response")
    op.drop_table("form_field")
    op.drop_index("ix_form_section_form_version", table_name="form_section")
    op.drop_table("form_section")
    op.drop_table("form_definition")
    op.drop_table("participant")
