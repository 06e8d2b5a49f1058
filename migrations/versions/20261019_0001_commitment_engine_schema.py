"""commitment engine schema: users, deals, commitments and status change outbox

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("idx_users_role", "users", ["role"])

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("distributor_id", sa.Integer(), nullable=False),
        sa.Column("sizes", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("deal_month", sa.String(length=20), nullable=True),
        sa.Column("deal_year", sa.Integer(), nullable=True),
        sa.Column("commitment_starts_at", sa.DateTime(), nullable=True),
        sa.Column("commitment_ends_at", sa.DateTime(), nullable=True),
        sa.Column("deal_ends_at", sa.DateTime(), nullable=True),
        sa.Column("total_sold", sa.Integer(), nullable=False),
        sa.Column("total_revenue", sa.Float(), nullable=False),
        sa.Column("bulk_action", sa.Boolean(), nullable=False),
        sa.Column("bulk_status", sa.String(length=20), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["distributor_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_deals_distributor_status", "deals", ["distributor_id", "status"])
    op.create_index("idx_deals_month_year", "deals", ["deal_month", "deal_year"])

    op.create_table(
        "deal_decision_changes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("deal_id", sa.Integer(), nullable=False),
        sa.Column("previous_status", sa.String(length=20), nullable=False),
        sa.Column("new_status", sa.String(length=20), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("changed_by_id", sa.Integer(), nullable=False),
        sa.Column("changed_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["changed_by_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_deal_decision_changes_deal", "deal_decision_changes", ["deal_id", "changed_at"])

    op.create_table(
        "commitments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("deal_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("size_commitments", sa.JSON(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("distributor_response", sa.Text(), nullable=False),
        sa.Column("modified_by_distributor", sa.Boolean(), nullable=False),
        sa.Column("modified_size_commitments", sa.JSON(), nullable=True),
        sa.Column("modified_quantity", sa.Integer(), nullable=True),
        sa.Column("modified_total_price", sa.Float(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_commitments_deal_status", "commitments", ["deal_id", "status"])
    op.create_index("idx_commitments_user", "commitments", ["user_id"])

    op.create_table(
        "commitment_status_changes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commitment_id", sa.Integer(), nullable=False),
        sa.Column("deal_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("deal_name", sa.String(length=255), nullable=False),
        sa.Column("distributor_name", sa.String(length=255), nullable=False),
        sa.Column("distributor_email", sa.String(length=320), nullable=False),
        sa.Column("previous_status", sa.String(length=20), nullable=False),
        sa.Column("new_status", sa.String(length=20), nullable=False),
        sa.Column("distributor_response", sa.Text(), nullable=False),
        sa.Column("commitment_details", sa.JSON(), nullable=False),
        sa.Column("processed_by", sa.String(length=20), nullable=False),
        sa.Column("processed_by_id", sa.Integer(), nullable=False),
        sa.Column("processed_for_email", sa.Boolean(), nullable=False),
        sa.Column("email_sent_at", sa.DateTime(), nullable=True),
        sa.Column("email_claim_token", sa.String(length=64), nullable=True),
        sa.Column("email_claimed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["commitment_id"], ["commitments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["processed_by_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_status_changes_user_created", "commitment_status_changes", ["user_id", "created_at"]
    )
    op.create_index(
        "idx_status_changes_processed_created",
        "commitment_status_changes",
        ["processed_for_email", "created_at"],
    )
    op.create_index(
        "ix_commitment_status_changes_email_claim_token",
        "commitment_status_changes",
        ["email_claim_token"],
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("resource", sa.String(length=50), nullable=True),
        sa.Column("resource_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_activity_logs_action_created", "activity_logs", ["action", "created_at"])
    op.create_index("idx_activity_logs_resource", "activity_logs", ["resource", "resource_id"])
    op.create_index("idx_activity_logs_type_severity", "activity_logs", ["type", "severity"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("sub_type", sa.String(length=60), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_id", sa.Integer(), nullable=True),
        sa.Column("related_model", sa.String(length=40), nullable=True),
        sa.Column("priority", sa.String(length=10), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notifications_recipient_read", "notifications", ["recipient_id", "is_read"])


def downgrade() -> None:
    op.drop_index("idx_notifications_recipient_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("idx_activity_logs_type_severity", table_name="activity_logs")
    op.drop_index("idx_activity_logs_resource", table_name="activity_logs")
    op.drop_index("idx_activity_logs_action_created", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_commitment_status_changes_email_claim_token", table_name="commitment_status_changes")
    op.drop_index("idx_status_changes_processed_created", table_name="commitment_status_changes")
    op.drop_index("idx_status_changes_user_created", table_name="commitment_status_changes")
    op.drop_table("commitment_status_changes")
    op.drop_index("idx_commitments_user", table_name="commitments")
    op.drop_index("idx_commitments_deal_status", table_name="commitments")
    op.drop_table("commitments")
    op.drop_index("idx_deal_decision_changes_deal", table_name="deal_decision_changes")
    op.drop_table("deal_decision_changes")
    op.drop_index("idx_deals_month_year", table_name="deals")
    op.drop_index("idx_deals_distributor_status", table_name="deals")
    op.drop_table("deals")
    op.drop_index("idx_users_role", table_name="users")
    op.drop_table("users")
