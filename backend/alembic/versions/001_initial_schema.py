"""Initial schema: operators, events, registrations, payments, attendances.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Operator accounts
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("event_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_slots", sa.Integer(), nullable=False),
        sa.Column("occupied_slots", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("fee", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("total_slots > 0", name="check_event_total_slots_positive"),
        sa.CheckConstraint("occupied_slots >= 0", name="check_event_occupied_slots_non_negative"),
        sa.CheckConstraint("fee >= 0", name="check_event_fee_non_negative"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="check_event_status"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Public listing: WHERE status = 'active' ORDER BY event_date
    op.create_index("ix_events_event_date", "events", ["event_date"])
    op.create_index("ix_events_status_date", "events", ["status", "event_date"])

    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("national_id", sa.String(14), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("injury_notes", sa.Text(), nullable=True),
        sa.Column("treatment_notes", sa.Text(), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("paid_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validation_code", sa.String(32), nullable=False),
        sa.Column("qr_payload", sa.Text(), nullable=True),
        *_timestamps(),
        # One registration per person per event; intake maps this to "already registered"
        sa.UniqueConstraint("event_id", "national_id", name="uq_registration_event_national_id"),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'cancelled', 'expired')",
            name="check_registration_payment_status",
        ),
    )
    op.create_index("ix_registrations_id", "registrations", ["id"])
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    # Check-in looks registrations up by code on every scan
    op.create_index("ix_registrations_validation_code", "registrations", ["validation_code"], unique=True)
    op.create_index("ix_registrations_event_status", "registrations", ["event_id", "payment_status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("registration_id", sa.Integer(), sa.ForeignKey("registrations.id"), nullable=False),
        sa.Column("provider_payment_id", sa.String(100), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("method", sa.String(30), nullable=True),
        sa.Column("provider_payload", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_registration_id", "payments", ["registration_id"])
    op.create_index("ix_payments_provider_payment_id", "payments", ["provider_payment_id"])

    op.create_table(
        "attendances",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("registration_id", sa.Integer(), sa.ForeignKey("registrations.id"), nullable=False),
        sa.Column("validation_code", sa.String(32), nullable=False),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("validated_by", sa.String(100), nullable=False),
        sa.Column("validating_device", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Write-time guard for "one check-in per registration"
        sa.UniqueConstraint("registration_id", name="uq_attendance_registration"),
    )
    op.create_index("ix_attendances_id", "attendances", ["id"])
    op.create_index("ix_attendances_registration_id", "attendances", ["registration_id"])


def downgrade() -> None:
    op.drop_table("attendances")
    op.drop_table("payments")
    op.drop_table("registrations")
    op.drop_table("events")
    op.drop_table("users")
