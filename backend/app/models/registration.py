"""
Registration model: one participant's signup for one event.

Key design decisions:
- Unique constraint on (event_id, national_id): a person registers once per event
- `validation_code` is unique and indexed; it is the check-in lookup key
- Payment status is a plain string column guarded by a CHECK constraint
"""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, func,
)

from app.db.base import Base, TimestampMixin

PAYMENT_STATUSES = ("pending", "paid", "cancelled", "expired")


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    national_id = Column(String(14), nullable=False)
    address = Column(String(500), nullable=False)
    phone = Column(String(20), nullable=False)
    injury_notes = Column(Text, nullable=True)
    treatment_notes = Column(Text, nullable=True)
    payment_status = Column(String(20), nullable=False, default="pending")
    paid_amount = Column(Numeric(10, 2), nullable=True)
    registration_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    payment_date = Column(DateTime(timezone=True), nullable=True)
    validation_code = Column(String(32), nullable=False, unique=True, index=True)
    qr_payload = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("event_id", "national_id", name="uq_registration_event_national_id"),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'cancelled', 'expired')",
            name="check_registration_payment_status",
        ),
        Index("ix_registrations_event_status", "event_id", "payment_status"),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, event={self.event_id}, status={self.payment_status})>"
