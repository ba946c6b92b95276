"""
Event model: one outreach day (or span of days) that participants register for.

Key design decisions:
- `occupied_slots` is administrator-maintained; intake does not touch it, so
  `occupied_slots <= total_slots` is not a database constraint
- Index on `event_date` for the public listing, which is ordered by start date
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Index, CheckConstraint

from app.db.base import Base, TimestampMixin

EVENT_STATUSES = ("active", "inactive")


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False)
    event_end_date = Column(DateTime(timezone=True), nullable=True)
    total_slots = Column(Integer, nullable=False)
    occupied_slots = Column(Integer, nullable=False, default=0)
    fee = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("total_slots > 0", name="check_event_total_slots_positive"),
        CheckConstraint("occupied_slots >= 0", name="check_event_occupied_slots_non_negative"),
        CheckConstraint("fee >= 0", name="check_event_fee_non_negative"),
        CheckConstraint("status IN ('active', 'inactive')", name="check_event_status"),
        Index("ix_events_event_date", "event_date"),
        Index("ix_events_status_date", "status", "event_date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, occupied={self.occupied_slots}/{self.total_slots})>"
