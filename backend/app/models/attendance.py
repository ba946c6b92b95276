"""
Attendance model: the on-site check-in of a registration.

Key design decisions:
- Unique constraint on registration_id: at most one check-in per registration,
  enforced at write time in addition to the validation engine's pre-check
- Rows are never updated, so there is no updated_at column
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func

from app.db.base import Base


class Attendance(Base):
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=False, index=True)
    validation_code = Column(String(32), nullable=False)
    validated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    validated_by = Column(String(100), nullable=False)
    validating_device = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("registration_id", name="uq_attendance_registration"),
    )

    def __repr__(self) -> str:
        return f"<Attendance(id={self.id}, registration={self.registration_id}, at={self.validated_at})>"
