"""
Payment model mirroring a payment-gateway charge for a registration.

Gateway integration is not wired up; rows are only read and cascade-deleted.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, JSON

from app.db.base import Base, TimestampMixin


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=False, index=True)
    provider_payment_id = Column(String(100), nullable=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(30), nullable=False, default="pending")
    method = Column(String(30), nullable=True)
    provider_payload = Column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, registration={self.registration_id}, status={self.status})>"
