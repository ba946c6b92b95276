from app.models.user import User
from app.models.event import Event
from app.models.registration import Registration
from app.models.payment import Payment
from app.models.attendance import Attendance

__all__ = ["User", "Event", "Registration", "Payment", "Attendance"]
