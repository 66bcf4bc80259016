"""Appointment model definitions."""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from frontdesk.database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DISAPPROVED = "DISAPPROVED"


class Appointment(Base):
    """Represents a requested or decided clinic appointment."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # not used for conflicts
    scheduled_at = Column(DateTime, nullable=False)
    reason = Column(String, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
