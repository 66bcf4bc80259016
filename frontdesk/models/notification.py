"""Notification model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Integer, DateTime, ForeignKey, String, Text
from frontdesk.database import Base


class Notification(Base):
    """A message delivered to a patient's inbox."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    appointment_id = Column(Integer, nullable=True)
