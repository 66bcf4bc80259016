"""User model definitions."""

from sqlalchemy import Column, Integer, String
from frontdesk.database import Base

PATIENT_ROLE = "patient"
STAFF_ROLE = "staff"
ADMIN_ROLE = "admin"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String)
    role = Column(String)  # patient/staff/admin
