"""Course model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from backend.core.clock import utcnow
from backend.database import Base


class Course(Base):
    """Represents a course students can leave feedback on."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(20), unique=True, index=True, nullable=False)  # upper-case alphanumeric
    description = Column(String(500))
    instructor = Column(String(100))
    credits = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
