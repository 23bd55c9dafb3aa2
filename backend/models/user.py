"""User model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, String

from backend.core.clock import utcnow
from backend.database import Base


class User(Base):
    """Represents a student or administrator account."""
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_role_created", "role", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)  # stored lower-case
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")  # student/admin
    phone = Column(String(10))
    date_of_birth = Column(Date)
    address = Column(String(200))
    profile_picture_url = Column(String)
    is_blocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
