"""Feedback model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from backend.core.clock import utcnow
from backend.database import Base


class Feedback(Base):
    """A student's rating and comment for one course."""
    __tablename__ = "feedback"
    __table_args__ = (
        Index("uq_feedback_student_course", "student_id", "course_id", unique=True),
        Index("ix_feedback_course_rating", "course_id", "rating"),
        Index("ix_feedback_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    message = Column(String(1000), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
