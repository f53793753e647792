"""Enrollment model - The single student/course membership relation"""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Index, Uuid

from student_dashboard.database import Base
from student_dashboard.models.user import utcnow


class Enrollment(Base):
    """
    One row per (student, course) pair.

    A course's roster and a student's enrolled courses are both read from this
    table, so the two views always agree.
    """

    __tablename__ = "enrollments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Indexes for performance
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        Index("idx_enrollments_course", "course_id"),
        Index("idx_enrollments_student", "student_id"),
    )

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student={self.student_id}, course={self.course_id})>"
