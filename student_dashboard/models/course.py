"""Course model - Catalog entry with schedule and seat capacity"""
import uuid
from typing import List, Optional

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON, ForeignKey, CheckConstraint, Index, Uuid

from student_dashboard.database import Base
from student_dashboard.models.user import utcnow


class Course(Base):
    """Course offering; soft-deleted through is_active so enrollments keep their reference"""

    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_code = Column(String(20), unique=True, nullable=False)
    course_name = Column(String(200), nullable=False)
    instructor = Column(String(100), nullable=False)
    instructor_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    department = Column(String(100), nullable=False)
    semester = Column(
        Integer,
        CheckConstraint("semester >= 1 AND semester <= 8", name="ck_courses_semester"),
        nullable=False,
    )
    credits = Column(
        Integer,
        CheckConstraint("credits >= 1 AND credits <= 5", name="ck_courses_credits"),
        nullable=False,
    )

    schedule_day = Column(String(50), nullable=False)
    schedule_time = Column(String(50), nullable=False)
    schedule_room = Column(String(50), nullable=False)

    description = Column(String(1000), nullable=True)
    syllabus = Column(Text, nullable=True)
    prerequisites = Column(JSON, nullable=False, default=list)
    capacity = Column(
        Integer,
        CheckConstraint("capacity >= 1", name="ck_courses_capacity"),
        nullable=False,
        default=30,
    )

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Indexes for performance
    __table_args__ = (
        Index("idx_courses_active_semester", "is_active", "semester"),
        Index("idx_courses_instructor", "instructor_id"),
    )

    def to_dict(self, enrolled_count: int, roster: Optional[List[dict]] = None) -> dict:
        """
        Serialize the course with its derived seat counts.

        Args:
            enrolled_count: Current roster size (from the enrollments relation)
            roster: Optional list of enrolled students to embed

        Returns:
            Course dictionary for API responses
        """
        data = {
            "id": str(self.id),
            "course_code": self.course_code,
            "course_name": self.course_name,
            "instructor": self.instructor,
            "instructor_id": str(self.instructor_id) if self.instructor_id else None,
            "department": self.department,
            "semester": self.semester,
            "credits": self.credits,
            "schedule": {
                "day": self.schedule_day,
                "time": self.schedule_time,
                "room": self.schedule_room,
            },
            "description": self.description,
            "syllabus": self.syllabus,
            "prerequisites": list(self.prerequisites or []),
            "capacity": self.capacity,
            "enrolled_count": enrolled_count,
            "available_seats": max(self.capacity - enrolled_count, 0),
            "is_active": self.is_active,
        }
        if roster is not None:
            data["enrolled_students"] = roster
        return data

    def __repr__(self):
        return f"<Course(id={self.id}, code={self.course_code}, capacity={self.capacity})>"
