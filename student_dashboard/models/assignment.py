"""Assignment model - Coursework with due dates"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Enum, ForeignKey, Index, Uuid

from student_dashboard.database import Base
from student_dashboard.models.user import utcnow


class SubmissionType(str, enum.Enum):
    FILE = "file"
    TEXT = "text"
    BOTH = "both"


class Assignment(Base):
    """Assignment belonging to a course"""

    __tablename__ = "assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    max_score = Column(Integer, nullable=True)
    submission_type = Column(
        Enum(SubmissionType, name="submission_type", values_callable=lambda types: [t.value for t in types]),
        nullable=False,
        default=SubmissionType.BOTH,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_assignments_course_due", "course_id", "due_date"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "max_score": self.max_score,
            "submission_type": self.submission_type.value,
        }

    def __repr__(self):
        return f"<Assignment(id={self.id}, course={self.course_id}, title={self.title})>"
