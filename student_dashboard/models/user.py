"""User model - Students, instructors and administrators"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Enum, CheckConstraint, Index, Uuid

from student_dashboard.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class User(Base):
    """Account with role, student-only fields and an active flag"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.STUDENT,
    )

    # Student-only fields
    student_id = Column(String(50), unique=True, nullable=True)
    department = Column(String(100), nullable=True, default="General")
    semester = Column(
        Integer,
        CheckConstraint("semester >= 1 AND semester <= 8", name="ck_users_semester"),
        nullable=True,
        default=1,
    )

    phone = Column(String(30), nullable=True)
    address = Column(String(255), nullable=True)
    profile_image = Column(String(500), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Indexes for performance
    __table_args__ = (
        Index("idx_users_role", "role"),
        Index("idx_users_created_at", "created_at"),
    )

    def to_dict(self) -> dict:
        """Public representation; never includes the password hash"""
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "student_id": self.student_id,
            "department": self.department,
            "semester": self.semester,
            "phone": self.phone,
            "address": self.address,
            "profile_image": self.profile_image,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
