"""SQLAlchemy ORM Models for the Student Dashboard schema"""
from student_dashboard.models.user import User, UserRole
from student_dashboard.models.course import Course
from student_dashboard.models.assignment import Assignment, SubmissionType
from student_dashboard.models.enrollment import Enrollment

__all__ = [
    "User",
    "UserRole",
    "Course",
    "Assignment",
    "SubmissionType",
    "Enrollment",
]
