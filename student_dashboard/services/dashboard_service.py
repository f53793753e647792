"""
Student Dashboard Aggregator

Builds the landing-page summary for a student from their enrollments and the
assignments of the courses they take.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.models.assignment import Assignment
from student_dashboard.models.course import Course
from student_dashboard.models.user import User
from student_dashboard.services.enrollment_service import EnrollmentCoordinator, get_enrollment_coordinator

logger = logging.getLogger(__name__)


class DashboardService:
    """Aggregates enrollment and coursework data for one student"""

    # Each enrolled course meets twice a week
    CLASSES_PER_COURSE_PER_WEEK = 2
    RECENT_COURSES_LIMIT = 3
    DEADLINES_LIMIT = 5

    def __init__(self, coordinator: Optional[EnrollmentCoordinator] = None):
        self.coordinator = coordinator or get_enrollment_coordinator()

    async def build(self, session: AsyncSession, user: User, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Build dashboard data for a student.

        Args:
            session: Database session
            user: The student
            now: Reference time for "upcoming" (defaults to current UTC time)

        Returns:
            Dict with enrolled_courses, upcoming_classes, pending_assignments,
            recent_courses, upcoming_deadlines and a user summary
        """
        now = now or datetime.now(timezone.utc)
        courses = await self.coordinator.enrolled_courses(session, user.id, active_only=True)
        course_ids = [course.id for course in courses]

        pending = 0
        deadlines = []
        if course_ids:
            upcoming = (
                Assignment.course_id.in_(course_ids),
                Assignment.due_date.is_not(None),
                Assignment.due_date > now,
            )
            pending = (
                await session.execute(select(func.count(Assignment.id)).where(*upcoming))
            ).scalar_one()

            rows = await session.execute(
                select(Assignment, Course.course_code)
                .join(Course, Course.id == Assignment.course_id)
                .where(*upcoming)
                .order_by(Assignment.due_date)
                .limit(self.DEADLINES_LIMIT)
            )
            deadlines = [
                {
                    "title": assignment.title,
                    "course": course_code,
                    "due_date": assignment.due_date.isoformat(),
                    "type": "assignment",
                }
                for assignment, course_code in rows.all()
            ]

        return {
            "enrolled_courses": len(courses),
            "upcoming_classes": len(courses) * self.CLASSES_PER_COURSE_PER_WEEK,
            "pending_assignments": pending,
            "recent_courses": [
                {
                    "course_name": course.course_name,
                    "course_code": course.course_code,
                    "instructor": course.instructor,
                }
                for course in courses[: self.RECENT_COURSES_LIMIT]
            ],
            "upcoming_deadlines": deadlines,
            "user": {
                "name": user.name,
                "email": user.email,
                "role": user.role.value,
                "student_id": user.student_id,
                "department": user.department,
                "semester": user.semester,
                "profile_image": user.profile_image,
            },
        }


# Global service instance
_dashboard_service: Optional[DashboardService] = None


def get_dashboard_service() -> DashboardService:
    """Get or create global DashboardService instance."""
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService()
    return _dashboard_service
