"""
Course Record Store

Catalog operations over the courses table. Courses are never physically
removed; delete marks them inactive so enrollment history keeps its reference.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.errors import NotFoundError, ConflictError, ValidationFailedError
from student_dashboard.models.assignment import Assignment
from student_dashboard.models.course import Course
from student_dashboard.models.user import User, UserRole
from student_dashboard.services.access_policy import Identity
from student_dashboard.services.enrollment_service import EnrollmentCoordinator, get_enrollment_coordinator, roster_entry

logger = logging.getLogger(__name__)

# Request field name -> column name for the nested schedule object
SCHEDULE_COLUMNS = {"day": "schedule_day", "time": "schedule_time", "room": "schedule_room"}


def normalize_course_code(code: str) -> str:
    return code.strip().upper()


class CourseService:
    """Create, read, update and soft-delete courses"""

    def __init__(self, coordinator: Optional[EnrollmentCoordinator] = None):
        self.coordinator = coordinator or get_enrollment_coordinator()

    async def get_course(self, session: AsyncSession, course_id: uuid.UUID) -> Course:
        course = await session.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def _code_taken(self, session: AsyncSession, code: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        query = select(Course.id).where(Course.course_code == code)
        if exclude_id is not None:
            query = query.where(Course.id != exclude_id)
        return (await session.execute(query)).first() is not None

    async def _validate_instructor(self, session: AsyncSession, instructor_id: uuid.UUID) -> None:
        user = await session.get(User, instructor_id)
        if user is None or user.role not in (UserRole.INSTRUCTOR, UserRole.ADMIN):
            raise ValidationFailedError("instructor_id must reference an instructor or admin account")

    async def list_active(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """Active courses ordered by semester, then course code"""
        query = (
            select(Course)
            .where(Course.is_active.is_(True))
            .order_by(Course.semester, Course.course_code)
        )
        courses = list((await session.execute(query)).scalars().all())
        counts = await self.coordinator.enrolled_counts(session, [c.id for c in courses])
        return [course.to_dict(counts[course.id]) for course in courses]

    async def list_all(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """Every course including inactive ones, with rosters (admin view)"""
        query = select(Course).order_by(Course.semester, Course.course_code)
        courses = list((await session.execute(query)).scalars().all())
        return [await self.course_detail(session, course) for course in courses]

    async def course_detail(self, session: AsyncSession, course: Course) -> Dict[str, Any]:
        """Course with roster and assignments embedded"""
        roster = await self.coordinator.roster(session, course.id)
        data = course.to_dict(len(roster), roster=[roster_entry(student) for student in roster])

        assignments = await session.execute(
            select(Assignment)
            .where(Assignment.course_id == course.id)
            .order_by(Assignment.due_date, Assignment.title)
        )
        data["assignments"] = [a.to_dict() for a in assignments.scalars().all()]
        return data

    async def create_course(
        self,
        session: AsyncSession,
        identity: Identity,
        fields: Dict[str, Any],
    ) -> Course:
        """
        Create a course.

        Instructors always become the owner of courses they create; admins may
        name an owning instructor through instructor_id.

        Args:
            session: Database session
            identity: Caller (already authorized)
            fields: Validated request fields; schedule and assignments nested

        Returns:
            The new course

        Raises:
            ConflictError: Course code already exists
            ValidationFailedError: instructor_id does not name an instructor
        """
        fields = dict(fields)
        schedule = fields.pop("schedule")
        assignments = fields.pop("assignments", None) or []
        fields["course_code"] = normalize_course_code(fields["course_code"])

        if await self._code_taken(session, fields["course_code"]):
            raise ConflictError("Course with this code already exists")

        if identity.role == UserRole.INSTRUCTOR:
            fields["instructor_id"] = identity.user_id
        elif fields.get("instructor_id") is not None:
            await self._validate_instructor(session, fields["instructor_id"])

        for key, column in SCHEDULE_COLUMNS.items():
            fields[column] = schedule[key]

        course = Course(**fields)
        session.add(course)
        try:
            await session.flush()
        except IntegrityError:
            raise ConflictError("Course with this code already exists")

        for assignment in assignments:
            session.add(Assignment(course_id=course.id, **assignment))

        await session.commit()
        logger.info(f"Course {course.course_code} created by {identity.role.value} {identity.user_id}")
        return course

    async def update_course(self, session: AsyncSession, course: Course, updates: Dict[str, Any]) -> Course:
        """
        Apply a partial update to a course (caller already authorized).

        Raises:
            ConflictError: New course code belongs to another course
            ValidationFailedError: Capacity below current enrollment, or bad instructor_id
        """
        updates = dict(updates)
        schedule = updates.pop("schedule", None)
        assignments = updates.pop("assignments", None)

        if "course_code" in updates:
            updates["course_code"] = normalize_course_code(updates["course_code"])
            if await self._code_taken(session, updates["course_code"], exclude_id=course.id):
                raise ConflictError("Course with this code already exists")

        if "capacity" in updates:
            enrolled = await self.coordinator.enrolled_count(session, course.id)
            if updates["capacity"] < enrolled:
                raise ValidationFailedError(
                    f"Capacity cannot be lower than current enrollment ({enrolled})"
                )

        if updates.get("instructor_id") is not None:
            await self._validate_instructor(session, updates["instructor_id"])

        if schedule:
            for key, column in SCHEDULE_COLUMNS.items():
                if schedule.get(key) is not None:
                    updates[column] = schedule[key]

        for field, value in updates.items():
            setattr(course, field, value)

        if assignments is not None:
            existing = await session.execute(select(Assignment).where(Assignment.course_id == course.id))
            for assignment in existing.scalars().all():
                await session.delete(assignment)
            for assignment in assignments:
                session.add(Assignment(course_id=course.id, **assignment))

        try:
            await session.flush()
        except IntegrityError:
            raise ConflictError("Course with this code already exists")

        await session.commit()
        logger.info(f"Course {course.course_code} updated: {sorted(updates)}")
        return course

    async def deactivate_course(self, session: AsyncSession, course: Course) -> Course:
        """Soft delete: the course disappears from listings, enrollments keep their reference"""
        course.is_active = False
        await session.commit()
        logger.info(f"Course {course.course_code} deactivated")
        return course


# Global service instance
_course_service: Optional[CourseService] = None


def get_course_service() -> CourseService:
    """Get or create global CourseService instance."""
    global _course_service
    if _course_service is None:
        _course_service = CourseService()
    return _course_service
