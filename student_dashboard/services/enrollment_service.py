"""
Enrollment Coordinator

Adds and removes students from course rosters. Membership lives in the single
enrollments relation, so one row insert/delete updates the course roster and
the student's enrolled-course list together.

Rules (checked in this order before any write):
- course must exist (NotFoundError)
- course must be active to enroll (InactiveError)
- student must not already be enrolled (ConflictError)
- roster size must be below capacity (CapacityExceededError)
"""
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.errors import NotFoundError, ConflictError, CapacityExceededError, InactiveError
from student_dashboard.models.course import Course
from student_dashboard.models.enrollment import Enrollment
from student_dashboard.models.user import User

logger = logging.getLogger(__name__)


def roster_entry(user: User) -> dict:
    """Student summary embedded in course rosters"""
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "student_id": user.student_id,
        "department": user.department,
    }


class EnrollmentCoordinator:
    """Enforces capacity, duplicate and active-course rules on enrollment changes"""

    async def _load_course(self, session: AsyncSession, course_id: uuid.UUID, lock: bool = False) -> Course:
        query = select(Course).where(Course.id == course_id)
        if lock:
            # Serialize concurrent enrollments on the same course (SQLite units are serialized by unit_lock instead)
            query = query.with_for_update()
        course = (await session.execute(query)).scalar_one_or_none()
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def is_enrolled(self, session: AsyncSession, student_id: uuid.UUID, course_id: uuid.UUID) -> bool:
        query = select(Enrollment.id).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
        return (await session.execute(query)).first() is not None

    async def enrolled_count(self, session: AsyncSession, course_id: uuid.UUID) -> int:
        query = select(func.count(Enrollment.id)).where(Enrollment.course_id == course_id)
        return (await session.execute(query)).scalar_one()

    async def enrolled_counts(self, session: AsyncSession, course_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
        """
        Roster sizes for a batch of courses.

        Args:
            session: Database session
            course_ids: Courses to count

        Returns:
            Mapping of course id to enrolled count (0 for empty rosters)
        """
        ids = list(course_ids)
        if not ids:
            return {}

        query = (
            select(Enrollment.course_id, func.count(Enrollment.id))
            .where(Enrollment.course_id.in_(ids))
            .group_by(Enrollment.course_id)
        )
        counts = {course_id: 0 for course_id in ids}
        for course_id, count in (await session.execute(query)).all():
            counts[course_id] = count
        return counts

    async def roster(self, session: AsyncSession, course_id: uuid.UUID) -> List[User]:
        """Students enrolled in a course, in enrollment order"""
        query = (
            select(User)
            .join(Enrollment, Enrollment.student_id == User.id)
            .where(Enrollment.course_id == course_id)
            .order_by(Enrollment.enrolled_at, User.name)
        )
        return list((await session.execute(query)).scalars().all())

    async def enrolled_courses(
        self,
        session: AsyncSession,
        student_id: uuid.UUID,
        active_only: bool = True,
    ) -> List[Course]:
        """Courses a student is enrolled in, in enrollment order"""
        query = (
            select(Course)
            .join(Enrollment, Enrollment.course_id == Course.id)
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.enrolled_at, Course.course_code)
        )
        if active_only:
            query = query.where(Course.is_active.is_(True))
        return list((await session.execute(query)).scalars().all())

    async def enroll(self, session: AsyncSession, student_id: uuid.UUID, course_id: uuid.UUID) -> Course:
        """
        Enroll a student in a course.

        Args:
            session: Database session
            student_id: Enrolling student
            course_id: Target course

        Returns:
            The course after enrollment

        Raises:
            NotFoundError: Course or student does not exist
            InactiveError: Course has been deactivated
            ConflictError: Student is already enrolled
            CapacityExceededError: Roster is full
        """
        course = await self._load_course(session, course_id, lock=True)

        if not course.is_active:
            raise InactiveError("Course is not active")

        if await self.is_enrolled(session, student_id, course_id):
            raise ConflictError("Already enrolled in this course")

        enrolled = await self.enrolled_count(session, course_id)
        if enrolled >= course.capacity:
            raise CapacityExceededError("Course is full")

        session.add(Enrollment(student_id=student_id, course_id=course_id))
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            if await self.is_enrolled(session, student_id, course_id):
                # Lost a race with a concurrent enrollment of the same pair
                raise ConflictError("Already enrolled in this course")
            if await session.get(User, student_id) is None:
                raise NotFoundError("Student not found")
            raise

        await session.commit()
        logger.info(f"Student {student_id} enrolled in {course.course_code} ({enrolled + 1}/{course.capacity})")
        return course

    async def unenroll(self, session: AsyncSession, student_id: uuid.UUID, course_id: uuid.UUID) -> Course:
        """
        Remove a student from a course.

        Raises:
            NotFoundError: Course does not exist
            ConflictError: Student is not enrolled
        """
        course = await self._load_course(session, course_id, lock=True)

        result = await session.execute(
            delete(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
            )
        )
        if result.rowcount == 0:
            raise ConflictError("Not enrolled in this course")

        await session.commit()
        logger.info(f"Student {student_id} unenrolled from {course.course_code}")
        return course

    async def drop_student(self, session: AsyncSession, student_id: uuid.UUID) -> int:
        """
        Remove a user from every roster. Flushes only; the caller commits.

        Returns:
            Number of enrollments removed
        """
        result = await session.execute(delete(Enrollment).where(Enrollment.student_id == student_id))
        await session.flush()
        return result.rowcount or 0


# Global coordinator instance
_coordinator: Optional[EnrollmentCoordinator] = None


def get_enrollment_coordinator() -> EnrollmentCoordinator:
    """Get or create global EnrollmentCoordinator instance."""
    global _coordinator
    if _coordinator is None:
        _coordinator = EnrollmentCoordinator()
    return _coordinator
