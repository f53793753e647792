"""
User Record Store

Registration, credential checks, profile updates and the privileged account
operations used by the admin panel.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.errors import NotFoundError, ConflictError, ValidationFailedError
from student_dashboard.models.course import Course
from student_dashboard.models.enrollment import Enrollment
from student_dashboard.models.user import User, UserRole
from student_dashboard.security import get_password_hash, verify_password
from student_dashboard.services.enrollment_service import EnrollmentCoordinator, get_enrollment_coordinator

logger = logging.getLogger(__name__)

# Fields the profile-update path must never change
PROTECTED_PROFILE_FIELDS = frozenset({"email", "role", "password", "password_hash", "student_id"})

# Roles open to self-registration; admins are promoted by another admin
SELF_REGISTER_ROLES = (UserRole.STUDENT, UserRole.INSTRUCTOR)

RECENT_REGISTRATION_DAYS = 7


class UserService:
    """Account storage and admin operations"""

    def __init__(self, coordinator: Optional[EnrollmentCoordinator] = None):
        self.coordinator = coordinator or get_enrollment_coordinator()

    async def get_user(self, session: AsyncSession, user_id: uuid.UUID) -> User:
        user = await session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_by_email(self, session: AsyncSession, email: str) -> Optional[User]:
        query = select(User).where(User.email == email.strip().lower())
        return (await session.execute(query)).scalar_one_or_none()

    async def register(
        self,
        session: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.STUDENT,
        student_id: Optional[str] = None,
        department: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationFailedError: Role not open to self-registration
            ConflictError: Email or student id already registered
        """
        if role not in SELF_REGISTER_ROLES:
            raise ValidationFailedError("Role must be student or instructor")

        email = email.strip().lower()
        if await self.get_by_email(session, email) is not None:
            raise ConflictError("User already exists with this email")

        is_student = role == UserRole.STUDENT
        if is_student and student_id:
            taken = await session.execute(select(User.id).where(User.student_id == student_id))
            if taken.first() is not None:
                raise ConflictError("Student ID is already registered")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            student_id=student_id if is_student else None,
            department=department or "General",
            semester=semester or 1,
        )
        session.add(user)
        try:
            await session.flush()
        except IntegrityError:
            raise ConflictError("User already exists with this email")

        await session.commit()
        logger.info(f"Registered {role.value} account {user.id}")
        return user

    async def authenticate(self, session: AsyncSession, email: str, password: str) -> Optional[User]:
        """Return the user when the credentials match, otherwise None"""
        user = await self.get_by_email(session, email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def list_users(self, session: AsyncSession) -> List[User]:
        """All accounts, newest first"""
        query = select(User).order_by(User.created_at.desc(), User.email)
        return list((await session.execute(query)).scalars().all())

    async def update_profile(self, session: AsyncSession, user: User, updates: Dict[str, Any]) -> User:
        """
        Partial profile update.

        Raises:
            ValidationFailedError: Update touches an identity-bearing field
        """
        protected = sorted(PROTECTED_PROFILE_FIELDS.intersection(updates))
        if protected:
            raise ValidationFailedError(
                f"Field(s) cannot be updated through the profile: {', '.join(protected)}"
            )

        for field, value in updates.items():
            setattr(user, field, value)

        await session.commit()
        logger.info(f"Profile updated for user {user.id}: {sorted(updates)}")
        return user

    async def set_active(self, session: AsyncSession, user: User, is_active: Optional[bool] = None) -> User:
        """Set the active flag, or toggle it when no value is given"""
        user.is_active = (not user.is_active) if is_active is None else is_active
        await session.commit()
        logger.info(f"User {user.id} {'activated' if user.is_active else 'deactivated'}")
        return user

    async def _release_courses(self, session: AsyncSession, user_id: uuid.UUID) -> int:
        """Clear instructor_id on every course the user owns"""
        result = await session.execute(
            update(Course).where(Course.instructor_id == user_id).values(instructor_id=None)
        )
        return result.rowcount or 0

    async def change_role(self, session: AsyncSession, user: User, role: UserRole) -> User:
        """
        Change an account's role.

        Leaving the student role clears the student-only fields and drops the
        user from every roster. Becoming a student clears ownership of any
        courses the user taught.
        """
        previous = user.role
        if previous == UserRole.STUDENT and role != UserRole.STUDENT:
            user.student_id = None
            user.department = "General"
            user.semester = 1
            dropped = await self.coordinator.drop_student(session, user.id)
            if dropped:
                logger.info(f"Removed user {user.id} from {dropped} course roster(s) after role change")

        if role == UserRole.STUDENT and previous != UserRole.STUDENT:
            # Students cannot own courses
            released = await self._release_courses(session, user.id)
            if released:
                logger.info(f"Cleared ownership of {released} course(s) from user {user.id} after role change")

        user.role = role
        await session.commit()
        logger.info(f"User {user.id} role changed from {previous.value} to {role.value}")
        return user

    async def delete_user(self, session: AsyncSession, user: User) -> None:
        """Hard delete; removes the user from every roster and clears course ownership"""
        dropped = await self.coordinator.drop_student(session, user.id)
        await self._release_courses(session, user.id)
        await session.delete(user)
        await session.commit()
        logger.info(f"Deleted user {user.id} (removed from {dropped} roster(s))")

    async def statistics(self, session: AsyncSession) -> Dict[str, int]:
        """Counts for the admin overview"""
        role_counts = {role: 0 for role in UserRole}
        rows = await session.execute(select(User.role, func.count(User.id)).group_by(User.role))
        for role, count in rows.all():
            role_counts[role] = count

        total_courses = (await session.execute(select(func.count(Course.id)))).scalar_one()
        active_courses = (
            await session.execute(select(func.count(Course.id)).where(Course.is_active.is_(True)))
        ).scalar_one()
        total_enrollments = (await session.execute(select(func.count(Enrollment.id)))).scalar_one()

        since = datetime.now(timezone.utc) - timedelta(days=RECENT_REGISTRATION_DAYS)
        recent = (
            await session.execute(select(func.count(User.id)).where(User.created_at >= since))
        ).scalar_one()

        return {
            "total_users": sum(role_counts.values()),
            "total_students": role_counts[UserRole.STUDENT],
            "total_instructors": role_counts[UserRole.INSTRUCTOR],
            "total_admins": role_counts[UserRole.ADMIN],
            "total_courses": total_courses,
            "active_courses": active_courses,
            "total_enrollments": total_enrollments,
            "recent_registrations": recent,
        }


# Global service instance
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get or create global UserService instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
