"""
Demo Data Loader

Seeds the store with the demo accounts and course catalog used for local
testing and presentations. Runs on startup when DEMO_MODE=true, or manually:

Usage: python -m student_dashboard.scripts.load_demo --reset --extra-students 20
"""
import argparse
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from faker import Faker
from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from student_dashboard.database import AsyncSessionLocal, init_models, unit_of_work
from student_dashboard.models import Assignment, Course, Enrollment, User, UserRole
from student_dashboard.security import get_password_hash

logger = logging.getLogger(__name__)

# Initialize Faker for realistic extra students
fake = Faker()

DEMO_PASSWORD = "password123"

DEMO_USERS: List[Dict[str, Any]] = [
    {
        "name": "John Student",
        "email": "student@test.com",
        "role": UserRole.STUDENT,
        "student_id": "S123456",
        "department": "Computer Science",
        "semester": 2,
    },
    {
        "name": "Admin User",
        "email": "admin@test.com",
        "role": UserRole.ADMIN,
    },
    {
        "name": "Dr. Smith",
        "email": "instructor@test.com",
        "role": UserRole.INSTRUCTOR,
        "department": "Computer Science",
    },
]

DEMO_COURSES: List[Dict[str, Any]] = [
    {
        "course_code": "CS101",
        "course_name": "Introduction to Computer Science",
        "instructor": "Dr. Smith",
        "department": "Computer Science",
        "semester": 1,
        "credits": 3,
        "schedule": ("Mon/Wed", "10:00 AM", "Room 101"),
        "description": "Fundamentals of programming and computer science principles.",
    },
    {
        "course_code": "MATH201",
        "course_name": "Calculus I",
        "instructor": "Dr. Johnson",
        "department": "Mathematics",
        "semester": 1,
        "credits": 4,
        "schedule": ("Tue/Thu", "2:00 PM", "Room 205"),
        "description": "Introduction to differential and integral calculus.",
    },
    {
        "course_code": "ENG102",
        "course_name": "English Composition",
        "instructor": "Prof. Davis",
        "department": "English",
        "semester": 1,
        "credits": 3,
        "schedule": ("Mon/Fri", "1:00 PM", "Room 150"),
        "description": "Developing writing skills for academic and professional contexts.",
    },
    {
        "course_code": "PHY101",
        "course_name": "Physics I",
        "instructor": "Dr. Wilson",
        "department": "Physics",
        "semester": 2,
        "credits": 4,
        "schedule": ("Tue/Thu", "9:00 AM", "Lab 301"),
        "description": "Mechanics, thermodynamics, and wave motion.",
    },
    {
        "course_code": "CS201",
        "course_name": "Data Structures",
        "instructor": "Dr. Brown",
        "department": "Computer Science",
        "semester": 2,
        "credits": 3,
        "schedule": ("Mon/Wed/Fri", "11:00 AM", "Room 102"),
        "description": "Study of fundamental data structures and algorithms.",
    },
]

# (course code, title, days until due)
DEMO_ASSIGNMENTS = [
    ("CS101", "CS101 Assignment 1", 2),
    ("MATH201", "MATH201 Quiz 2", 4),
]

# The demo student starts enrolled in these
DEMO_ENROLLMENTS = ["CS101", "MATH201"]


async def clear_data(session: AsyncSession) -> None:
    """Clear all existing data"""
    for model in (Enrollment, Assignment, Course, User):
        await session.execute(delete(model))
    await session.commit()
    logger.info("Cleared existing data")


async def is_empty(session: AsyncSession) -> bool:
    return (await session.execute(select(func.count(User.id)))).scalar_one() == 0


async def load_demo_data(session: AsyncSession, extra_students: int = 0) -> Dict[str, int]:
    """
    Insert demo users, courses, assignments and enrollments.

    Args:
        session: Database session
        extra_students: Additional Faker-generated students to create

    Returns:
        Counts of created records
    """
    password_hash = get_password_hash(DEMO_PASSWORD)

    users = {}
    for entry in DEMO_USERS:
        user = User(password_hash=password_hash, **entry)
        session.add(user)
        users[entry["email"]] = user

    for i in range(extra_students):
        session.add(
            User(
                name=fake.name(),
                email=f"{fake.user_name()}{i}@{fake.free_email_domain()}",
                password_hash=password_hash,
                role=UserRole.STUDENT,
                student_id=f"S{200000 + i}",
                department=fake.random_element(["Computer Science", "Mathematics", "English", "Physics"]),
                semester=fake.random_int(min=1, max=8),
            )
        )
    await session.flush()

    instructor = users["instructor@test.com"]
    courses = {}
    for entry in DEMO_COURSES:
        entry = dict(entry)
        day, time, room = entry.pop("schedule")
        course = Course(schedule_day=day, schedule_time=time, schedule_room=room, capacity=30, **entry)
        if course.instructor == instructor.name:
            course.instructor_id = instructor.id
        session.add(course)
        courses[course.course_code] = course
    await session.flush()

    now = datetime.now(timezone.utc)
    for code, title, days in DEMO_ASSIGNMENTS:
        session.add(
            Assignment(
                course_id=courses[code].id,
                title=title,
                due_date=now + timedelta(days=days),
                max_score=100,
            )
        )

    student = users["student@test.com"]
    for code in DEMO_ENROLLMENTS:
        session.add(Enrollment(student_id=student.id, course_id=courses[code].id))

    await session.commit()

    summary = {
        "users": len(DEMO_USERS) + extra_students,
        "courses": len(DEMO_COURSES),
        "assignments": len(DEMO_ASSIGNMENTS),
        "enrollments": len(DEMO_ENROLLMENTS),
    }
    logger.info(f"Demo data loaded: {summary}")
    return summary


async def seed_if_empty(session_factory: async_sessionmaker = AsyncSessionLocal) -> bool:
    """Load demo data unless the store already has accounts. Returns True if loaded."""
    async with unit_of_work(session_factory) as session:
        if not await is_empty(session):
            logger.info("Store already has data; skipping demo seed")
            return False
        await load_demo_data(session)
        return True


async def run(reset: bool, extra_students: int) -> None:
    await init_models()
    async with unit_of_work() as session:
        if reset:
            await clear_data(session)
            print("✓ Cleared existing data")
        elif not await is_empty(session):
            print("Store already has data; use --reset to replace it")
            return

        summary = await load_demo_data(session, extra_students=extra_students)

    print(f"✓ Loaded {summary['users']} users, {summary['courses']} courses, "
          f"{summary['enrollments']} enrollments")
    print(f"\nDemo credentials (password: {DEMO_PASSWORD}):")
    for entry in DEMO_USERS:
        print(f"  {entry['role'].value:<11} {entry['email']}")


def main():
    """CLI entry point"""
    parser = argparse.ArgumentParser(description="Load demo data")
    parser.add_argument("--reset", action="store_true", help="Delete existing data first")
    parser.add_argument(
        "--extra-students",
        "-n",
        type=int,
        default=0,
        help="Number of additional generated students",
    )

    args = parser.parse_args()
    asyncio.run(run(args.reset, args.extra_students))


if __name__ == "__main__":
    main()
