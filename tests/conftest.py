"""
Test configuration and fixtures

Every test gets its own in-memory SQLite store; the API is exercised through
httpx against the ASGI app with get_db pointed at that store.
"""
import os
import sys
from pathlib import Path
from typing import AsyncGenerator, Dict

import pytest
from faker import Faker
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Set testing environment before the app reads its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEMO_MODE"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from main import app  # noqa: E402
from student_dashboard.database import build_engine, get_db, init_models, unit_of_work  # noqa: E402
from student_dashboard.models import Course, Enrollment, User, UserRole  # noqa: E402
from student_dashboard.security import create_demo_token, get_password_hash  # noqa: E402

fake = Faker()

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test"""
    test_engine = build_engine(TEST_DATABASE_URL)
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""

    async def override_get_db():
        async with unit_of_work(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory: async_sessionmaker):
    """Factory creating committed users with Faker data"""

    async def create(role: UserRole = UserRole.STUDENT, **fields) -> User:
        values = {
            "name": fake.name(),
            "email": f"{fake.unique.user_name()}@university.edu",
            "password_hash": get_password_hash(TEST_PASSWORD),
            "role": role,
        }
        if role == UserRole.STUDENT:
            values["student_id"] = f"S{fake.unique.random_number(digits=6, fix_len=True)}"
            values["department"] = "Computer Science"
            values["semester"] = 2
        values.update(fields)

        async with session_factory() as session:
            user = User(**values)
            session.add(user)
            await session.commit()
            return user

    return create


@pytest.fixture
def make_course(session_factory: async_sessionmaker):
    """Factory creating committed courses"""

    async def create(**fields) -> Course:
        values = {
            "course_code": f"CS{fake.unique.random_int(min=400, max=999)}",
            "course_name": "Introduction to Computer Science",
            "instructor": "Dr. Smith",
            "department": "Computer Science",
            "semester": 1,
            "credits": 3,
            "schedule_day": "Mon/Wed",
            "schedule_time": "10:00 AM",
            "schedule_room": "Room 101",
            "capacity": 30,
        }
        values.update(fields)

        async with session_factory() as session:
            course = Course(**values)
            session.add(course)
            await session.commit()
            return course

    return create


@pytest.fixture
def enroll_directly(session_factory: async_sessionmaker):
    """Insert enrollment rows without going through the coordinator"""

    async def create(student: User, course: Course) -> None:
        async with session_factory() as session:
            session.add(Enrollment(student_id=student.id, course_id=course.id))
            await session.commit()

    return create


@pytest.fixture
async def student(make_user) -> User:
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def other_student(make_user) -> User:
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def instructor(make_user) -> User:
    return await make_user(UserRole.INSTRUCTOR, department="Computer Science")


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN)


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header carrying a demo token for the user"""
    return {"Authorization": f"Bearer {create_demo_token(user.id)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def password() -> str:
    """Plain-text password of every user created by make_user"""
    return TEST_PASSWORD
