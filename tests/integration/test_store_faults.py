"""
Integration tests for store failures

A failing database surfaces as a 500 SERVER_ERROR envelope, is logged with
its traceback, and leaves no partial writes behind.
"""
import logging

import pytest
from sqlalchemy.exc import OperationalError

from main import app
from student_dashboard.database import get_db, unit_of_work
from student_dashboard.services.enrollment_service import EnrollmentCoordinator

pytestmark = pytest.mark.integration

SERVER_ERROR = {"success": False, "code": "SERVER_ERROR", "message": "Server error"}


@pytest.fixture
def failing_db(session_factory):
    """Point get_db at sessions whose given method raises OperationalError"""

    def install(method: str):
        async def fail(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        async def override_get_db():
            async with unit_of_work(session_factory) as session:
                setattr(session, method, fail)
                yield session

        app.dependency_overrides[get_db] = override_get_db

    return install


class TestStoreFaults:

    @pytest.mark.asyncio
    async def test_read_failure_reported(self, client, failing_db, make_course, caplog):
        await make_course()
        failing_db("execute")

        with caplog.at_level(logging.ERROR, logger="main"):
            response = await client.get("/api/courses")

        assert response.status_code == 500
        # The envelope only: no course data stands in for the failed read
        assert response.json() == SERVER_ERROR
        errors = [r for r in caplog.records if r.name == "main" and r.levelno == logging.ERROR]
        assert errors and errors[0].exc_info is not None

    @pytest.mark.asyncio
    async def test_failed_commit_rolls_back_enrollment(
        self, client, failing_db, session_factory, student, make_course, headers_for
    ):
        course = await make_course()
        failing_db("commit")

        response = await client.post(f"/api/courses/{course.id}/enroll", headers=headers_for(student))

        assert response.status_code == 500
        assert response.json() == SERVER_ERROR

        async with session_factory() as session:
            assert await EnrollmentCoordinator().enrolled_count(session, course.id) == 0
