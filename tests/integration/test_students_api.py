"""
Integration tests for Student API

Tests dashboard aggregation, profile read/update rules and the enrolled
course listing.
"""
from datetime import datetime, timedelta, timezone

import pytest

from student_dashboard.models import Assignment

pytestmark = pytest.mark.integration


@pytest.fixture
def add_assignment(session_factory):
    async def create(course, title, days_from_now):
        async with session_factory() as session:
            session.add(
                Assignment(
                    course_id=course.id,
                    title=title,
                    due_date=datetime.now(timezone.utc) + timedelta(days=days_from_now),
                    max_score=100,
                )
            )
            await session.commit()

    return create


class TestDashboard:
    """GET /api/students/dashboard"""

    @pytest.mark.asyncio
    async def test_dashboard_summary(self, client, student, make_course, enroll_directly, add_assignment, headers_for):
        cs = await make_course(course_code="CS101", course_name="Intro CS")
        math = await make_course(course_code="MATH201", course_name="Calculus I")
        await make_course(course_code="PHY101")
        await enroll_directly(student, cs)
        await enroll_directly(student, math)
        await add_assignment(cs, "CS101 Assignment 1", 2)
        await add_assignment(math, "MATH201 Quiz 2", 4)
        await add_assignment(math, "Old quiz", -3)

        response = await client.get("/api/students/dashboard", headers=headers_for(student))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["enrolled_courses"] == 2
        assert data["upcoming_classes"] == 4
        assert data["pending_assignments"] == 2
        assert [d["title"] for d in data["upcoming_deadlines"]] == ["CS101 Assignment 1", "MATH201 Quiz 2"]
        assert {c["course_code"] for c in data["recent_courses"]} == {"CS101", "MATH201"}
        assert data["user"]["email"] == student.email

    @pytest.mark.asyncio
    async def test_empty_dashboard(self, client, student, headers_for):
        response = await client.get("/api/students/dashboard", headers=headers_for(student))

        data = response.json()["data"]
        assert data["enrolled_courses"] == 0
        assert data["pending_assignments"] == 0
        assert data["recent_courses"] == []
        assert data["upcoming_deadlines"] == []

    @pytest.mark.asyncio
    async def test_recent_courses_capped(self, client, student, make_course, enroll_directly, headers_for):
        for _ in range(5):
            await enroll_directly(student, await make_course())

        response = await client.get("/api/students/dashboard", headers=headers_for(student))

        data = response.json()["data"]
        assert data["enrolled_courses"] == 5
        assert len(data["recent_courses"]) == 3

    @pytest.mark.asyncio
    async def test_admin_forbidden(self, client, admin, headers_for):
        response = await client.get("/api/students/dashboard", headers=headers_for(admin))

        assert response.status_code == 403


class TestProfile:
    """GET/PUT /api/students/profile"""

    @pytest.mark.asyncio
    async def test_profile_includes_courses(self, client, student, make_course, enroll_directly, headers_for):
        course = await make_course()
        await enroll_directly(student, course)

        response = await client.get("/api/students/profile", headers=headers_for(student))

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == str(student.id)
        assert "password_hash" not in user
        assert [c["course_code"] for c in user["enrolled_courses"]] == [course.course_code]

    @pytest.mark.asyncio
    async def test_partial_update(self, client, student, headers_for):
        response = await client.put(
            "/api/students/profile",
            json={"phone": "555-0100", "semester": 3},
            headers=headers_for(student),
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["phone"] == "555-0100"
        assert user["semester"] == 3
        assert user["name"] == student.name

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("email", "new@university.edu"),
        ("role", "admin"),
        ("password", "hunter22"),
        ("student_id", "S999999"),
    ])
    async def test_identity_fields_rejected(self, client, student, headers_for, field, value):
        response = await client.put(
            "/api/students/profile", json={"name": "Renamed", field: value}, headers=headers_for(student)
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

        profile = await client.get("/api/students/profile", headers=headers_for(student))
        user = profile.json()["user"]
        assert user["name"] == student.name
        assert user["role"] == "student"
        assert user["email"] == student.email

    @pytest.mark.asyncio
    async def test_unknown_fields_ignored(self, client, student, headers_for):
        response = await client.put(
            "/api/students/profile", json={"favorite_color": "blue", "address": "1 Main St"}, headers=headers_for(student)
        )

        assert response.status_code == 200
        assert response.json()["user"]["address"] == "1 Main St"

    @pytest.mark.asyncio
    async def test_semester_range(self, client, student, headers_for):
        response = await client.put("/api/students/profile", json={"semester": 0}, headers=headers_for(student))

        assert response.status_code == 422


class TestEnrolledCourses:
    """GET /api/students/courses"""

    @pytest.mark.asyncio
    async def test_only_active_courses(self, client, student, make_course, enroll_directly, headers_for):
        active = await make_course()
        retired = await make_course(is_active=False)
        await enroll_directly(student, active)
        await enroll_directly(student, retired)

        response = await client.get("/api/students/courses", headers=headers_for(student))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["courses"][0]["id"] == str(active.id)

    @pytest.mark.asyncio
    async def test_matches_roster_after_enroll(self, client, student, make_course, headers_for):
        course = await make_course()
        await client.post(f"/api/courses/{course.id}/enroll", headers=headers_for(student))

        mine = await client.get("/api/students/courses", headers=headers_for(student))
        detail = await client.get(f"/api/courses/{course.id}")

        assert [c["id"] for c in mine.json()["courses"]] == [str(course.id)]
        assert [s["id"] for s in detail.json()["course"]["enrolled_students"]] == [str(student.id)]
