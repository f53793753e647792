"""
Student API Endpoints

GET /api/students/dashboard - Dashboard summary for the calling student
GET /api/students/profile   - Profile with enrolled courses
PUT /api/students/profile   - Partial profile update
GET /api/students/courses   - Active courses the student is enrolled in
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.api.auth import require
from student_dashboard.database import get_db
from student_dashboard.services.access_policy import Identity, Operation
from student_dashboard.services.dashboard_service import get_dashboard_service
from student_dashboard.services.enrollment_service import get_enrollment_coordinator
from student_dashboard.services.user_service import PROTECTED_PROFILE_FIELDS, get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/students", tags=["students"])


class ProfileUpdate(BaseModel):
    """
    Request body for PUT /api/students/profile.

    Unknown fields are ignored, except identity fields (email, role,
    password, student_id) which are rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="allow")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    semester: Optional[int] = Field(None, ge=1, le=8)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    profile_image: Optional[str] = Field(None, max_length=500)


def _course_summary(course) -> Dict[str, Any]:
    return {
        "id": str(course.id),
        "course_code": course.course_code,
        "course_name": course.course_name,
        "instructor": course.instructor,
        "department": course.department,
        "semester": course.semester,
        "credits": course.credits,
        "schedule": {"day": course.schedule_day, "time": course.schedule_time, "room": course.schedule_room},
        "description": course.description,
    }


@router.get("/dashboard")
async def get_dashboard(
    identity: Identity = Depends(require(Operation.STUDENT_DASHBOARD)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Get student dashboard data."""
    user = await get_user_service().get_user(db, identity.user_id)
    data = await get_dashboard_service().build(db, user)
    return {"success": True, "data": data}


@router.get("/profile")
async def get_profile(
    identity: Identity = Depends(require(Operation.STUDENT_PROFILE_READ)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Get the student's profile with enrolled courses."""
    user = await get_user_service().get_user(db, identity.user_id)
    courses = await get_enrollment_coordinator().enrolled_courses(db, user.id, active_only=False)

    profile = user.to_dict()
    profile["enrolled_courses"] = [_course_summary(course) for course in courses]
    return {"success": True, "user": profile}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require(Operation.STUDENT_PROFILE_UPDATE)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Update the student's profile.

    Raises:
        422: Body tries to change email, role, password or student_id
    """
    service = get_user_service()
    user = await service.get_user(db, identity.user_id)

    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if field in ProfileUpdate.model_fields or field in PROTECTED_PROFILE_FIELDS
    }
    if updates.get("name", "") is None:
        del updates["name"]

    user = await service.update_profile(db, user, updates)
    return {"success": True, "message": "Profile updated successfully", "user": user.to_dict()}


@router.get("/courses")
async def get_enrolled_courses(
    identity: Identity = Depends(require(Operation.STUDENT_COURSES)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Get the active courses the student is enrolled in."""
    courses = await get_enrollment_coordinator().enrolled_courses(db, identity.user_id, active_only=True)
    return {
        "success": True,
        "count": len(courses),
        "courses": [_course_summary(course) for course in courses],
    }
