"""
Course API Endpoints

GET    /api/courses                      - List active courses
GET    /api/courses/{course_id}          - Fetch one course with roster
POST   /api/courses                      - Create (admin/instructor)
PUT    /api/courses/{course_id}          - Update (admin/owning instructor)
DELETE /api/courses/{course_id}          - Soft delete (admin)
POST   /api/courses/{course_id}/enroll   - Enroll the calling student
POST   /api/courses/{course_id}/unenroll - Unenroll the calling student
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.api.auth import require
from student_dashboard.database import get_db
from student_dashboard.models.assignment import SubmissionType
from student_dashboard.services.access_policy import Identity, Operation, get_access_gate
from student_dashboard.services.course_service import get_course_service
from student_dashboard.services.enrollment_service import get_enrollment_coordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])

# Columns that may be cleared with an explicit null on update
NULLABLE_UPDATE_FIELDS = {"description", "syllabus", "instructor_id"}


# Request models

class ScheduleIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    day: str = Field(..., min_length=1, max_length=50)
    time: str = Field(..., min_length=1, max_length=50)
    room: str = Field(..., min_length=1, max_length=50)


class ScheduleUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    day: Optional[str] = Field(None, min_length=1, max_length=50)
    time: Optional[str] = Field(None, min_length=1, max_length=50)
    room: Optional[str] = Field(None, min_length=1, max_length=50)


class AssignmentIn(BaseModel):
    """Assignment attached to a course"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    due_date: Optional[datetime] = None
    max_score: Optional[int] = Field(None, ge=0)
    submission_type: SubmissionType = SubmissionType.BOTH

    @field_validator("due_date")
    @classmethod
    def due_date_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are taken as UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class CourseCreate(BaseModel):
    """Request body for POST /api/courses"""
    model_config = ConfigDict(str_strip_whitespace=True)

    course_code: str = Field(..., min_length=1, max_length=20, description="e.g. CS101")
    course_name: str = Field(..., min_length=1, max_length=200)
    instructor: str = Field(..., min_length=1, max_length=100, description="Instructor display name")
    instructor_id: Optional[uuid.UUID] = Field(None, description="Owning instructor (admin callers only)")
    department: str = Field(..., min_length=1, max_length=100)
    semester: int = Field(..., ge=1, le=8)
    credits: int = Field(..., ge=1, le=5)
    schedule: ScheduleIn
    description: Optional[str] = Field(None, max_length=1000)
    syllabus: Optional[str] = None
    prerequisites: List[str] = Field(default_factory=list)
    capacity: int = Field(30, ge=1)
    assignments: List[AssignmentIn] = Field(default_factory=list)


class CourseUpdate(BaseModel):
    """Request body for PUT /api/courses/{course_id}; every field optional"""
    model_config = ConfigDict(str_strip_whitespace=True)

    course_code: Optional[str] = Field(None, min_length=1, max_length=20)
    course_name: Optional[str] = Field(None, min_length=1, max_length=200)
    instructor: Optional[str] = Field(None, min_length=1, max_length=100)
    instructor_id: Optional[uuid.UUID] = None
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    semester: Optional[int] = Field(None, ge=1, le=8)
    credits: Optional[int] = Field(None, ge=1, le=5)
    schedule: Optional[ScheduleUpdate] = None
    description: Optional[str] = Field(None, max_length=1000)
    syllabus: Optional[str] = None
    prerequisites: Optional[List[str]] = None
    capacity: Optional[int] = Field(None, ge=1)
    assignments: Optional[List[AssignmentIn]] = None
    is_active: Optional[bool] = None


# API Endpoints

@router.get("")
async def list_courses(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """List active courses, ordered by semester then course code."""
    courses = await get_course_service().list_active(db)
    return {"success": True, "count": len(courses), "courses": courses}


@router.get("/{course_id}")
async def get_course(
    course_id: uuid.UUID = Path(..., description="Course UUID"),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Get a single course with its roster and assignments.

    Raises:
        404: Course not found
    """
    service = get_course_service()
    course = await service.get_course(db, course_id)
    return {"success": True, "course": await service.course_detail(db, course)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    identity: Identity = Depends(require(Operation.COURSE_CREATE)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Create a course (admin or instructor).

    Raises:
        409: Course code already exists
    """
    service = get_course_service()
    course = await service.create_course(db, identity, payload.model_dump())
    return {
        "success": True,
        "message": "Course created successfully",
        "course": await service.course_detail(db, course),
    }


@router.put("/{course_id}")
async def update_course(
    payload: CourseUpdate,
    course_id: uuid.UUID = Path(..., description="Course UUID"),
    identity: Identity = Depends(require(Operation.COURSE_UPDATE)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Update a course (admin, or the instructor who owns it).

    Raises:
        403: Instructor does not own the course, or tries to reassign or reactivate it
        404: Course not found
        409: New course code already exists
        422: Capacity below current enrollment
    """
    service = get_course_service()
    gate = get_access_gate()
    course = await service.get_course(db, course_id)
    gate.check(identity, Operation.COURSE_UPDATE, owner_id=course.instructor_id)

    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_UPDATE_FIELDS
    }
    if "instructor_id" in updates and updates["instructor_id"] != course.instructor_id:
        gate.check(identity, Operation.COURSE_REASSIGN)
    if "is_active" in updates and updates["is_active"] != course.is_active:
        # Activation status follows the delete rule
        gate.check(identity, Operation.COURSE_DELETE)

    course = await service.update_course(db, course, updates)
    return {
        "success": True,
        "message": "Course updated successfully",
        "course": await service.course_detail(db, course),
    }


@router.delete("/{course_id}")
async def delete_course(
    course_id: uuid.UUID = Path(..., description="Course UUID"),
    identity: Identity = Depends(require(Operation.COURSE_DELETE)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Soft-delete a course (admin). Enrollments are kept for history."""
    service = get_course_service()
    course = await service.get_course(db, course_id)
    await service.deactivate_course(db, course)
    return {"success": True, "message": "Course deleted successfully"}


@router.post("/{course_id}/enroll")
async def enroll(
    course_id: uuid.UUID = Path(..., description="Course UUID"),
    identity: Identity = Depends(require(Operation.COURSE_ENROLL)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Enroll the calling student.

    Raises:
        400: Course is not active
        404: Course not found
        409: Already enrolled, or the course is full
    """
    coordinator = get_enrollment_coordinator()
    course = await coordinator.enroll(db, identity.user_id, course_id)
    enrolled = await coordinator.enrolled_count(db, course.id)
    return {
        "success": True,
        "message": "Successfully enrolled in course",
        "course": course.to_dict(enrolled),
    }


@router.post("/{course_id}/unenroll")
async def unenroll(
    course_id: uuid.UUID = Path(..., description="Course UUID"),
    identity: Identity = Depends(require(Operation.COURSE_UNENROLL)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Unenroll the calling student.

    Raises:
        404: Course not found
        409: Not enrolled in this course
    """
    coordinator = get_enrollment_coordinator()
    course = await coordinator.unenroll(db, identity.user_id, course_id)
    enrolled = await coordinator.enrolled_count(db, course.id)
    return {
        "success": True,
        "message": "Successfully unenrolled from course",
        "course": course.to_dict(enrolled),
    }
