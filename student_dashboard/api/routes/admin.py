"""
Admin API Endpoints

GET    /api/admin/users                  - All accounts, newest first
GET    /api/admin/courses                - All courses with rosters
GET    /api/admin/statistics             - System counts
PUT    /api/admin/users/{user_id}/status - Activate/deactivate (not self)
PUT    /api/admin/users/{user_id}/role   - Change role (not self)
DELETE /api/admin/users/{user_id}        - Delete and drop from rosters (not self)
"""
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Path
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.api.auth import require
from student_dashboard.database import get_db
from student_dashboard.models.user import UserRole
from student_dashboard.services.access_policy import Identity, Operation
from student_dashboard.services.course_service import get_course_service
from student_dashboard.services.user_service import get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class StatusUpdate(BaseModel):
    """Explicit active flag; omit the body to toggle"""
    is_active: Optional[bool] = None


class RoleUpdate(BaseModel):
    role: UserRole


@router.get("/users")
async def list_users(
    identity: Identity = Depends(require(Operation.ADMIN_LIST_USERS)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    users = await get_user_service().list_users(db)
    return {"success": True, "count": len(users), "users": [user.to_dict() for user in users]}


@router.get("/courses")
async def list_all_courses(
    identity: Identity = Depends(require(Operation.ADMIN_LIST_COURSES)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """All courses, including inactive ones, with rosters."""
    courses = await get_course_service().list_all(db)
    return {"success": True, "count": len(courses), "courses": courses}


@router.get("/statistics")
async def get_statistics(
    identity: Identity = Depends(require(Operation.ADMIN_STATISTICS)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    statistics = await get_user_service().statistics(db)
    return {"success": True, "statistics": statistics}


@router.put("/users/{user_id}/status")
async def set_user_status(
    user_id: uuid.UUID = Path(..., description="User UUID"),
    payload: Optional[StatusUpdate] = Body(None),
    identity: Identity = Depends(require(Operation.ADMIN_SET_STATUS)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Activate or deactivate an account; toggles when no is_active is given.

    Raises:
        403: Target is the caller's own account
        404: User not found
    """
    service = get_user_service()
    user = await service.get_user(db, user_id)
    user = await service.set_active(db, user, payload.is_active if payload else None)
    return {
        "success": True,
        "message": f"User {'activated' if user.is_active else 'deactivated'} successfully",
        "user": user.to_dict(),
    }


@router.put("/users/{user_id}/role")
async def set_user_role(
    payload: RoleUpdate,
    user_id: uuid.UUID = Path(..., description="User UUID"),
    identity: Identity = Depends(require(Operation.ADMIN_SET_ROLE)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Change an account's role.

    Raises:
        403: Target is the caller's own account
        404: User not found
        422: Role is not student, instructor or admin
    """
    service = get_user_service()
    user = await service.get_user(db, user_id)
    user = await service.change_role(db, user, payload.role)
    return {"success": True, "message": f"User role updated to {payload.role.value}", "user": user.to_dict()}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: uuid.UUID = Path(..., description="User UUID"),
    identity: Identity = Depends(require(Operation.ADMIN_DELETE_USER)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Delete an account and remove it from every course roster.

    Raises:
        403: Target is the caller's own account
        404: User not found
    """
    service = get_user_service()
    user = await service.get_user(db, user_id)
    await service.delete_user(db, user)
    return {"success": True, "message": "User deleted successfully"}
