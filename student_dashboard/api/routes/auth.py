"""
Auth API Endpoints

POST /api/auth/register - Create an account and return a demo token
POST /api/auth/login    - Exchange email/password for a demo token
GET  /api/auth/me       - Current user
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.api.auth import get_current_user
from student_dashboard.database import get_db
from student_dashboard.models.user import User, UserRole
from student_dashboard.security import create_demo_token
from student_dashboard.services.user_service import get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.STUDENT
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    semester: Optional[int] = Field(None, ge=1, le=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Register a student or instructor account.

    Raises:
        409: Email or student id already registered
        422: Invalid fields, or admin role requested
    """
    user = await get_user_service().register(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        student_id=payload.student_id,
        department=payload.department,
        semester=payload.semester,
    )
    return {
        "success": True,
        "message": "Registration successful",
        "token": create_demo_token(user.id),
        "user": user.to_dict(),
    }


@router.post("/login")
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Log in with email and password.

    Raises:
        401: Invalid credentials
        403: Account deactivated
    """
    user = await get_user_service().authenticate(db, payload.email, payload.password)
    if user is None:
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "AUTH_005", "message": "Invalid credentials"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "AUTH_004", "message": "User account is inactive"},
        )

    return {
        "success": True,
        "message": "Login successful",
        "token": create_demo_token(user.id),
        "user": user.to_dict(),
    }


@router.get("/me")
async def me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return {"success": True, "user": user.to_dict()}
