"""
Authentication Dependencies

Bearer token authentication using demo tokens.
Placeholder for a real identity provider; the verifier is the only piece
that would change.
"""
import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from student_dashboard.database import get_db
from student_dashboard.models.user import User
from student_dashboard.security import parse_demo_token
from student_dashboard.services.access_policy import Identity, Operation, get_access_gate

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def authenticate(session: AsyncSession, credential: Optional[str]) -> User:
    """
    Resolve a bearer credential to an active user.

    Args:
        session: Database session
        credential: Raw token from the Authorization header

    Returns:
        The authenticated user

    Raises:
        HTTPException: 401 if missing/invalid, 403 if the account is deactivated
    """
    if not credential:
        raise _unauthorized("AUTH_001", "No token provided")

    user_id = parse_demo_token(credential)
    user = await session.get(User, user_id) if user_id else None
    if user is None:
        logger.warning(f"Invalid token attempt: {credential[:16]}...")
        raise _unauthorized("AUTH_002", "Invalid token")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "AUTH_004", "message": "User account is inactive"},
        )

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user"""
    return await authenticate(db, credentials.credentials if credentials else None)


async def get_current_identity(user: User = Depends(get_current_user)) -> Identity:
    """Get the caller's identity for policy checks"""
    return Identity(user_id=user.id, role=user.role, name=user.name, email=user.email)


def require(operation: Operation) -> Callable:
    """
    Dependency factory enforcing the access policy for an operation.

    Role and self-account rules are checked here, before the endpoint body
    runs. A ``user_id`` path parameter is taken as the target account.
    Ownership rules need the loaded course and are checked by the endpoint.

    Usage:
        @router.delete("/{course_id}")
        async def delete_course(identity: Identity = Depends(require(Operation.COURSE_DELETE))):
            ...
    """

    async def dependency(request: Request, identity: Identity = Depends(get_current_identity)) -> Identity:
        target_user_id = None
        target = request.path_params.get("user_id")
        if target is not None:
            try:
                target_user_id = uuid.UUID(str(target))
            except ValueError:
                # Malformed ids fail path validation afterwards
                target_user_id = None

        get_access_gate().check_request(identity, operation, target_user_id=target_user_id)
        return identity

    return dependency
