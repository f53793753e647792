"""
Access-Control Gate

One declarative table maps every operation to the capability it needs.
Role and self-account rules are evaluated by the ``require`` dependency
before an endpoint runs; ownership rules are evaluated once the target course
is loaded. Both happen before any write, so a rejected call has no side effects.
"""
import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from student_dashboard.errors import ForbiddenError
from student_dashboard.models.user import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as resolved from a bearer credential"""
    user_id: uuid.UUID
    role: UserRole
    name: str = ""
    email: str = ""


class Operation(str, enum.Enum):
    COURSE_CREATE = "course:create"
    COURSE_UPDATE = "course:update"
    COURSE_DELETE = "course:delete"
    COURSE_REASSIGN = "course:reassign"
    COURSE_ENROLL = "course:enroll"
    COURSE_UNENROLL = "course:unenroll"
    STUDENT_DASHBOARD = "student:dashboard"
    STUDENT_PROFILE_READ = "student:profile:read"
    STUDENT_PROFILE_UPDATE = "student:profile:update"
    STUDENT_COURSES = "student:courses"
    ADMIN_LIST_USERS = "admin:users:list"
    ADMIN_LIST_COURSES = "admin:courses:list"
    ADMIN_STATISTICS = "admin:statistics"
    ADMIN_SET_STATUS = "admin:users:status"
    ADMIN_SET_ROLE = "admin:users:role"
    ADMIN_DELETE_USER = "admin:users:delete"


@dataclass(frozen=True)
class Rule:
    """
    Capability required for one operation.

    Attributes:
        roles: Roles allowed to attempt the operation
        owner_roles: Roles that must additionally own the target course
        forbid_self: Reject when the target account is the caller's own
        message: Reason reported on rejection
    """
    roles: FrozenSet[UserRole]
    owner_roles: FrozenSet[UserRole] = frozenset()
    forbid_self: bool = False
    message: str = "Not authorized to perform this action"


STUDENT = frozenset({UserRole.STUDENT})
ADMIN = frozenset({UserRole.ADMIN})
STAFF = frozenset({UserRole.ADMIN, UserRole.INSTRUCTOR})


POLICY: Dict[Operation, Rule] = {
    Operation.COURSE_CREATE: Rule(STAFF, message="Only admins and instructors can create courses"),
    Operation.COURSE_UPDATE: Rule(
        STAFF,
        owner_roles=frozenset({UserRole.INSTRUCTOR}),
        message="Not authorized to update this course",
    ),
    Operation.COURSE_DELETE: Rule(ADMIN, message="Only admins can delete courses"),
    Operation.COURSE_REASSIGN: Rule(ADMIN, message="Only admins can reassign a course's instructor"),
    Operation.COURSE_ENROLL: Rule(STUDENT, message="Only students can enroll in courses"),
    Operation.COURSE_UNENROLL: Rule(STUDENT, message="Only students can unenroll from courses"),
    Operation.STUDENT_DASHBOARD: Rule(STUDENT, message="Only students can access this endpoint"),
    Operation.STUDENT_PROFILE_READ: Rule(STUDENT, message="Only students can access this endpoint"),
    Operation.STUDENT_PROFILE_UPDATE: Rule(STUDENT, message="Only students can access this endpoint"),
    Operation.STUDENT_COURSES: Rule(STUDENT, message="Only students can access this endpoint"),
    Operation.ADMIN_LIST_USERS: Rule(ADMIN, message="Access denied. Admin only."),
    Operation.ADMIN_LIST_COURSES: Rule(ADMIN, message="Access denied. Admin only."),
    Operation.ADMIN_STATISTICS: Rule(ADMIN, message="Access denied. Admin only."),
    Operation.ADMIN_SET_STATUS: Rule(
        ADMIN, forbid_self=True, message="Cannot change the status of your own account"
    ),
    Operation.ADMIN_SET_ROLE: Rule(ADMIN, forbid_self=True, message="Cannot change your own role"),
    Operation.ADMIN_DELETE_USER: Rule(ADMIN, forbid_self=True, message="Cannot delete your own account"),
}


class AccessGate:
    """Evaluates the policy table for a caller and an optional target"""

    def __init__(self, policy: Optional[Dict[Operation, Rule]] = None):
        self.policy = policy if policy is not None else POLICY

    def _rule(self, identity: Identity, operation: Operation) -> Rule:
        rule = self.policy.get(operation)
        if rule is None:
            # Unlisted operations are denied
            self._deny(identity, operation, "unlisted")
            raise ForbiddenError("Not authorized to perform this action")
        return rule

    def check_request(
        self,
        identity: Identity,
        operation: Operation,
        *,
        target_user_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Checks that need no loaded resource: role and self-account rules.

        Raises:
            ForbiddenError: If the caller's role or target account is not allowed
        """
        rule = self._rule(identity, operation)

        if identity.role not in rule.roles:
            self._deny(identity, operation, "role")
            raise ForbiddenError(rule.message)

        if rule.forbid_self and target_user_id is not None and target_user_id == identity.user_id:
            self._deny(identity, operation, "self")
            raise ForbiddenError(rule.message)

    def check(
        self,
        identity: Identity,
        operation: Operation,
        *,
        owner_id: Optional[uuid.UUID] = None,
        target_user_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Raise ForbiddenError unless the caller may perform the operation.

        Args:
            identity: Caller identity
            operation: Operation being attempted
            owner_id: Owner of the target course (ownership rules only)
            target_user_id: Account the operation acts on (self rules only)

        Raises:
            ForbiddenError: If the role, ownership or self check fails
        """
        self.check_request(identity, operation, target_user_id=target_user_id)

        rule = self.policy[operation]
        if identity.role in rule.owner_roles and (owner_id is None or owner_id != identity.user_id):
            self._deny(identity, operation, "ownership")
            raise ForbiddenError(rule.message)

    @staticmethod
    def _deny(identity: Identity, operation: Operation, reason: str) -> None:
        logger.info(
            f"Denied {operation.value} for user {identity.user_id} "
            f"(role={identity.role.value}, check={reason})"
        )


# Global gate instance
_gate: Optional[AccessGate] = None


def get_access_gate() -> AccessGate:
    """Get or create global AccessGate instance."""
    global _gate
    if _gate is None:
        _gate = AccessGate()
    return _gate
