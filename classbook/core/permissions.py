"""Role checks shared by every privileged operation.

All admin decisions go through :func:`is_admin`; call sites never compare
role strings themselves.
"""
from ..db.models.user import User, UserRole
from .errors import PermissionDeniedError

# Roles a member-creation request may assign
ASSIGNABLE_ROLES = frozenset({UserRole.student, UserRole.coach})


def is_admin(role: UserRole) -> bool:
    if role is UserRole.admin:
        return True
    if role is UserRole.coach or role is UserRole.student:
        return False
    raise ValueError(f"Unknown role: {role!r}")


def _coerce_role(value: UserRole | str | None) -> UserRole | None:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def ensure_admin(actor: User | None) -> User:
    if actor is None:
        raise PermissionDeniedError("Authentication required")
    role = _coerce_role(actor.role)
    if role is None or not is_admin(role):
        raise PermissionDeniedError("Admin role required")
    return actor


def ensure_self_or_admin(actor: User | None, user_id: int) -> User:
    if actor is None:
        raise PermissionDeniedError("Authentication required")
    if actor.id == user_id:
        return actor
    return ensure_admin(actor)


def clamp_member_role(requested: UserRole | str | None) -> UserRole:
    """Map a requested role onto the assignable subset; admin is never honored."""
    role = _coerce_role(requested)
    if role in ASSIGNABLE_ROLES:
        return role
    return UserRole.student
