"""Role-based access control.

Each guard is an ordered list of checks evaluated against the request
identity; the first failing check decides the error.
"""

from typing import Callable, List, Optional, Tuple
from fastapi import Depends, Request
import logging

from enybot.auth import Identity, get_current_identity, parse_user_id
from enybot.errors import AppError, forbidden, unauthorized
from enybot.models import UserRole

logger = logging.getLogger(__name__)

ADMIN_ROLES = {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}

# (predicate, error factory) pairs
Check = Tuple[Callable[[Optional[Identity], dict], bool], Callable[[], AppError]]


def is_authenticated(identity: Optional[Identity], params: dict) -> bool:
    return identity is not None


def is_admin(identity: Optional[Identity], params: dict) -> bool:
    return identity is not None and identity.role in ADMIN_ROLES


def is_super_admin(identity: Optional[Identity], params: dict) -> bool:
    return identity is not None and identity.role == UserRole.SUPER_ADMIN.value


def is_self_or_super_admin(identity: Optional[Identity], params: dict) -> bool:
    if identity is None:
        return False
    target = parse_user_id(params.get("user_id"))
    if target is not None and target == parse_user_id(identity.id):
        return True
    return is_super_admin(identity, params)


LOGIN_REQUIRED: List[Check] = [
    (is_authenticated, lambda: unauthorized("User not authenticated")),
]

ADMIN_REQUIRED: List[Check] = LOGIN_REQUIRED + [
    (is_admin, lambda: forbidden("Access denied: Admins only")),
]

SUPER_ADMIN_REQUIRED: List[Check] = LOGIN_REQUIRED + [
    (is_super_admin, lambda: forbidden("Access denied: Superadmins only")),
]

SELF_OR_SUPER_ADMIN_REQUIRED: List[Check] = LOGIN_REQUIRED + [
    (is_self_or_super_admin, lambda: forbidden("Not allowed to modify this resource")),
]


def authorize(identity: Optional[Identity], checks: List[Check], params: Optional[dict] = None) -> Identity:
    """Run checks in order and raise the first failure."""
    params = params or {}
    for predicate, error in checks:
        if not predicate(identity, params):
            err = error()
            who = identity.id if identity else "anonymous"
            logger.warning(f"Access denied for {who}: {err.message}")
            raise err
    return identity


def require(checks: List[Check]):
    """Dependency factory turning a check list into a route guard."""
    async def guard(
        request: Request,
        identity: Identity = Depends(get_current_identity)
    ) -> Identity:
        return authorize(identity, checks, dict(request.path_params))
    return guard


require_login = require(LOGIN_REQUIRED)
require_admin = require(ADMIN_REQUIRED)
require_super_admin = require(SUPER_ADMIN_REQUIRED)
require_self_or_super_admin = require(SELF_OR_SUPER_ADMIN_REQUIRED)
