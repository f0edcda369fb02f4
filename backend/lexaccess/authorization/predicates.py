"""
Authorization policy predicates.

Every predicate is a pure function of an AuthorizationContext and follows the
same precedence: global bypass -> explicit permission -> scoped membership -> deny.

Predicates fail closed: a missing principal, missing scope id or missing
record yields False, never an exception.

Usage:
    from lexaccess.authorization import PolicyNames, evaluate_policy

    ctx = build_authorization_context(store, user_id_claim, institution_id=route_id)
    if not evaluate_policy(PolicyNames.INSTITUTION_ADMIN, ctx):
        ...
"""

import logging
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from lexaccess.authorization.context import AuthorizationContext
from lexaccess.models.user import STAFF_ADMIN_ROLE

logger = logging.getLogger(__name__)

USERS_APPROVE_PERMISSION = "users.approve"

Predicate = Callable[[AuthorizationContext], bool]


class PolicyNames:
    """Central place for policy name constants."""
    GLOBAL_ADMIN = "IsGlobalAdmin"
    APPROVED_USER = "RequireApprovedUser"
    HAS_PERMISSION = "HasPermission"
    INSTITUTION_ADMIN = "IsInstitutionAdmin"
    CAN_APPROVE_INSTITUTION_USERS = "CanApproveInstitutionUsers"


def global_admin(ctx: AuthorizationContext) -> bool:
    """True only for the explicit global-admin flag. Role "Admin" is not enough."""
    return ctx.principal is not None and ctx.principal.is_global_admin


def approved_user(ctx: AuthorizationContext) -> bool:
    return ctx.principal is not None and ctx.principal.is_approved


def has_permission(ctx: AuthorizationContext, code: Optional[str] = None) -> bool:
    """
    Global admin, or staff admin (role "Admin") holding an active assignment
    for the permission code. The code defaults to ctx.permission_code.
    """
    if global_admin(ctx):
        return True
    principal = ctx.principal
    code = code if code is not None else ctx.permission_code
    if principal is None or not code:
        return False
    if (principal.role or "").strip().lower() != STAFF_ADMIN_ROLE.lower():
        return False
    return code in principal.permission_codes


def institution_admin(ctx: AuthorizationContext, institution_id: Optional[int] = None) -> bool:
    """
    Global admin, or an approved, active ADMIN membership for the scoped
    institution (defaults to ctx.institution_id).
    """
    if global_admin(ctx):
        return True
    principal = ctx.principal
    institution_id = institution_id if institution_id is not None else ctx.institution_id
    if principal is None or institution_id is None or institution_id <= 0:
        return False
    return any(
        m.institution_id == institution_id and m.grants_institution_admin
        for m in principal.memberships
    )


def can_approve_institution_users(
    ctx: AuthorizationContext,
    institution_id: Optional[int] = None,
) -> bool:
    return (
        global_admin(ctx)
        or has_permission(ctx, USERS_APPROVE_PERMISSION)
        or institution_admin(ctx, institution_id)
    )


POLICY_REGISTRY: Mapping[str, Predicate] = MappingProxyType({
    PolicyNames.GLOBAL_ADMIN: global_admin,
    PolicyNames.APPROVED_USER: approved_user,
    PolicyNames.HAS_PERMISSION: has_permission,
    PolicyNames.INSTITUTION_ADMIN: institution_admin,
    PolicyNames.CAN_APPROVE_INSTITUTION_USERS: can_approve_institution_users,
})


def evaluate_policy(name: str, ctx: AuthorizationContext) -> bool:
    """
    Evaluate a registered policy. Unknown names and predicate failures deny.
    """
    predicate = POLICY_REGISTRY.get(name)
    if predicate is None:
        logger.warning("authorization.unknown_policy", extra={"policy": name})
        return False
    try:
        allowed = bool(predicate(ctx))
    except Exception:
        logger.error(
            "authorization.predicate_failed",
            extra={"policy": name},
            exc_info=True,
        )
        return False

    if not allowed:
        logger.debug(
            "authorization.denied",
            extra={
                "policy": name,
                "user_id": ctx.principal.id if ctx.principal else None,
                "institution_id": ctx.institution_id,
            },
        )
    return allowed
