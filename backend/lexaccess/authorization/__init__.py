"""
Authorization policies: immutable contexts plus a registry of predicates.
"""

from lexaccess.authorization.builder import build_authorization_context
from lexaccess.authorization.context import (
    AuthorizationContext,
    MembershipSnapshot,
    PrincipalSnapshot,
    parse_id_claim,
)
from lexaccess.authorization.predicates import (
    POLICY_REGISTRY,
    USERS_APPROVE_PERMISSION,
    PolicyNames,
    approved_user,
    can_approve_institution_users,
    evaluate_policy,
    global_admin,
    has_permission,
    institution_admin,
)

__all__ = [
    "AuthorizationContext",
    "MembershipSnapshot",
    "PrincipalSnapshot",
    "parse_id_claim",
    "build_authorization_context",
    "POLICY_REGISTRY",
    "USERS_APPROVE_PERMISSION",
    "PolicyNames",
    "approved_user",
    "can_approve_institution_users",
    "evaluate_policy",
    "global_admin",
    "has_permission",
    "institution_admin",
]
