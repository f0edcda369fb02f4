"""
Tests for authorization policy predicates.

Validates:
- Global bypass uses the explicit flag, never the role label
- Permission checks require staff admin role plus an active assignment
- Institution admin authority is scoped to one institution
- Registry lookups fail closed
- Context building from raw claims fails closed
"""

import logging

import pytest

from lexaccess.authorization import (
    POLICY_REGISTRY,
    USERS_APPROVE_PERMISSION,
    AuthorizationContext,
    MembershipSnapshot,
    PolicyNames,
    PrincipalSnapshot,
    approved_user,
    build_authorization_context,
    can_approve_institution_users,
    evaluate_policy,
    global_admin,
    has_permission,
    institution_admin,
    parse_id_claim,
)
from lexaccess.models.institution import MemberType, MembershipStatus
from lexaccess.repositories.entitlement_repo import EntitlementStore


def _ctx(institution_id=None, permission_code=None, **principal_kwargs):
    principal_kwargs.setdefault("id", 1)
    return AuthorizationContext(
        principal=PrincipalSnapshot(**principal_kwargs),
        institution_id=institution_id,
        permission_code=permission_code,
    )


def _admin_membership(institution_id, status=MembershipStatus.APPROVED, is_active=True,
                      member_type=MemberType.ADMIN):
    return MembershipSnapshot(
        institution_id=institution_id,
        member_type=member_type.value,
        status=status.value,
        is_active=is_active,
    )


# =============================================================================
# Individual predicates
# =============================================================================

class TestGlobalAdmin:

    def test_flag_grants(self):
        assert global_admin(_ctx(is_global_admin=True))

    def test_admin_role_alone_does_not_grant(self):
        assert not global_admin(_ctx(role="Admin"))

    def test_anonymous(self):
        assert not global_admin(AuthorizationContext.anonymous())


class TestApprovedUser:

    def test_approved(self):
        assert approved_user(_ctx(is_approved=True))

    def test_unapproved(self):
        assert not approved_user(_ctx(is_approved=False))

    def test_anonymous(self):
        assert not approved_user(AuthorizationContext.anonymous())


class TestHasPermission:

    def test_staff_admin_with_assignment(self):
        ctx = _ctx(role="Admin", permission_codes=frozenset({USERS_APPROVE_PERMISSION}))
        assert has_permission(ctx, USERS_APPROVE_PERMISSION)

    def test_role_compared_case_insensitively(self):
        ctx = _ctx(role="admin", permission_codes=frozenset({"docs.edit"}))
        assert has_permission(ctx, "docs.edit")

    def test_non_admin_role_with_assignment_denied(self):
        ctx = _ctx(role="User", permission_codes=frozenset({"docs.edit"}))
        assert not has_permission(ctx, "docs.edit")

    def test_staff_admin_without_assignment_denied(self):
        assert not has_permission(_ctx(role="Admin"), "docs.edit")

    def test_global_admin_bypass(self):
        assert has_permission(_ctx(is_global_admin=True), "anything")

    def test_code_from_context(self):
        ctx = _ctx(role="Admin", permission_codes=frozenset({"docs.edit"}), permission_code="docs.edit")
        assert has_permission(ctx)

    def test_missing_code_denied(self):
        assert not has_permission(_ctx(role="Admin", permission_codes=frozenset({"docs.edit"})))


class TestInstitutionAdmin:

    def test_scoped_admin(self):
        ctx = _ctx(memberships=(_admin_membership(7),), institution_id=7)
        assert institution_admin(ctx)

    def test_admin_of_other_institution_denied(self):
        ctx = _ctx(memberships=(_admin_membership(7),), institution_id=8)
        assert not institution_admin(ctx)

    def test_explicit_institution_id_overrides_context(self):
        ctx = _ctx(memberships=(_admin_membership(7),), institution_id=8)
        assert institution_admin(ctx, 7)

    @pytest.mark.parametrize("membership", [
        _admin_membership(7, status=MembershipStatus.PENDING),
        _admin_membership(7, is_active=False),
        _admin_membership(7, member_type=MemberType.STAFF),
    ])
    def test_membership_must_be_approved_active_admin(self, membership):
        ctx = _ctx(memberships=(membership,), institution_id=7)
        assert not institution_admin(ctx)

    def test_missing_scope_denied(self):
        ctx = _ctx(memberships=(_admin_membership(7),))
        assert not institution_admin(ctx)

    def test_global_admin_bypass(self):
        assert institution_admin(_ctx(is_global_admin=True), 99)


class TestCanApproveInstitutionUsers:

    def test_permission_holder(self):
        ctx = _ctx(role="Admin", permission_codes=frozenset({USERS_APPROVE_PERMISSION}))
        assert can_approve_institution_users(ctx, 3)

    def test_institution_admin_for_same_institution(self):
        ctx = _ctx(memberships=(_admin_membership(3),))
        assert can_approve_institution_users(ctx, 3)

    def test_institution_admin_for_other_institution_denied(self):
        ctx = _ctx(memberships=(_admin_membership(3),))
        assert not can_approve_institution_users(ctx, 4)

    def test_plain_user_denied(self):
        assert not can_approve_institution_users(_ctx(), 3)


# =============================================================================
# Registry
# =============================================================================

class TestRegistry:

    def test_all_policy_names_registered(self):
        for name in (
            PolicyNames.GLOBAL_ADMIN,
            PolicyNames.APPROVED_USER,
            PolicyNames.HAS_PERMISSION,
            PolicyNames.INSTITUTION_ADMIN,
            PolicyNames.CAN_APPROVE_INSTITUTION_USERS,
        ):
            assert name in POLICY_REGISTRY

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            POLICY_REGISTRY["Custom"] = lambda ctx: True

    def test_evaluate_by_name(self):
        ctx = _ctx(memberships=(_admin_membership(5),), institution_id=5)
        assert evaluate_policy(PolicyNames.INSTITUTION_ADMIN, ctx)
        assert not evaluate_policy(PolicyNames.GLOBAL_ADMIN, ctx)

    def test_unknown_policy_denied(self, caplog):
        with caplog.at_level(logging.WARNING, logger="lexaccess.authorization.predicates"):
            assert not evaluate_policy("IsSuperUser", _ctx(is_global_admin=True))
        assert any(r.getMessage() == "authorization.unknown_policy" for r in caplog.records)

    def test_anonymous_denied_everywhere(self):
        ctx = AuthorizationContext.anonymous().scoped(institution_id=1, permission_code="x")
        assert not any(evaluate_policy(name, ctx) for name in POLICY_REGISTRY)


# =============================================================================
# Claim parsing and context building
# =============================================================================

class TestParseIdClaim:

    @pytest.mark.parametrize("raw,expected", [
        ("42", 42),
        (" 7 ", 7),
        (15, 15),
        ("0", None),
        (-3, None),
        ("abc", None),
        ("4.2", None),
        ("", None),
        (None, None),
        (True, None),
    ])
    def test_parse(self, raw, expected):
        assert parse_id_claim(raw) == expected


class TestBuildAuthorizationContext:

    def test_loads_principal_with_permissions_and_memberships(self, factory, db_session):
        institution = factory.institution()
        user = factory.user(role="Admin")
        factory.permission(user, USERS_APPROVE_PERMISSION)
        factory.permission(user, "retired.permission", is_active=False)
        factory.membership(institution, user, member_type=MemberType.ADMIN)

        ctx = build_authorization_context(
            EntitlementStore(db_session), str(user.id), institution_id=str(institution.id),
        )

        assert ctx.principal.id == user.id
        assert ctx.principal.permission_codes == frozenset({USERS_APPROVE_PERMISSION})
        assert ctx.institution_id == institution.id
        assert institution_admin(ctx)
        assert can_approve_institution_users(ctx)

    def test_unparsable_claim_is_anonymous(self, db_session):
        ctx = build_authorization_context(EntitlementStore(db_session), "not-a-number")
        assert ctx.principal is None
        assert not approved_user(ctx)

    def test_unknown_user_is_anonymous(self, db_session):
        ctx = build_authorization_context(EntitlementStore(db_session), "999999")
        assert ctx.principal is None

    def test_unparsable_scope_is_none(self, factory, db_session):
        user = factory.user()
        ctx = build_authorization_context(EntitlementStore(db_session), user.id, institution_id="x")
        assert ctx.institution_id is None
