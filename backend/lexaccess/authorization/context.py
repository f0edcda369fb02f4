"""
Immutable authorization snapshots.

PrincipalSnapshot is what the engine knows about a user at call time.
AuthorizationContext pairs it with explicit scoping values (institution id
from the route, required permission code). Nothing here reads ambient
request state.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from lexaccess.models.institution import MemberType, MembershipStatus


@dataclass(frozen=True)
class MembershipSnapshot:
    institution_id: int
    member_type: str
    status: str
    is_active: bool

    @property
    def grants_institution_admin(self) -> bool:
        return (
            self.is_active
            and self.status == MembershipStatus.APPROVED.value
            and self.member_type == MemberType.ADMIN.value
        )


@dataclass(frozen=True)
class PrincipalSnapshot:
    """
    Read-only view of a user.

    is_global_admin is the explicit flag; role "Admin" alone is a staff admin.
    permission_codes holds codes of active permissions assigned to the user.
    """
    id: int
    is_approved: bool = False
    is_global_admin: bool = False
    role: str = "User"
    institution_id: Optional[int] = None
    permission_codes: FrozenSet[str] = field(default_factory=frozenset)
    memberships: Tuple[MembershipSnapshot, ...] = ()


@dataclass(frozen=True)
class AuthorizationContext:
    """
    Input to every policy predicate.

    principal=None means the identity claim was missing, unparsable, or
    pointed at no user; every predicate then returns False.
    """
    principal: Optional[PrincipalSnapshot] = None
    institution_id: Optional[int] = None
    permission_code: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "AuthorizationContext":
        return cls()

    def scoped(
        self,
        institution_id: Optional[int] = None,
        permission_code: Optional[str] = None,
    ) -> "AuthorizationContext":
        """Copy with different scoping values."""
        return AuthorizationContext(
            principal=self.principal,
            institution_id=institution_id,
            permission_code=permission_code,
        )


def parse_id_claim(raw) -> Optional[int]:
    """Parse a positive integer identity/scope claim. Anything else -> None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    text = str(raw).strip()
    if not text.isdigit():
        return None
    value = int(text)
    return value if value > 0 else None
