"""
Entitlement value types: the canonical results of access evaluation.

Provides:
- AccessLevel: FULL_ACCESS or PREVIEW_ONLY
- DenyReason: wire-stable codes (None=0, 1001, 1002, 2000)
- CoverageReason: institution coverage guard outcomes
- Decision: result of AccessPolicyEvaluator.evaluate_access()
- CoverageDecision: result of InstitutionCoverageGuard.evaluate_coverage()
- ContentItemSnapshot: read-only view of a document for evaluation

Decision invariants (checked at construction):
- deny_reason is NONE iff access_level is FULL_ACCESS
- a hard block is PREVIEW_ONLY, offers no purchase and carries no quote

All values are short-lived and never persisted.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Tuple

from lexaccess.tax.calculator import TaxQuote


class AccessLevel(str, Enum):
    FULL_ACCESS = "FullAccess"
    PREVIEW_ONLY = "PreviewOnly"


class DenyReason(IntEnum):
    """Client-facing deny codes. Names and values are wire-stable."""
    NONE = 0
    INSTITUTION_SUBSCRIPTION_INACTIVE = 1001
    INSTITUTION_SEAT_LIMIT_EXCEEDED = 1002
    NOT_ENTITLED = 2000

    @property
    def wire_name(self) -> str:
        return _DENY_WIRE_NAMES[self]

    @property
    def is_blocking(self) -> bool:
        """Blocking reasons halt the UI flow until resolved administratively."""
        return self in (
            DenyReason.INSTITUTION_SUBSCRIPTION_INACTIVE,
            DenyReason.INSTITUTION_SEAT_LIMIT_EXCEEDED,
        )


_DENY_WIRE_NAMES = {
    DenyReason.NONE: "None",
    DenyReason.INSTITUTION_SUBSCRIPTION_INACTIVE: "InstitutionSubscriptionInactive",
    DenyReason.INSTITUTION_SEAT_LIMIT_EXCEEDED: "InstitutionSeatLimitExceeded",
    DenyReason.NOT_ENTITLED: "NotEntitled",
}


class CoverageReason(IntEnum):
    """Institution coverage outcomes. Values >= 10 are lock reasons."""
    NONE = 0
    NO_INSTITUTION = 1
    INSTITUTION_INACTIVE = 2
    NO_PRODUCTS = 3
    NO_SUBSCRIPTION_ROW = 4

    SUSPENDED = 10
    EXPIRED = 11
    NOT_STARTED = 12
    NOT_ENTITLED = 13

    @property
    def wire_name(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


class GrantSource(str, Enum):
    """Which grant produced FULL_ACCESS (support/analytics only)."""
    NONE = "none"
    GLOBAL_ADMIN = "global_admin"
    FREE_CONTENT = "free_content"
    PRODUCT_OWNERSHIP = "product_ownership"
    PERSONAL_SUBSCRIPTION = "personal_subscription"
    TRIAL = "trial"
    INSTITUTION_SUBSCRIPTION = "institution_subscription"


class RequiredAction(str, Enum):
    """What the UI should offer next."""
    NONE = "none"
    SIGN_IN = "sign_in"
    BUY = "buy"
    CONTACT_ADMIN = "contact_admin"


@dataclass(frozen=True)
class ContentItemSnapshot:
    """
    Read-only view of a document.

    product_ids holds every product that contains the document (primary
    product plus links). price is the net individual-purchase price.
    is_report marks law reports: subscription-only, and both personal and
    institution subscriptions honor the report grace window.
    """
    id: int
    is_premium: bool
    product_ids: Tuple[int, ...] = ()
    country_code: Optional[str] = None
    allow_individual_purchase: bool = False
    price: Optional[Decimal] = None
    vat_rate_id: Optional[int] = None
    title: Optional[str] = None
    is_report: bool = False

    @property
    def is_purchasable(self) -> bool:
        return self.allow_individual_purchase and self.price is not None and self.price > 0


@dataclass(frozen=True)
class Decision:
    """Outcome of an access evaluation."""
    access_level: AccessLevel
    deny_reason: DenyReason = DenyReason.NONE
    message: Optional[str] = None
    can_purchase_individually: bool = False
    purchase_disabled_reason: Optional[str] = None
    is_hard_block: bool = False
    grant_source: GrantSource = GrantSource.NONE
    required_action: RequiredAction = RequiredAction.NONE
    purchase_quote: Optional[TaxQuote] = None

    def __post_init__(self):
        full = self.access_level == AccessLevel.FULL_ACCESS
        if full != (self.deny_reason == DenyReason.NONE):
            raise ValueError(
                f"deny_reason must be NONE iff access is FULL_ACCESS "
                f"(got {self.access_level.value}/{self.deny_reason.wire_name})"
            )
        if self.is_hard_block:
            if full:
                raise ValueError("A hard block cannot grant FULL_ACCESS")
            if self.can_purchase_individually or self.purchase_quote is not None:
                raise ValueError("A hard block cannot offer a purchase")

    @property
    def is_allowed(self) -> bool:
        return self.access_level == AccessLevel.FULL_ACCESS

    @property
    def audit_reason(self) -> str:
        """Reason string recorded in usage events."""
        return "ALLOWED" if self.is_allowed else self.deny_reason.wire_name

    @classmethod
    def full_access(cls, grant_source: GrantSource) -> "Decision":
        return cls(access_level=AccessLevel.FULL_ACCESS, grant_source=grant_source)

    @classmethod
    def hard_block(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(
            access_level=AccessLevel.PREVIEW_ONLY,
            deny_reason=reason,
            message=message,
            can_purchase_individually=False,
            purchase_disabled_reason=message,
            is_hard_block=True,
            required_action=RequiredAction.CONTACT_ADMIN,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_level": self.access_level.value,
            "deny_reason": self.deny_reason.wire_name,
            "deny_reason_code": int(self.deny_reason),
            "message": self.message,
            "can_purchase_individually": self.can_purchase_individually,
            "purchase_disabled_reason": self.purchase_disabled_reason,
            "is_hard_block": self.is_hard_block,
            "grant_source": self.grant_source.value,
            "required_action": self.required_action.value,
            "purchase_quote": self.purchase_quote.to_dict() if self.purchase_quote else None,
        }


@dataclass(frozen=True)
class CoverageDecision:
    """
    Institution coverage outcome.

    - allowed: a covering subscription grants access now
    - lock: the institution has a stake in the product but is not honoring it
      (callers treat this as a hard stop)
    - deny: institution policy does not apply; other grants may still allow
    """
    allowed: bool
    is_institution_lock: bool
    reason: CoverageReason
    message: Optional[str] = None

    @classmethod
    def allow(cls, message: Optional[str] = None) -> "CoverageDecision":
        return cls(True, False, CoverageReason.NONE, message)

    @classmethod
    def deny(cls, reason: CoverageReason, message: Optional[str] = None) -> "CoverageDecision":
        return cls(False, False, reason, message)

    @classmethod
    def lock(cls, reason: CoverageReason, message: Optional[str] = None) -> "CoverageDecision":
        return cls(False, True, reason, message)
