"""
Database models read by the entitlement engine.

The engine only reads these tables; administrative collaborators own writes.
The single exception is UsageEvent, written by the usage audit logger.
"""

from lexaccess.models.base import Base, TimestampMixin, utcnow, as_utc
from lexaccess.models.user import User, AdminPermission, UserAdminPermission, STAFF_ADMIN_ROLE
from lexaccess.models.institution import (
    Institution,
    InstitutionMembership,
    MemberType,
    MembershipStatus,
)
from lexaccess.models.product import ContentProduct, LegalDocument, ContentProductDocument
from lexaccess.models.subscription import (
    SubscriptionStatus,
    InstitutionProductSubscription,
    UserProductSubscription,
    UserProductOwnership,
)
from lexaccess.models.tax import VatRate, VatRule
from lexaccess.models.usage import UsageEvent, IP_ADDRESS_MAX_LENGTH, USER_AGENT_MAX_LENGTH

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "as_utc",
    "User",
    "AdminPermission",
    "UserAdminPermission",
    "STAFF_ADMIN_ROLE",
    "Institution",
    "InstitutionMembership",
    "MemberType",
    "MembershipStatus",
    "ContentProduct",
    "LegalDocument",
    "ContentProductDocument",
    "SubscriptionStatus",
    "InstitutionProductSubscription",
    "UserProductSubscription",
    "UserProductOwnership",
    "VatRate",
    "VatRule",
    "UsageEvent",
    "IP_ADDRESS_MAX_LENGTH",
    "USER_AGENT_MAX_LENGTH",
]
