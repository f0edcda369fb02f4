"""
Institution coverage guard.

Decides whether an institution's product subscriptions grant access to a
document right now, and distinguishes two kinds of "no":

- deny: institution policy does not apply (no institution, inactive
  institution, no subscription row for these products). Other grants may
  still allow access.
- lock: the institution has a subscription row for the products but it is
  not honoring it (suspended, expired, not started). Callers treat a lock
  as a hard stop.

Lock precedence: Suspended > Expired > NotStarted > NotEntitled.
End dates are inclusive.
"""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional, Sequence

from lexaccess.entitlements.errors import InvalidEvaluationInput
from lexaccess.entitlements.models import CoverageDecision, CoverageReason
from lexaccess.models.base import as_utc
from lexaccess.models.subscription import SubscriptionStatus

if TYPE_CHECKING:
    from lexaccess.repositories.base_repo import CancellationToken
    from lexaccess.repositories.entitlement_repo import EntitlementStore

logger = logging.getLogger(__name__)

MAX_GRACE_DAYS = 365

MSG_INSTITUTION_INACTIVE = "Institution is inactive."
MSG_ACTIVE = "Institution subscription active."
MSG_SUSPENDED = "Institution subscription is suspended. Please contact your administrator."
MSG_EXPIRED = "Institution subscription expired. Please contact your administrator."
MSG_NOT_STARTED = "Institution subscription is not active yet. Please contact your administrator."
MSG_NOT_ENTITLED = "Institution subscription is not active. Please contact your administrator."


def clamp_grace_days(grace_days: Optional[int]) -> int:
    if not grace_days or grace_days < 0:
        return 0
    return min(int(grace_days), MAX_GRACE_DAYS)


class InstitutionCoverageGuard:
    """Evaluates institution subscriptions against a set of products."""

    def __init__(self, store: "EntitlementStore"):
        self._store = store

    def evaluate_coverage(
        self,
        institution_id: Optional[int],
        product_ids: Sequence[int],
        now_utc: datetime,
        grace_days: int = 0,
        cancel: Optional["CancellationToken"] = None,
    ) -> CoverageDecision:
        if product_ids is None:
            raise InvalidEvaluationInput("product_ids", "must be a collection, got None")
        if now_utc is None:
            raise InvalidEvaluationInput("now_utc", "must be a datetime, got None")

        if institution_id is None or institution_id <= 0:
            return CoverageDecision.deny(CoverageReason.NO_INSTITUTION)

        product_ids = list(product_ids)
        if not product_ids:
            return CoverageDecision.deny(CoverageReason.NO_PRODUCTS)

        now = as_utc(now_utc)
        grace_end = now - timedelta(days=clamp_grace_days(grace_days))

        institution = self._store.get_institution(institution_id, cancel)
        if institution is None or not institution.is_active:
            return CoverageDecision.deny(
                CoverageReason.INSTITUTION_INACTIVE,
                MSG_INSTITUTION_INACTIVE,
            )

        rows = self._store.list_institution_subscriptions(institution_id, product_ids, cancel)
        if not rows:
            return CoverageDecision.deny(CoverageReason.NO_SUBSCRIPTION_ROW)

        windows = [(row.status, as_utc(row.start_date), as_utc(row.end_date)) for row in rows]

        if any(
            status == SubscriptionStatus.ACTIVE.value and start <= now and end >= grace_end
            for status, start, end in windows
        ):
            return CoverageDecision.allow(MSG_ACTIVE)

        decision = self._lock_for(windows, now, grace_end)
        logger.info(
            "entitlements.institution_lock",
            extra={
                "institution_id": institution_id,
                "product_ids": product_ids,
                "reason": decision.reason.wire_name,
            },
        )
        return decision

    @staticmethod
    def _lock_for(windows, now: datetime, grace_end: datetime) -> CoverageDecision:
        if any(status == SubscriptionStatus.SUSPENDED.value for status, _, _ in windows):
            return CoverageDecision.lock(CoverageReason.SUSPENDED, MSG_SUSPENDED)

        if any(
            status == SubscriptionStatus.EXPIRED.value or end < grace_end
            for status, _, end in windows
        ):
            return CoverageDecision.lock(CoverageReason.EXPIRED, MSG_EXPIRED)

        if any(
            status == SubscriptionStatus.PENDING.value or start > now
            for status, start, _ in windows
        ):
            return CoverageDecision.lock(CoverageReason.NOT_STARTED, MSG_NOT_STARTED)

        return CoverageDecision.lock(CoverageReason.NOT_ENTITLED, MSG_NOT_ENTITLED)


def evaluate_institution_coverage(
    store: "EntitlementStore",
    institution_id: Optional[int],
    product_ids: Sequence[int],
    now_utc: datetime,
    grace_days: int = 0,
    cancel: Optional["CancellationToken"] = None,
) -> CoverageDecision:
    """Functional shortcut for InstitutionCoverageGuard(store).evaluate_coverage()."""
    return InstitutionCoverageGuard(store).evaluate_coverage(
        institution_id, product_ids, now_utc, grace_days=grace_days, cancel=cancel,
    )
