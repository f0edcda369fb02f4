"""
Access policy evaluator: decides FULL_ACCESS vs PREVIEW_ONLY for a document.

Precedence (first match wins):
1. Global admin                                   -> FULL_ACCESS
2. Free (non-premium) document                    -> FULL_ACCESS
3. Anonymous principal                            -> PREVIEW_ONLY, sign in
4. Personal grants: ownership, then an active
   personal subscription or trial                 -> FULL_ACCESS
   (reports: subscription or trial only, with the
   report grace window on the end date)
5. Institution-linked principal:
   institution inactive                           -> hard block
   institution row missing                        -> purchases disabled,
                                                     fall through
   seat limit exceeded (when enabled)             -> hard block
   coverage allowed                               -> FULL_ACCESS
   coverage lock                                  -> hard block
   no subscription row                            -> fall through
6. Not entitled                                   -> PREVIEW_ONLY, maybe purchase

Personal grants come before institution gates: an institution lock only
stops access flowing from the institution, never a grant the user paid for.

Evaluation only reads. Store failures propagate as EntitlementStoreError and
are never turned into an allow or a deny.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Tuple

from lexaccess.authorization.context import PrincipalSnapshot
from lexaccess.config.settings import AccessPolicySettings
from lexaccess.entitlements.coverage import MSG_EXPIRED, InstitutionCoverageGuard
from lexaccess.entitlements.errors import InvalidEvaluationInput
from lexaccess.entitlements.models import (
    AccessLevel,
    ContentItemSnapshot,
    Decision,
    DenyReason,
    GrantSource,
    RequiredAction,
)
from lexaccess.institutions.seats import InstitutionSeatGuard
from lexaccess.models.base import as_utc, utcnow
from lexaccess.tax.calculator import TaxCalculator

if TYPE_CHECKING:
    from lexaccess.repositories.base_repo import CancellationToken
    from lexaccess.repositories.entitlement_repo import EntitlementStore

logger = logging.getLogger(__name__)

MSG_NOT_ENTITLED = "You do not have access to this document."
MSG_SIGN_IN = "Sign in to purchase this document."
MSG_INSTITUTION_INACTIVE = "Your institution is inactive. Please contact your administrator."
MSG_SEAT_LIMIT = "Institution seat limit exceeded. Please contact your administrator."
MSG_INSTITUTION_PURCHASES_DISABLED = (
    "Purchases are disabled for institution accounts. Please contact your administrator."
)
MSG_NOT_FOR_SALE = "This document is not available for individual purchase."


class AccessPolicyEvaluator:
    """
    Combines personal grants, institution gates and purchase policy into a
    single Decision.
    """

    def __init__(
        self,
        store: "EntitlementStore",
        tax_calculator: TaxCalculator,
        settings: Optional[AccessPolicySettings] = None,
    ):
        self._store = store
        self._tax = tax_calculator
        self._settings = settings or AccessPolicySettings()
        self._coverage = InstitutionCoverageGuard(store)
        self._seats = InstitutionSeatGuard(store)

    @property
    def settings(self) -> AccessPolicySettings:
        return self._settings

    def evaluate_access(
        self,
        principal: Optional[PrincipalSnapshot],
        item: ContentItemSnapshot,
        now: Optional[datetime] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> Decision:
        if item is None:
            raise InvalidEvaluationInput("item", "a content item is required")

        now = as_utc(now) or utcnow()
        decision = self._decide(principal, item, now, cancel)

        logger.info(
            "entitlements.decision",
            extra={
                "user_id": principal.id if principal else None,
                "institution_id": principal.institution_id if principal else None,
                "document_id": item.id,
                "access_level": decision.access_level.value,
                "deny_reason": decision.deny_reason.wire_name,
                "grant_source": decision.grant_source.value,
                "is_hard_block": decision.is_hard_block,
            },
        )
        return decision

    def evaluate_document(
        self,
        user_id: Optional[int],
        document_id: int,
        now: Optional[datetime] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> Optional[Decision]:
        """
        Load snapshots by id and evaluate. Returns None if the document does
        not exist; an unknown user is evaluated as anonymous.
        """
        item = self._store.load_content_item(document_id, cancel)
        if item is None:
            return None
        principal = self._store.load_principal(user_id, cancel) if user_id else None
        return self.evaluate_access(principal, item, now=now, cancel=cancel)

    # ------------------------------------------------------------------
    # Precedence chain
    # ------------------------------------------------------------------

    def _decide(
        self,
        principal: Optional[PrincipalSnapshot],
        item: ContentItemSnapshot,
        now: datetime,
        cancel: Optional["CancellationToken"],
    ) -> Decision:
        if principal is not None and principal.is_global_admin:
            return Decision.full_access(GrantSource.GLOBAL_ADMIN)

        if not item.is_premium:
            return Decision.full_access(GrantSource.FREE_CONTENT)

        if principal is None:
            return Decision(
                access_level=AccessLevel.PREVIEW_ONLY,
                deny_reason=DenyReason.NOT_ENTITLED,
                message=MSG_NOT_ENTITLED,
                can_purchase_individually=False,
                purchase_disabled_reason=MSG_SIGN_IN,
                required_action=RequiredAction.SIGN_IN,
            )

        personal = self._personal_grant(principal, item, now, cancel)
        if personal is not None:
            return Decision.full_access(personal)

        purchase_blocked_reason = None
        if principal.institution_id is not None:
            institution_decision, purchase_blocked_reason = self._institution_gate(
                principal.institution_id, item, now, cancel,
            )
            if institution_decision is not None:
                return institution_decision

        return self._not_entitled(item, purchase_blocked_reason, now, cancel)

    def _personal_grant(
        self,
        principal: PrincipalSnapshot,
        item: ContentItemSnapshot,
        now: datetime,
        cancel: Optional["CancellationToken"],
    ) -> Optional[GrantSource]:
        if not item.product_ids:
            return None

        # Reports are subscription-only: ownership never unlocks them.
        if not item.is_report and self._store.owns_any_product(principal.id, item.product_ids, cancel):
            return GrantSource.PRODUCT_OWNERSHIP

        subscription = self._store.find_active_personal_subscription(
            principal.id, item.product_ids, now, cancel,
            grace_days=self._report_grace_days(item),
        )
        if subscription is not None:
            return GrantSource.TRIAL if subscription.is_trial else GrantSource.PERSONAL_SUBSCRIPTION
        return None

    def _report_grace_days(self, item: ContentItemSnapshot) -> int:
        return self._settings.report_grace_days if item.is_report else 0

    def _institution_gate(
        self,
        institution_id: int,
        item: ContentItemSnapshot,
        now: datetime,
        cancel: Optional["CancellationToken"],
    ) -> Tuple[Optional[Decision], Optional[str]]:
        """
        Returns (decision, purchase_blocked_reason). decision is None when
        institution policy does not apply and evaluation should continue.
        """
        institution = self._store.get_institution(institution_id, cancel)

        purchase_blocked_reason = None
        if institution is None or not institution.allow_individual_purchases_when_inactive:
            purchase_blocked_reason = MSG_INSTITUTION_PURCHASES_DISABLED

        # A dangling institution id is treated as active; coverage then denies without a lock.
        if institution is not None and not institution.is_active:
            return (
                Decision.hard_block(DenyReason.INSTITUTION_SUBSCRIPTION_INACTIVE, MSG_INSTITUTION_INACTIVE),
                purchase_blocked_reason,
            )

        if self._settings.seat_checks_enabled:
            usage = self._seats.check(institution_id, cancel)
            if usage is not None and usage.exceeded:
                return (
                    Decision.hard_block(
                        DenyReason.INSTITUTION_SEAT_LIMIT_EXCEEDED,
                        f"{MSG_SEAT_LIMIT} {usage.describe()}",
                    ),
                    purchase_blocked_reason,
                )

        coverage = self._coverage.evaluate_coverage(
            institution_id, item.product_ids, now,
            grace_days=self._report_grace_days(item), cancel=cancel,
        )
        if coverage.allowed:
            return Decision.full_access(GrantSource.INSTITUTION_SUBSCRIPTION), purchase_blocked_reason
        if coverage.is_institution_lock:
            return (
                Decision.hard_block(
                    DenyReason.INSTITUTION_SUBSCRIPTION_INACTIVE,
                    coverage.message or MSG_EXPIRED,
                ),
                purchase_blocked_reason,
            )
        return None, purchase_blocked_reason

    def _not_entitled(
        self,
        item: ContentItemSnapshot,
        purchase_blocked_reason: Optional[str],
        now: datetime,
        cancel: Optional["CancellationToken"],
    ) -> Decision:
        if purchase_blocked_reason is not None:
            return Decision(
                access_level=AccessLevel.PREVIEW_ONLY,
                deny_reason=DenyReason.NOT_ENTITLED,
                message=MSG_NOT_ENTITLED,
                can_purchase_individually=False,
                purchase_disabled_reason=purchase_blocked_reason,
                required_action=RequiredAction.CONTACT_ADMIN,
            )

        if not item.is_purchasable:
            return Decision(
                access_level=AccessLevel.PREVIEW_ONLY,
                deny_reason=DenyReason.NOT_ENTITLED,
                message=MSG_NOT_ENTITLED,
                can_purchase_individually=False,
                purchase_disabled_reason=MSG_NOT_FOR_SALE,
            )

        quote = self._tax.quote(
            item.price,
            self._settings.individual_purchase_purpose,
            country_code=item.country_code or self._settings.default_country_code,
            explicit_vat_rate_id=item.vat_rate_id,
            now=now,
            cancel=cancel,
        )
        return Decision(
            access_level=AccessLevel.PREVIEW_ONLY,
            deny_reason=DenyReason.NOT_ENTITLED,
            message=MSG_NOT_ENTITLED,
            can_purchase_individually=True,
            required_action=RequiredAction.BUY,
            purchase_quote=quote,
        )
