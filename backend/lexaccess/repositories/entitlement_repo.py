"""
Read store for entitlement state.

Loads principal/document snapshots and the grant rows the evaluator needs.
Date windows are compared in Python on UTC-normalized values so behavior is
identical across backends.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func

from lexaccess.authorization.context import MembershipSnapshot, PrincipalSnapshot
from lexaccess.entitlements.models import ContentItemSnapshot
from lexaccess.models.base import as_utc
from lexaccess.models.institution import (
    Institution,
    InstitutionMembership,
    MemberType,
    MembershipStatus,
)
from lexaccess.models.product import ContentProductDocument, LegalDocument
from lexaccess.models.subscription import (
    InstitutionProductSubscription,
    SubscriptionStatus,
    UserProductOwnership,
    UserProductSubscription,
)
from lexaccess.models.user import AdminPermission, User, UserAdminPermission
from lexaccess.repositories.base_repo import BaseReadStore, CancellationToken

logger = logging.getLogger(__name__)


class EntitlementStore(BaseReadStore):
    """Reads principals, documents, grants and institution state."""

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def load_principal(
        self,
        user_id: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[PrincipalSnapshot]:
        user = self._read("principal.get_user", lambda: self.db.get(User, user_id), cancel)
        if user is None:
            return None

        codes = self._read(
            "principal.permission_codes",
            lambda: [
                row[0]
                for row in (
                    self.db.query(AdminPermission.code)
                    .join(UserAdminPermission, UserAdminPermission.permission_id == AdminPermission.id)
                    .filter(
                        UserAdminPermission.user_id == user_id,
                        AdminPermission.is_active == True,  # noqa: E712
                    )
                    .all()
                )
            ],
            cancel,
        )
        memberships = self._read(
            "principal.memberships",
            lambda: (
                self.db.query(InstitutionMembership)
                .filter(InstitutionMembership.user_id == user_id)
                .all()
            ),
            cancel,
        )

        return PrincipalSnapshot(
            id=user.id,
            is_approved=bool(user.is_approved),
            is_global_admin=bool(user.is_global_admin),
            role=user.role or "User",
            institution_id=user.institution_id,
            permission_codes=frozenset(codes),
            memberships=tuple(
                MembershipSnapshot(
                    institution_id=m.institution_id,
                    member_type=m.member_type,
                    status=m.status,
                    is_active=bool(m.is_active),
                )
                for m in memberships
            ),
        )

    def load_content_item(
        self,
        document_id: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[ContentItemSnapshot]:
        document = self._read(
            "document.get",
            lambda: self.db.get(LegalDocument, document_id),
            cancel,
        )
        if document is None:
            return None

        return ContentItemSnapshot(
            id=document.id,
            is_premium=bool(document.is_premium),
            product_ids=self.product_ids_for_document(document, cancel),
            country_code=document.country_code,
            allow_individual_purchase=bool(document.allow_public_purchase),
            price=Decimal(str(document.public_price)) if document.public_price is not None else None,
            vat_rate_id=document.vat_rate_id,
            title=document.title,
            is_report=bool(document.is_report),
        )

    def product_ids_for_document(
        self,
        document: LegalDocument,
        cancel: Optional[CancellationToken] = None,
    ) -> Tuple[int, ...]:
        """Primary product first, then linked products, de-duplicated."""
        linked = self._read(
            "document.product_links",
            lambda: [
                row[0]
                for row in (
                    self.db.query(ContentProductDocument.content_product_id)
                    .filter(ContentProductDocument.legal_document_id == document.id)
                    .order_by(ContentProductDocument.content_product_id)
                    .all()
                )
            ],
            cancel,
        )
        ids: List[int] = []
        if document.content_product_id is not None:
            ids.append(document.content_product_id)
        for product_id in linked:
            if product_id not in ids:
                ids.append(product_id)
        return tuple(ids)

    # ------------------------------------------------------------------
    # Personal grants
    # ------------------------------------------------------------------

    def owns_any_product(
        self,
        user_id: int,
        product_ids: Sequence[int],
        cancel: Optional[CancellationToken] = None,
    ) -> bool:
        if not product_ids:
            return False
        return self._read(
            "grants.ownership",
            lambda: (
                self.db.query(UserProductOwnership.id)
                .filter(
                    UserProductOwnership.user_id == user_id,
                    UserProductOwnership.content_product_id.in_(list(product_ids)),
                )
                .first()
                is not None
            ),
            cancel,
        )

    def find_active_personal_subscription(
        self,
        user_id: int,
        product_ids: Sequence[int],
        now_utc: datetime,
        cancel: Optional[CancellationToken] = None,
        grace_days: int = 0,
    ) -> Optional[UserProductSubscription]:
        """
        First ACTIVE personal subscription or trial covering now_utc
        (start <= now and end >= now - grace_days). Paid subscriptions are
        preferred over trials.
        """
        if not product_ids:
            return None
        rows = self._read(
            "grants.personal_subscriptions",
            lambda: (
                self.db.query(UserProductSubscription)
                .filter(
                    UserProductSubscription.user_id == user_id,
                    UserProductSubscription.content_product_id.in_(list(product_ids)),
                    UserProductSubscription.status == SubscriptionStatus.ACTIVE.value,
                )
                .order_by(UserProductSubscription.is_trial.asc(), UserProductSubscription.id.asc())
                .all()
            ),
            cancel,
        )
        cutoff = now_utc - timedelta(days=grace_days)
        for row in rows:
            if as_utc(row.start_date) <= now_utc and as_utc(row.end_date) >= cutoff:
                return row
        return None

    # ------------------------------------------------------------------
    # Institution state
    # ------------------------------------------------------------------

    def get_institution(
        self,
        institution_id: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[Institution]:
        return self._read(
            "institution.get",
            lambda: self.db.get(Institution, institution_id),
            cancel,
        )

    def list_institution_subscriptions(
        self,
        institution_id: int,
        product_ids: Sequence[int],
        cancel: Optional[CancellationToken] = None,
    ) -> List[InstitutionProductSubscription]:
        return self._read(
            "institution.subscriptions",
            lambda: (
                self.db.query(InstitutionProductSubscription)
                .filter(
                    InstitutionProductSubscription.institution_id == institution_id,
                    InstitutionProductSubscription.content_product_id.in_(list(product_ids)),
                )
                .all()
            ),
            cancel,
        )

    def count_seat_usage(
        self,
        institution_id: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Tuple[int, int]:
        """
        (students, staff) consuming seats: approved + active memberships.
        Staff seats are shared by STAFF and ADMIN members.
        """
        rows = self._read(
            "institution.seat_usage",
            lambda: (
                self.db.query(InstitutionMembership.member_type, func.count(InstitutionMembership.id))
                .filter(
                    InstitutionMembership.institution_id == institution_id,
                    InstitutionMembership.is_active == True,  # noqa: E712
                    InstitutionMembership.status == MembershipStatus.APPROVED.value,
                )
                .group_by(InstitutionMembership.member_type)
                .all()
            ),
            cancel,
        )
        counts = {member_type: count for member_type, count in rows}
        students = counts.get(MemberType.STUDENT.value, 0)
        staff = counts.get(MemberType.STAFF.value, 0) + counts.get(MemberType.ADMIN.value, 0)
        return students, staff
