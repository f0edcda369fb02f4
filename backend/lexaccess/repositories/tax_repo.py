"""
Read store for VAT rates and rules.
"""

import logging
from typing import List, Optional

from lexaccess.models.tax import VatRate, VatRule
from lexaccess.repositories.base_repo import BaseReadStore, CancellationToken

logger = logging.getLogger(__name__)


class TaxStore(BaseReadStore):
    """Reads VatRate / VatRule rows."""

    def get_rate(
        self,
        vat_rate_id: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[VatRate]:
        return self._read(
            "tax.get_rate",
            lambda: self.db.get(VatRate, vat_rate_id),
            cancel,
        )

    def get_rate_by_code(
        self,
        code: str,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[VatRate]:
        return self._read(
            "tax.get_rate_by_code",
            lambda: self.db.query(VatRate).filter(VatRate.code == code).first(),
            cancel,
        )

    def list_active_rules(
        self,
        purpose: str,
        cancel: Optional[CancellationToken] = None,
    ) -> List[VatRule]:
        """Active rules for a purpose, highest priority first. Windows are checked by the caller."""
        return self._read(
            "tax.list_active_rules",
            lambda: (
                self.db.query(VatRule)
                .filter(
                    VatRule.purpose == purpose,
                    VatRule.is_active == True,  # noqa: E712
                )
                .order_by(VatRule.priority.desc(), VatRule.id.asc())
                .all()
            ),
            cancel,
        )
