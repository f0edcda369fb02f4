"""
Tax rule resolution and VAT quotes.

Resolution order for resolve_vat_rate(purpose, country_code, explicit_vat_rate_id):
    1. Explicit rate (e.g. set on the document), if usable
    2. Active VatRule for the purpose, effective now, highest priority first;
       at equal priority an exact country beats "*", which beats NULL (any).
       The first rule whose rate is usable wins.
    3. Hard default: purpose RegistrationFee in KE -> rate coded VAT16
    4. None, meaning 0% VAT

"Usable" = active and now within [effective_from, effective_to], either bound open.

Step 4 is a fallback, not an error: commerce proceeds at 0%. It is logged at
WARNING and reported to the optional on_zero_vat_fallback listener so that
configuration gaps get noticed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, List, Optional

from lexaccess.models.base import as_utc, utcnow
from lexaccess.models.tax import VatRate, VatRule
from lexaccess.tax.vat_math import Amount, from_net, to_decimal

if TYPE_CHECKING:
    from lexaccess.repositories.base_repo import CancellationToken
    from lexaccess.repositories.tax_repo import TaxStore

logger = logging.getLogger(__name__)

REGISTRATION_FEE_PURPOSE = "RegistrationFee"
PUBLIC_DOCUMENT_PURCHASE_PURPOSE = "PublicLegalDocumentPurchase"
KENYA_COUNTRY_CODE = "KE"
KENYA_DEFAULT_VAT_CODE = "VAT16"
NO_VAT_CODE = "VAT0"
WILDCARD_COUNTRY = "*"

ZeroVatListener = Callable[[str, Optional[str], List[str]], None]


@dataclass(frozen=True)
class TaxQuote:
    """Computed VAT quote for a net amount."""
    vat_code: str
    vat_rate_percent: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    gross_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "vat_code": self.vat_code,
            "vat_rate_percent": str(self.vat_rate_percent),
            "net_amount": str(self.net_amount),
            "vat_amount": str(self.vat_amount),
            "gross_amount": str(self.gross_amount),
        }


def _in_window(
    now: datetime,
    effective_from: Optional[datetime],
    effective_to: Optional[datetime],
) -> bool:
    start = as_utc(effective_from)
    end = as_utc(effective_to)
    if start is not None and start > now:
        return False
    if end is not None and end < now:
        return False
    return True


def is_rate_usable(rate: Optional[VatRate], now: Optional[datetime] = None) -> bool:
    """True if the rate exists, is active and is effective at `now`."""
    if rate is None or not rate.is_active:
        return False
    return _in_window(as_utc(now) or utcnow(), rate.effective_from, rate.effective_to)


def _normalize_country(country_code: Optional[str]) -> str:
    return (country_code or "").strip().upper()


def _country_rank(rule: VatRule, country: str) -> Optional[int]:
    """0 = exact match, 1 = wildcard, 2 = any (NULL); None = not applicable."""
    rule_country = _normalize_country(rule.country_code)
    if not rule_country:
        return 2
    if rule_country == WILDCARD_COUNTRY:
        return 1
    if country and rule_country == country:
        return 0
    return None


def compute_tax(net_amount: Amount, vat_rate: Optional[VatRate]) -> TaxQuote:
    """
    Quote VAT on a net amount. vat_rate=None means no VAT (0%).

    vat = round(net * rate / 100, 2, half away from zero); gross = net + vat.
    net_amount is returned unchanged. Amounts must be Decimal, int or str:
    a float raises TypeError.
    """
    rate_percent = to_decimal(vat_rate.rate_percent) if vat_rate is not None else Decimal("0")
    breakdown = from_net(net_amount, rate_percent)
    return TaxQuote(
        vat_code=vat_rate.code if vat_rate is not None else NO_VAT_CODE,
        vat_rate_percent=rate_percent,
        net_amount=breakdown.net,
        vat_amount=breakdown.vat,
        gross_amount=breakdown.gross,
    )


class TaxCalculator:
    """
    Resolves VAT rates and computes quotes.

    Stateless between calls except for the injected store and listener.
    """

    def __init__(
        self,
        store: "TaxStore",
        on_zero_vat_fallback: Optional[ZeroVatListener] = None,
    ):
        self._store = store
        self._on_zero_vat_fallback = on_zero_vat_fallback

    def resolve_vat_rate(
        self,
        purpose: str,
        country_code: Optional[str] = None,
        explicit_vat_rate_id: Optional[int] = None,
        now: Optional[datetime] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> Optional[VatRate]:
        now = as_utc(now) or utcnow()
        country = _normalize_country(country_code)
        gaps: List[str] = []

        # 1) Explicit rate wins if usable
        if explicit_vat_rate_id is not None:
            explicit = self._store.get_rate(explicit_vat_rate_id, cancel)
            if is_rate_usable(explicit, now):
                return explicit
            gaps.append(f"explicit_rate_unusable:{explicit_vat_rate_id}")

        # 2) Rule match
        candidates = []
        for rule in self._store.list_active_rules(purpose, cancel):
            if not _in_window(now, rule.effective_from, rule.effective_to):
                continue
            rank = _country_rank(rule, country)
            if rank is None:
                continue
            candidates.append((-(rule.priority or 0), rank, rule.id, rule))

        candidates.sort(key=lambda c: c[:3])
        for _, _, _, rule in candidates:
            if is_rate_usable(rule.vat_rate, now):
                return rule.vat_rate
            gaps.append(f"rule_rate_unusable:{rule.id}")

        # 3) Hard default for Kenyan registration fees
        if purpose == REGISTRATION_FEE_PURPOSE and country == KENYA_COUNTRY_CODE:
            vat16 = self._store.get_rate_by_code(KENYA_DEFAULT_VAT_CODE, cancel)
            if is_rate_usable(vat16, now):
                return vat16
            gaps.append("kenya_default_missing")

        # 4) No VAT
        if not candidates:
            gaps.append("no_matching_rule")
        self._report_zero_vat(purpose, country or None, gaps)
        return None

    def compute(self, net_amount: Amount, vat_rate: Optional[VatRate]) -> TaxQuote:
        return compute_tax(net_amount, vat_rate)

    def quote(
        self,
        net_amount: Amount,
        purpose: str,
        country_code: Optional[str] = None,
        explicit_vat_rate_id: Optional[int] = None,
        now: Optional[datetime] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> TaxQuote:
        """Resolve the rate and compute in one step."""
        rate = self.resolve_vat_rate(
            purpose,
            country_code=country_code,
            explicit_vat_rate_id=explicit_vat_rate_id,
            now=now,
            cancel=cancel,
        )
        return compute_tax(net_amount, rate)

    def _report_zero_vat(self, purpose: str, country: Optional[str], gaps: List[str]) -> None:
        logger.warning(
            "tax.vat_fallback_zero",
            extra={"purpose": purpose, "country_code": country, "gaps": gaps},
        )
        if self._on_zero_vat_fallback is None:
            return
        try:
            self._on_zero_vat_fallback(purpose, country, gaps)
        except Exception:
            logger.warning("tax.vat_fallback_listener_failed", exc_info=True)
