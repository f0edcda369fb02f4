"""
VAT resolution and arithmetic.

- TaxCalculator: resolve_vat_rate() + compute()
- compute_tax(): VAT quote for a net amount
- vat_math: from_net / from_gross_inclusive with 2-decimal half-away-from-zero rounding
"""

from lexaccess.tax.calculator import (
    TaxCalculator,
    TaxQuote,
    compute_tax,
    is_rate_usable,
    REGISTRATION_FEE_PURPOSE,
    PUBLIC_DOCUMENT_PURCHASE_PURPOSE,
    NO_VAT_CODE,
)
from lexaccess.tax.vat_math import (
    VatBreakdown,
    from_net,
    from_gross_inclusive,
    round2,
    ROUND_TRIP_TOLERANCE,
)

__all__ = [
    "TaxCalculator",
    "TaxQuote",
    "compute_tax",
    "is_rate_usable",
    "REGISTRATION_FEE_PURPOSE",
    "PUBLIC_DOCUMENT_PURCHASE_PURPOSE",
    "NO_VAT_CODE",
    "VatBreakdown",
    "from_net",
    "from_gross_inclusive",
    "round2",
    "ROUND_TRIP_TOLERANCE",
]
