"""
VAT arithmetic on Decimal amounts.

Rounding is always ROUND_HALF_UP at 2 decimal places. For Decimal this rounds
halves away from zero for negative amounts too (-0.005 -> -0.01).

Guarantees:
- from_net(): net is kept as given; net + vat == gross exactly.
- from_gross_inclusive(): net + vat == gross exactly.
- For a net x with at most 2 decimal places,
  from_gross_inclusive(from_net(x).gross).net differs from x by at most
  0.01. The reverse division cannot always recover the original net after
  the forward rounding, so the round trip is not bit-exact.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Amount = Union[Decimal, int, str]

CENT = Decimal("0.01")
ROUND_TRIP_TOLERANCE = CENT
_HUNDRED = Decimal("100")


def to_decimal(value: Amount) -> Decimal:
    """
    Convert an amount to Decimal without going through float.

    Floats are a caller bug for money and raise TypeError.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("Amounts must be Decimal, int or str, not float")
    return Decimal(str(value))


def round2(value: Amount) -> Decimal:
    """Round to 2 decimal places, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class VatBreakdown:
    net: Decimal
    vat: Decimal
    gross: Decimal


def from_net(net: Amount, rate_percent: Amount) -> VatBreakdown:
    """Split a net amount into (net, vat, gross). Only the VAT is rounded."""
    net_d = to_decimal(net)
    rate = to_decimal(rate_percent)
    vat = round2(net_d * rate / _HUNDRED)
    return VatBreakdown(net=net_d, vat=vat, gross=net_d + vat)


def from_gross_inclusive(gross: Amount, rate_percent: Amount) -> VatBreakdown:
    """Split a VAT-inclusive gross amount into (net, vat, gross)."""
    gross_r = round2(gross)
    rate = to_decimal(rate_percent)
    if rate <= 0:
        return VatBreakdown(net=gross_r, vat=Decimal("0.00"), gross=gross_r)

    divisor = Decimal(1) + rate / _HUNDRED
    net = round2(gross_r / divisor)
    return VatBreakdown(net=net, vat=gross_r - net, gross=gross_r)
