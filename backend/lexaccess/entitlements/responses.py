"""
Pydantic response schemas for access decisions.

Maps a Decision to the payload callers return to clients, plus the HTTP
status that matches the outcome:
- 200: full access
- 402: preview, individual purchase offered
- 403: preview, no purchase offered (hard blocks included)
"""

from decimal import Decimal
from typing import Optional

from fastapi import status
from pydantic import BaseModel, Field

from lexaccess.entitlements.errors import EntitlementStoreError
from lexaccess.entitlements.models import Decision
from lexaccess.tax.calculator import TaxQuote


class PurchaseQuoteResponse(BaseModel):
    """Display price for an individual purchase."""

    vat_code: str
    vat_rate_percent: Decimal
    net_amount: Decimal = Field(..., description="Price before VAT")
    vat_amount: Decimal
    gross_amount: Decimal = Field(..., description="Amount the user pays")

    @classmethod
    def from_quote(cls, quote: TaxQuote) -> "PurchaseQuoteResponse":
        return cls(
            vat_code=quote.vat_code,
            vat_rate_percent=quote.vat_rate_percent,
            net_amount=quote.net_amount,
            vat_amount=quote.vat_amount,
            gross_amount=quote.gross_amount,
        )


class DecisionResponse(BaseModel):
    """Client-facing access decision."""

    access_level: str = Field(..., description="FullAccess or PreviewOnly")
    deny_reason: str = Field(..., description="Wire name of the deny reason")
    deny_reason_code: int
    message: Optional[str] = None
    can_purchase_individually: bool
    purchase_disabled_reason: Optional[str] = None
    is_blocked: bool = Field(..., description="Hard block: UI must stop the flow")
    required_action: str
    purchase_quote: Optional[PurchaseQuoteResponse] = None

    @classmethod
    def from_decision(cls, decision: Decision) -> "DecisionResponse":
        return cls(
            access_level=decision.access_level.value,
            deny_reason=decision.deny_reason.wire_name,
            deny_reason_code=int(decision.deny_reason),
            message=decision.message,
            can_purchase_individually=decision.can_purchase_individually,
            purchase_disabled_reason=decision.purchase_disabled_reason,
            is_blocked=decision.is_hard_block,
            required_action=decision.required_action.value,
            purchase_quote=(
                PurchaseQuoteResponse.from_quote(decision.purchase_quote)
                if decision.purchase_quote is not None
                else None
            ),
        )


class EntitlementErrorResponse(BaseModel):
    """Payload for evaluations that could not complete."""

    error: str
    message: str
    operation: str

    @classmethod
    def from_error(cls, error: EntitlementStoreError) -> "EntitlementErrorResponse":
        return cls(**error.to_dict())


def decision_http_status(decision: Decision) -> int:
    if decision.is_allowed:
        return status.HTTP_200_OK
    if decision.can_purchase_individually:
        return status.HTTP_402_PAYMENT_REQUIRED
    return status.HTTP_403_FORBIDDEN
