"""
Entitlement decisions for legal documents.

This module provides:
- AccessPolicyEvaluator: FULL_ACCESS vs PREVIEW_ONLY for a principal and document
- InstitutionCoverageGuard: institution subscription coverage (allow / deny / lock)
- Decision / CoverageDecision: immutable results with wire-stable reason codes
- DecisionResponse: pydantic schema for client payloads

Precedence: global admin -> free content -> personal grants -> institution gates -> deny
"""

from lexaccess.entitlements.models import (
    AccessLevel,
    ContentItemSnapshot,
    CoverageDecision,
    CoverageReason,
    Decision,
    DenyReason,
    GrantSource,
    RequiredAction,
)
from lexaccess.entitlements.errors import (
    EntitlementError,
    EntitlementStoreError,
    EvaluationCancelledError,
    InvalidEvaluationInput,
)
from lexaccess.entitlements.coverage import (
    InstitutionCoverageGuard,
    evaluate_institution_coverage,
)
from lexaccess.entitlements.evaluator import AccessPolicyEvaluator
from lexaccess.entitlements.responses import (
    DecisionResponse,
    EntitlementErrorResponse,
    PurchaseQuoteResponse,
    decision_http_status,
)

__all__ = [
    "AccessLevel",
    "ContentItemSnapshot",
    "CoverageDecision",
    "CoverageReason",
    "Decision",
    "DenyReason",
    "GrantSource",
    "RequiredAction",
    "EntitlementError",
    "EntitlementStoreError",
    "EvaluationCancelledError",
    "InvalidEvaluationInput",
    "InstitutionCoverageGuard",
    "evaluate_institution_coverage",
    "AccessPolicyEvaluator",
    "DecisionResponse",
    "EntitlementErrorResponse",
    "PurchaseQuoteResponse",
    "decision_http_status",
]
