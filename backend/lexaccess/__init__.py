"""
lexaccess: entitlement and pricing-policy decisions for legal documents.

Packages:
- entitlements: AccessPolicyEvaluator, InstitutionCoverageGuard, decisions
- authorization: policy predicates over immutable contexts
- tax: VAT rate resolution and arithmetic
- institutions: seat-limit guard
- usage: deduplicated usage auditing
- repositories / models / database: SQLAlchemy persistence
- config: AccessPolicySettings loader
"""

__version__ = "0.1.0"
