"""
Read stores backing the entitlement engine.

Stores are read-only except UsageEventStore. Reads check the caller's
CancellationToken first and map SQLAlchemy failures to EntitlementStoreError.
"""

from lexaccess.repositories.base_repo import BaseReadStore, CancellationToken
from lexaccess.repositories.entitlement_repo import EntitlementStore
from lexaccess.repositories.tax_repo import TaxStore
from lexaccess.repositories.usage_repo import UsageEventStore

__all__ = [
    "BaseReadStore",
    "CancellationToken",
    "EntitlementStore",
    "TaxStore",
    "UsageEventStore",
]
