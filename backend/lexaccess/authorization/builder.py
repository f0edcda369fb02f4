"""
Build AuthorizationContext values from raw claims.

The identity claim arrives as untrusted text (token subject, header value).
Anything that does not resolve to an existing user yields an anonymous
context, so every predicate evaluated against it returns False.
"""

import logging
from typing import TYPE_CHECKING, Optional

from lexaccess.authorization.context import AuthorizationContext, parse_id_claim

if TYPE_CHECKING:
    from lexaccess.repositories.base_repo import CancellationToken
    from lexaccess.repositories.entitlement_repo import EntitlementStore

logger = logging.getLogger(__name__)


def build_authorization_context(
    store: "EntitlementStore",
    user_id_claim,
    institution_id=None,
    permission_code: Optional[str] = None,
    cancel: Optional["CancellationToken"] = None,
) -> AuthorizationContext:
    scope_id = parse_id_claim(institution_id)
    user_id = parse_id_claim(user_id_claim)
    if user_id is None:
        logger.debug("authorization.claim_unparsable", extra={"claim": str(user_id_claim)[:64]})
        return AuthorizationContext(institution_id=scope_id, permission_code=permission_code)

    principal = store.load_principal(user_id, cancel)
    if principal is None:
        logger.debug("authorization.user_not_found", extra={"user_id": user_id})
        return AuthorizationContext(institution_id=scope_id, permission_code=permission_code)

    return AuthorizationContext(
        principal=principal,
        institution_id=scope_id,
        permission_code=permission_code,
    )
