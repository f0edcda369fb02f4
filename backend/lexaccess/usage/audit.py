"""
Usage audit logger: deduplicated usage events for access decisions.

One row per (user, document, surface) per throttle window. Auditing is best
effort: failures are logged and swallowed so they never change the decision
that was already made.

Usage:
    audit = UsageAuditLogger(get_session_factory(), settings)
    audit.log_decision(decision, user_id=7, institution_id=3, document_id=42,
                       surface="ReaderOpen", ip=request_ip, user_agent=ua)
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from lexaccess.config.settings import AccessPolicySettings
from lexaccess.database.session import session_scope
from lexaccess.entitlements.models import Decision
from lexaccess.models.base import as_utc, utcnow
from lexaccess.models.usage import REASON_MAX_LENGTH, SURFACE_MAX_LENGTH, UsageEvent
from lexaccess.repositories.usage_repo import UsageEventStore

logger = logging.getLogger(__name__)

# Dedicated audit logger mirroring inserted usage events
audit_logger = logging.getLogger("usage.audit")

UNKNOWN = "Unknown"


def _truncate(value: Optional[str], limit: int) -> str:
    value = (value or "").strip()
    return value[:limit]


class UsageAuditLogger:
    """Writes usage events in their own short transaction."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: Optional[AccessPolicySettings] = None,
    ):
        self._session_factory = session_factory
        self._settings = settings or AccessPolicySettings()

    def log_once(
        self,
        principal_id: Optional[int],
        institution_id: Optional[int],
        content_item_id: int,
        allowed: bool,
        reason: Optional[str],
        surface: Optional[str],
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        throttle_window_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Insert a usage event unless an equivalent one exists in the window.

        Returns True when a row was written. Never raises.
        """
        try:
            return self._log_once(
                principal_id,
                institution_id,
                content_item_id,
                allowed,
                reason,
                surface,
                ip,
                user_agent,
                throttle_window_seconds,
                now,
            )
        except Exception:
            logger.warning(
                "usage.audit_failed",
                extra={
                    "user_id": principal_id,
                    "document_id": content_item_id,
                    "surface": surface,
                },
                exc_info=True,
            )
            return False

    def log_decision(
        self,
        decision: Decision,
        user_id: Optional[int],
        institution_id: Optional[int],
        document_id: int,
        surface: str = "ReaderOpen",
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        return self.log_once(
            user_id,
            institution_id,
            document_id,
            decision.is_allowed,
            decision.audit_reason,
            surface,
            ip=ip,
            user_agent=user_agent,
            now=now,
        )

    def _log_once(
        self,
        principal_id,
        institution_id,
        content_item_id,
        allowed,
        reason,
        surface,
        ip,
        user_agent,
        throttle_window_seconds,
        now,
    ) -> bool:
        reason = _truncate(reason, REASON_MAX_LENGTH) or UNKNOWN
        surface = _truncate(surface, SURFACE_MAX_LENGTH) or UNKNOWN
        window = (
            self._settings.usage_throttle_window_seconds
            if throttle_window_seconds is None
            else throttle_window_seconds
        )
        now = as_utc(now) or utcnow()
        window_start = now - timedelta(seconds=abs(window))

        with session_scope(self._session_factory) as session:
            store = UsageEventStore(session)
            if store.exists_since(principal_id, content_item_id, surface, window_start):
                logger.debug(
                    "usage.deduplicated",
                    extra={"user_id": principal_id, "document_id": content_item_id, "surface": surface},
                )
                return False

            store.add(UsageEvent(
                at_utc=now,
                user_id=principal_id,
                institution_id=institution_id,
                legal_document_id=content_item_id,
                allowed=bool(allowed),
                decision_reason=reason,
                surface=surface,
                ip_address=_truncate(ip, self._settings.usage_ip_max_length),
                user_agent=_truncate(user_agent, self._settings.usage_user_agent_max_length),
            ))

        audit_logger.info(
            "usage.event_recorded",
            extra={
                "user_id": principal_id,
                "institution_id": institution_id,
                "document_id": content_item_id,
                "allowed": bool(allowed),
                "reason": reason,
                "surface": surface,
            },
        )
        return True


def log_access_once(
    session_factory: Callable[[], Session],
    principal_id: Optional[int],
    institution_id: Optional[int],
    content_item_id: int,
    allowed: bool,
    reason: Optional[str],
    surface: Optional[str],
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    throttle_window_seconds: int = 180,
) -> bool:
    """Functional shortcut for UsageAuditLogger(session_factory).log_once()."""
    return UsageAuditLogger(session_factory).log_once(
        principal_id,
        institution_id,
        content_item_id,
        allowed,
        reason,
        surface,
        ip=ip,
        user_agent=user_agent,
        throttle_window_seconds=throttle_window_seconds,
    )
