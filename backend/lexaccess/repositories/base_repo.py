"""
Base read store: cancellation checks and infrastructure error mapping.

Every store read goes through _read(), which:
- checks the caller's CancellationToken before touching the database
- maps SQLAlchemyError to EntitlementStoreError

Reads never mutate state, so a cancelled evaluation leaves nothing behind.
"""

import logging
import time
from threading import Event
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lexaccess.entitlements.errors import EntitlementStoreError, EvaluationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """
    Explicit cancel/timeout signal for an evaluation.

    Cancelled when cancel() is called or when the optional deadline
    (seconds from construction, monotonic clock) has passed.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = Event()
        self._deadline = (
            time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        )

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self, operation: str) -> None:
        if self.is_cancelled:
            raise EvaluationCancelledError(operation, "evaluation cancelled or timed out")


class BaseReadStore:
    """Read-only access to a SQLAlchemy session."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _read(
        self,
        operation: str,
        query: Callable[[], T],
        cancel: Optional[CancellationToken] = None,
    ) -> T:
        if cancel is not None:
            cancel.raise_if_cancelled(operation)
        try:
            return query()
        except SQLAlchemyError as e:
            logger.error(
                "store.read_failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise EntitlementStoreError(operation, str(e), cause=e) from e
