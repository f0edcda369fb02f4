"""Usage event persistence: dedupe lookups and inserts."""

import logging
from datetime import datetime
from typing import Optional

from lexaccess.models.usage import UsageEvent
from lexaccess.repositories.base_repo import BaseReadStore

logger = logging.getLogger(__name__)


class UsageEventStore(BaseReadStore):
    """The single write path of the engine: append-only usage_events."""

    def exists_since(
        self,
        user_id: Optional[int],
        legal_document_id: int,
        surface: str,
        window_start: datetime,
    ) -> bool:
        def query():
            q = self.db.query(UsageEvent.id).filter(
                UsageEvent.legal_document_id == legal_document_id,
                UsageEvent.surface == surface,
                UsageEvent.at_utc >= window_start,
            )
            if user_id is None:
                q = q.filter(UsageEvent.user_id.is_(None))
            else:
                q = q.filter(UsageEvent.user_id == user_id)
            return q.first() is not None

        return self._read("usage.exists_since", query)

    def add(self, event: UsageEvent) -> UsageEvent:
        self.db.add(event)
        self.db.flush()
        return event
