"""
Usage event model: one row per (deduplicated) access decision.

decision_reason is "ALLOWED" or the deny reason wire name.
surface says where the access happened: "ReaderOpen", "Download", "Api".
"""

from sqlalchemy import (
    Column, String, Integer, BigInteger, Boolean, DateTime, Index
)

from lexaccess.models.base import Base, utcnow


IP_ADDRESS_MAX_LENGTH = 64
USER_AGENT_MAX_LENGTH = 400
REASON_MAX_LENGTH = 120
SURFACE_MAX_LENGTH = 40


class UsageEvent(Base):
    """Append-only audit row for a document access decision."""

    __tablename__ = "usage_events"

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    at_utc = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user_id = Column(Integer, nullable=True)
    institution_id = Column(Integer, nullable=True)
    legal_document_id = Column(Integer, nullable=False)

    allowed = Column(Boolean, nullable=False)
    decision_reason = Column(String(REASON_MAX_LENGTH), nullable=False, default="ALLOWED")
    surface = Column(String(SURFACE_MAX_LENGTH), nullable=False, default="ReaderOpen")

    ip_address = Column(String(IP_ADDRESS_MAX_LENGTH), nullable=False, default="")
    user_agent = Column(String(USER_AGENT_MAX_LENGTH), nullable=False, default="")

    __table_args__ = (
        Index("ix_usage_events_dedupe", "user_id", "legal_document_id", "surface", "at_utc"),
    )

    def __repr__(self) -> str:
        return (
            f"<UsageEvent(user={self.user_id}, document={self.legal_document_id}, "
            f"surface={self.surface}, allowed={self.allowed})>"
        )
