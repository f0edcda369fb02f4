"""
VAT rate and VAT rule models.

A VatRule maps (purpose, country) to a VatRate. country_code is an exact
ISO code, the wildcard "*", or NULL (any country). Higher priority wins.
Both rates and rules carry an optional [effective_from, effective_to] window
with open bounds when NULL.
"""

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Numeric,
    ForeignKey, Index
)
from sqlalchemy.orm import relationship

from lexaccess.models.base import Base, TimestampMixin


class VatRate(Base, TimestampMixin):
    """A named VAT percentage (e.g. VAT16 = 16%)."""

    __tablename__ = "vat_rates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(String(160), nullable=False)
    rate_percent = Column(Numeric(9, 4), nullable=False, comment="16.0000 = 16%")
    country_scope = Column(String(8), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    effective_from = Column(DateTime(timezone=True), nullable=True)
    effective_to = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<VatRate(code={self.code}, rate={self.rate_percent})>"


class VatRule(Base, TimestampMixin):
    """Purpose + country mapping to a VatRate."""

    __tablename__ = "vat_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    purpose = Column(String(64), nullable=False, default="RegistrationFee")
    country_code = Column(String(8), nullable=True, comment="ISO code, '*' or NULL")
    vat_rate_id = Column(
        Integer,
        ForeignKey("vat_rates.id", ondelete="CASCADE"),
        nullable=False,
    )
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    effective_from = Column(DateTime(timezone=True), nullable=True)
    effective_to = Column(DateTime(timezone=True), nullable=True)

    vat_rate = relationship("VatRate", lazy="joined")

    __table_args__ = (
        Index("ix_vat_rules_purpose_active", "purpose", "is_active"),
    )
