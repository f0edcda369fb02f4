"""
Content product and legal document models.

A ContentProduct is the sellable/subscribable unit. A LegalDocument (the
content item) belongs to a primary product and may be linked to further
products through ContentProductDocument; access to any containing product
unlocks the document.
"""

from sqlalchemy import (
    Column, String, Integer, Boolean, Numeric, Text,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from lexaccess.models.base import Base, TimestampMixin


class ContentProduct(Base, TimestampMixin):
    """Sellable/subscribable bundle of documents."""

    __tablename__ = "content_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    available_to_public = Column(Boolean, nullable=False, default=True)
    available_to_institutions = Column(Boolean, nullable=False, default=True)

    documents = relationship("ContentProductDocument", back_populates="product")


class LegalDocument(Base, TimestampMixin):
    """A readable content item. Premium documents require an entitlement."""

    __tablename__ = "legal_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    is_premium = Column(Boolean, nullable=False, default=True)
    is_report = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Law reports honor the institution grace window"
    )

    content_product_id = Column(
        Integer,
        ForeignKey("content_products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Primary product"
    )
    country_code = Column(String(8), nullable=True, comment="ISO country, drives VAT rules")

    allow_public_purchase = Column(Boolean, nullable=False, default=False)
    public_price = Column(
        Numeric(18, 2),
        nullable=True,
        comment="Net price for individual purchase"
    )
    public_currency = Column(String(3), nullable=False, default="KES")
    vat_rate_id = Column(
        Integer,
        ForeignKey("vat_rates.id", ondelete="SET NULL"),
        nullable=True,
        comment="Explicit VAT rate, wins over VAT rules"
    )

    product_links = relationship("ContentProductDocument", back_populates="document")


class ContentProductDocument(Base):
    """Additional product membership for a document."""

    __tablename__ = "content_product_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_product_id = Column(
        Integer,
        ForeignKey("content_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    legal_document_id = Column(
        Integer,
        ForeignKey("legal_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product = relationship("ContentProduct", back_populates="documents")
    document = relationship("LegalDocument", back_populates="product_links")

    __table_args__ = (
        UniqueConstraint("content_product_id", "legal_document_id", name="uq_product_document"),
    )
