"""
Subscription and ownership models.

- InstitutionProductSubscription: an institution's coverage of one product.
- UserProductSubscription: a personal subscription; is_trial marks a trial
  grant with its own start/end window.
- UserProductOwnership: permanent grant from a completed individual purchase.

Lifecycle statuses are shared by institution and personal subscriptions.
"""

from enum import Enum as PyEnum

from sqlalchemy import (
    Column, Integer, Boolean, DateTime, Enum,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from lexaccess.models.base import Base, TimestampMixin


class SubscriptionStatus(str, PyEnum):
    """Subscription lifecycle state."""
    PENDING = "pending"        # Created, payment not confirmed
    ACTIVE = "active"          # Grants access within its date window
    SUSPENDED = "suspended"    # Manually suspended (non-payment, abuse)
    EXPIRED = "expired"        # Naturally expired


_STATUS_ENUM_VALUES = [s.value for s in SubscriptionStatus]


class InstitutionProductSubscription(Base, TimestampMixin):
    """Institution coverage record for a single product."""

    __tablename__ = "institution_product_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    institution_id = Column(
        Integer,
        ForeignKey("institutions.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_product_id = Column(
        Integer,
        ForeignKey("content_products.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(
        Enum(*_STATUS_ENUM_VALUES, name="subscription_status"),
        nullable=False,
        default=SubscriptionStatus.PENDING.value,
    )
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False, comment="Inclusive")

    institution = relationship("Institution", back_populates="subscriptions")

    __table_args__ = (
        Index("ix_inst_subs_institution_product", "institution_id", "content_product_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<InstitutionProductSubscription(institution={self.institution_id}, "
            f"product={self.content_product_id}, status={self.status})>"
        )


class UserProductSubscription(Base, TimestampMixin):
    """Personal subscription to a product. Trial grants set is_trial."""

    __tablename__ = "user_product_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_product_id = Column(
        Integer,
        ForeignKey("content_products.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(
        Enum(*_STATUS_ENUM_VALUES, name="subscription_status"),
        nullable=False,
        default=SubscriptionStatus.PENDING.value,
    )
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_trial = Column(Boolean, nullable=False, default=False)
    granted_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        Index("ix_user_subs_user_product", "user_id", "content_product_id"),
    )


class UserProductOwnership(Base, TimestampMixin):
    """Permanent (user, product) grant from a completed purchase."""

    __tablename__ = "user_product_ownerships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_product_id = Column(
        Integer,
        ForeignKey("content_products.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "content_product_id", name="uq_user_product_ownership"),
    )
