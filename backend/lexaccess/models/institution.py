"""
Institution and membership models.

Institutions (universities, law firms, bar associations) subscribe to content
products on behalf of their members. Seat limits cap how many approved,
active members of each bucket the plan permits:
- 0 means no seats (hard block at access time)
- N > 0 allows up to N
"""

from enum import Enum as PyEnum

from sqlalchemy import (
    Column, String, Integer, Boolean, Enum,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from lexaccess.models.base import Base, TimestampMixin


class MemberType(str, PyEnum):
    """Membership classification. Staff seats are shared by STAFF and ADMIN."""
    ADMIN = "admin"
    STAFF = "staff"
    STUDENT = "student"


class MembershipStatus(str, PyEnum):
    """Approval state of a membership."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Institution(Base, TimestampMixin):
    """Institution account. Onboarded and toggled by global admins."""

    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)

    max_student_seats = Column(Integer, nullable=False, default=0)
    max_staff_seats = Column(Integer, nullable=False, default=0)

    allow_individual_purchases_when_inactive = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="If false, linked users cannot buy documents individually"
    )

    users = relationship("User", back_populates="institution")
    memberships = relationship(
        "InstitutionMembership",
        back_populates="institution",
        cascade="all, delete-orphan",
    )
    subscriptions = relationship(
        "InstitutionProductSubscription",
        back_populates="institution",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Institution(id={self.id}, active={self.is_active})>"


class InstitutionMembership(Base, TimestampMixin):
    """
    A user's membership inside an institution.

    Only APPROVED + active memberships consume seats, and only APPROVED +
    active ADMIN memberships grant institution-admin authority.
    """

    __tablename__ = "institution_memberships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    institution_id = Column(
        Integer,
        ForeignKey("institutions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_type = Column(
        Enum(*[m.value for m in MemberType], name="institution_member_type"),
        nullable=False,
        default=MemberType.STUDENT.value,
    )
    status = Column(
        Enum(*[s.value for s in MembershipStatus], name="membership_status"),
        nullable=False,
        default=MembershipStatus.PENDING.value,
    )
    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Disabled members do not consume seats"
    )
    reference_number = Column(String(100), nullable=True)

    institution = relationship("Institution", back_populates="memberships")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("institution_id", "user_id", name="uq_institution_membership"),
        Index("ix_institution_memberships_seats", "institution_id", "status", "is_active"),
    )
