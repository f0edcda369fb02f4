"""
User (principal) and admin-permission models.

A user is a global admin only when is_global_admin is set. The role label
"Admin" marks a staff admin, a lesser concept whose powers come from explicit
permission assignments (UserAdminPermission).
"""

from sqlalchemy import (
    Column, String, Integer, Boolean,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from lexaccess.models.base import Base, TimestampMixin


STAFF_ADMIN_ROLE = "Admin"


class User(Base, TimestampMixin):
    """Platform user. Read by the engine, mutated by account administration."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), nullable=True, unique=True)
    role = Column(
        String(50),
        nullable=False,
        default="User",
        comment="Role label. 'Admin' = staff admin, NOT global admin"
    )
    is_approved = Column(Boolean, nullable=False, default=False)
    is_global_admin = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Explicit promotion to global admin"
    )

    institution_id = Column(
        Integer,
        ForeignKey("institutions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Institution the user is linked to, if any"
    )

    institution = relationship("Institution", back_populates="users")
    admin_permissions = relationship(
        "UserAdminPermission",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role}, global_admin={self.is_global_admin})>"


class AdminPermission(Base, TimestampMixin):
    """Named permission (e.g. users.approve) that can be assigned to staff admins."""

    __tablename__ = "admin_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class UserAdminPermission(Base, TimestampMixin):
    """Assignment of an AdminPermission to a user."""

    __tablename__ = "user_admin_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    permission_id = Column(
        Integer,
        ForeignKey("admin_permissions.id", ondelete="CASCADE"),
        nullable=False,
    )

    user = relationship("User", back_populates="admin_permissions")
    permission = relationship("AdminPermission")

    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_admin_permission"),
        Index("ix_user_admin_permissions_user", "user_id"),
    )
