"""
Root test configuration and fixtures.

Provides:
- db_engine / db_session: SQLite in-memory database, rolled back per test
- factory: row builders for users, institutions, products and VAT data
- NOW: fixed evaluation instant shared by time-window tests
- temp_config_dir / make_yaml_config: YAML config files for settings tests
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest
import yaml
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ.setdefault("ENV", "test")

from lexaccess.models.base import Base
from lexaccess import models  # noqa: F401 - registers every table on Base
from lexaccess.models.institution import (
    Institution,
    InstitutionMembership,
    MemberType,
    MembershipStatus,
)
from lexaccess.models.product import ContentProduct, ContentProductDocument, LegalDocument
from lexaccess.models.subscription import (
    InstitutionProductSubscription,
    SubscriptionStatus,
    UserProductOwnership,
    UserProductSubscription,
)
from lexaccess.models.tax import VatRate, VatRule
from lexaccess.models.user import AdminPermission, User, UserAdminPermission


NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_sqlite_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="session")
def db_engine():
    """SQLite in-memory engine with every table created."""
    engine = make_sqlite_engine()
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Create database session with transaction rollback for test isolation.

    Each test gets a fresh session that rolls back after the test completes.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=connection)
    session = SessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def isolated_session_factory():
    """
    Session factory on a private in-memory database.

    For code that opens and commits its own sessions (usage auditing).
    """
    engine = make_sqlite_engine()
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


# =============================================================================
# Row factories
# =============================================================================

class RowFactory:
    """Builds and flushes rows with sensible defaults."""

    def __init__(self, session: Session):
        self.session = session

    def _save(self, row):
        self.session.add(row)
        self.session.flush()
        return row

    def user(self, **kwargs) -> User:
        kwargs.setdefault("role", "User")
        kwargs.setdefault("is_approved", True)
        return self._save(User(**kwargs))

    def permission(self, user: User, code: str, is_active: bool = True) -> AdminPermission:
        permission = (
            self.session.query(AdminPermission).filter(AdminPermission.code == code).first()
            or self._save(AdminPermission(code=code, is_active=is_active))
        )
        self._save(UserAdminPermission(user_id=user.id, permission_id=permission.id))
        return permission

    def institution(self, **kwargs) -> Institution:
        kwargs.setdefault("name", "University of Nairobi")
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("max_student_seats", 100)
        kwargs.setdefault("max_staff_seats", 10)
        return self._save(Institution(**kwargs))

    def membership(
        self,
        institution: Institution,
        user: User,
        member_type: MemberType = MemberType.STUDENT,
        status: MembershipStatus = MembershipStatus.APPROVED,
        is_active: bool = True,
    ) -> InstitutionMembership:
        return self._save(InstitutionMembership(
            institution_id=institution.id,
            user_id=user.id,
            member_type=member_type.value,
            status=status.value,
            is_active=is_active,
        ))

    def product(self, name: str = "Kenya Law Reports") -> ContentProduct:
        return self._save(ContentProduct(name=name))

    def document(self, product: ContentProduct = None, **kwargs) -> LegalDocument:
        kwargs.setdefault("title", "Civil Procedure Act")
        kwargs.setdefault("is_premium", True)
        kwargs.setdefault("country_code", "KE")
        return self._save(LegalDocument(
            content_product_id=product.id if product is not None else None,
            **kwargs,
        ))

    def link(self, product: ContentProduct, document: LegalDocument) -> ContentProductDocument:
        return self._save(ContentProductDocument(
            content_product_id=product.id,
            legal_document_id=document.id,
        ))

    def institution_subscription(
        self,
        institution: Institution,
        product: ContentProduct,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        start: datetime = None,
        end: datetime = None,
    ) -> InstitutionProductSubscription:
        return self._save(InstitutionProductSubscription(
            institution_id=institution.id,
            content_product_id=product.id,
            status=status.value,
            start_date=start or NOW - timedelta(days=30),
            end_date=end or NOW + timedelta(days=30),
        ))

    def user_subscription(
        self,
        user: User,
        product: ContentProduct,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        start: datetime = None,
        end: datetime = None,
        is_trial: bool = False,
    ) -> UserProductSubscription:
        return self._save(UserProductSubscription(
            user_id=user.id,
            content_product_id=product.id,
            status=status.value,
            start_date=start or NOW - timedelta(days=5),
            end_date=end or NOW + timedelta(days=5),
            is_trial=is_trial,
        ))

    def ownership(self, user: User, product: ContentProduct) -> UserProductOwnership:
        return self._save(UserProductOwnership(user_id=user.id, content_product_id=product.id))

    def vat_rate(self, code: str = "VAT16", rate: str = "16", **kwargs) -> VatRate:
        kwargs.setdefault("name", f"VAT {rate}%")
        kwargs.setdefault("is_active", True)
        return self._save(VatRate(code=code, rate_percent=Decimal(rate), **kwargs))

    def vat_rule(self, rate: VatRate, purpose: str, country_code=None, priority: int = 0, **kwargs) -> VatRule:
        kwargs.setdefault("is_active", True)
        return self._save(VatRule(
            purpose=purpose,
            country_code=country_code,
            vat_rate_id=rate.id,
            priority=priority,
            **kwargs,
        ))


@pytest.fixture
def factory(db_session) -> RowFactory:
    return RowFactory(db_session)


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow-running")


# =============================================================================
# Shared Config Fixtures
# =============================================================================


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for YAML config files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_yaml_config(temp_config_dir):
    """
    Factory fixture that writes a YAML config file and returns its path.

    Usage:
        config_path = make_yaml_config("access_policy.yml", {"access_policy": {...}})
    """
    def _make(filename: str, config: dict) -> Path:
        config_path = temp_config_dir / filename
        with open(config_path, "w") as f:
            yaml.dump(config, f)
        return config_path
    return _make
