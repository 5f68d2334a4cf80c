"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import datetime, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from roomie_ledger.api.main import create_app
from roomie_ledger.infrastructure.database.models import Base
from roomie_ledger.infrastructure.database.repositories import GroupRepository, MemberRepository
from roomie_ledger.infrastructure.database.session import get_db
from roomie_ledger.domain.models import Expense, Member
from roomie_ledger.services.ledger import LedgerService
from roomie_ledger.services.notifications import DatabaseNotificationSink


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ROOMMATES = [("alice", "Alice"), ("bob", "Bob"), ("carol", "Carol")]


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_db(db: Session) -> Generator[Session, None, None]:
    """Second, independent session on the test database for race tests"""
    other = TestingSessionLocal()
    try:
        yield other
    finally:
        other.close()


@pytest.fixture
def group_id(db: Session) -> str:
    """Group with three members: alice, bob, carol"""
    group = GroupRepository(db).create_group("Apartment 4B")
    members = MemberRepository(db)
    for member_id, name in ROOMMATES:
        members.add_member(group.id, member_id, name)
    db.commit()
    return group.id


@pytest.fixture
def service(db: Session) -> LedgerService:
    """Ledger service that stores notifications in the test database"""
    return LedgerService(db, sink=DatabaseNotificationSink(db))


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def members() -> list[Member]:
    return [Member(member_id=mid, display_name=name) for mid, name in ROOMMATES]


@pytest.fixture
def make_expense():
    """Factory for in-memory expenses used by pure-function tests"""
    created = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def _make(
        expense_id: str,
        amount_cents: int,
        payer_id: str,
        participant_ids: set[str],
        settled: bool = False,
    ) -> Expense:
        return Expense(
            expense_id=expense_id,
            group_id="g1",
            title=f"Expense {expense_id}",
            amount_cents=amount_cents,
            payer_id=payer_id,
            participant_ids=frozenset(participant_ids),
            created_at=created,
            settled_at=created if settled else None,
        )

    return _make
