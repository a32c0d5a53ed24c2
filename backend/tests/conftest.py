"""Shared test fixtures."""

import os

# Must be set before budgetbook.config is imported
os.environ.setdefault("BUDGETBOOK_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BUDGETBOOK_BCRYPT_ROUNDS", "4")

import secrets
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import budgetbook.models  # noqa: F401
from budgetbook.ai.client import get_ai_client
from budgetbook.config import settings
from budgetbook.database import Base, get_db, utcnow
from budgetbook.main import app
from budgetbook.models.account import Account, AccountType
from budgetbook.models.bank import Bank
from budgetbook.models.category import Category, Subcategory
from budgetbook.models.transaction import Transaction, TransactionCategory
from budgetbook.models.user import User, UserSession
from budgetbook.services.auth_service import hash_password

TEST_PASSWORD = "correct horse battery"


class FakeAIClient:
    """Stands in for the completion service; returns or raises what it is given."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def complete_json(self, system_prompt, user_prompt, temperature=0.1, max_tokens=1000):
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if self.error is not None:
            raise self.error
        return self.result


def add_transaction(db, account, day, description, allocations, user_description=None):
    """Create a transaction with (category, subcategory, amount) allocations."""
    txn = Transaction(
        account_id=account.id,
        operation_date=day,
        description=description,
        user_description=user_description,
    )
    for category, subcategory, amount in allocations:
        txn.allocations.append(TransactionCategory(
            category_id=category.id,
            subcategory_id=subcategory.id if subcategory else None,
            amount=Decimal(amount),
        ))
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def ai_client():
    return FakeAIClient(result={"categoryId": None, "subcategoryId": None})


@pytest.fixture(scope="function")
def client(db_session, ai_client):
    """Create a test client with database and AI overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_client] = lambda: ai_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user(db_session):
    user = User(email="owner@example.com", password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session):
    user = User(email="stranger@example.com", password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user_session(db_session, user):
    session = UserSession(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        expires_at=utcnow() + timedelta(hours=1),
    )
    db_session.add(session)
    db_session.commit()
    return session


@pytest.fixture
def auth_client(client, user_session):
    """Test client carrying a valid session cookie."""
    client.cookies.set(settings.session_cookie_name, user_session.token)
    return client


@pytest.fixture
def ledger(db_session, user):
    """A small but complete data set for one user.

    Transactions:
        groceries   2024-01-15  WHOLE FOODS #1234      Food/Groceries -50.00
        payroll     2024-02-02  ACME PAYROLL           Income/Salary  +100.00
        amazon      2024-02-10  AMAZON MARKETPLACE     Food/Groceries -20.00, Shopping -30.00
        transfer    2024-03-01  TRANSFER TO SAVINGS    transfers      -200.00
        netflix     2024-03-05  NFLX.COM (user: Netflix subscription)  Entertainment -15.99
    """
    bank = Bank(name="First Bank", user_id=user.id)
    db_session.add(bank)
    db_session.flush()
    account = Account(bank_id=bank.id, account_type=AccountType.bank_account, account_number="IT00-0001")
    card = Account(bank_id=bank.id, account_type=AccountType.virtual_card, account_number="4111-XXXX")
    db_session.add_all([account, card])

    food = Category(name="Food", user_id=user.id)
    income = Category(name="Income", user_id=user.id)
    shopping = Category(name="Shopping", user_id=user.id)
    entertainment = Category(name="Entertainment", user_id=user.id)
    transfers = Category(name=settings.transfers_category_name, user_id=user.id)
    db_session.add_all([food, income, shopping, entertainment, transfers])
    db_session.flush()

    groceries = Subcategory(name="Groceries", category_id=food.id)
    restaurants = Subcategory(name="Restaurants", category_id=food.id)
    salary = Subcategory(name="Salary", category_id=income.id)
    db_session.add_all([groceries, restaurants, salary])
    db_session.commit()

    return SimpleNamespace(
        user=user,
        bank=bank,
        account=account,
        card=card,
        food=food,
        income=income,
        shopping=shopping,
        entertainment=entertainment,
        transfers=transfers,
        groceries=groceries,
        restaurants=restaurants,
        salary=salary,
        groceries_txn=add_transaction(
            db_session, account, date(2024, 1, 15), "WHOLE FOODS #1234",
            [(food, groceries, "-50.00")],
        ),
        payroll_txn=add_transaction(
            db_session, account, date(2024, 2, 2), "ACME PAYROLL",
            [(income, salary, "100.00")],
        ),
        amazon_txn=add_transaction(
            db_session, card, date(2024, 2, 10), "AMAZON MARKETPLACE",
            [(food, groceries, "-20.00"), (shopping, None, "-30.00")],
        ),
        transfer_txn=add_transaction(
            db_session, account, date(2024, 3, 1), "TRANSFER TO SAVINGS",
            [(transfers, None, "-200.00")],
        ),
        netflix_txn=add_transaction(
            db_session, card, date(2024, 3, 5), "NFLX.COM",
            [(entertainment, None, "-15.99")],
            user_description="Netflix subscription",
        ),
    )
