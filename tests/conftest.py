"""Pytest configuration and shared fixtures."""
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from expense_tracker.config import Settings
from expense_tracker.database import Database
from expense_tracker.main import create_app
from expense_tracker.models.domain import Expense, User
from expense_tracker.models.enums import ExpenseCategory, ExpenseStatus, Role
from expense_tracker.services.security import hash_password, issue_token

PASSWORD = "password123"


@pytest.fixture
def settings(tmp_path):
    """In-memory database, cheap bcrypt, uploads in a temp dir."""
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
        max_file_size=1024,
        log_level="WARNING",
    )


@pytest.fixture
def database(settings):
    """Create a fresh in-memory database for each test."""
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session, settings):
    def _make(email, role=Role.EMPLOYEE, name=None, password=PASSWORD):
        user = User(
            email=email,
            password_hash=hash_password(password, settings.bcrypt_rounds),
            name=name or email.split("@")[0].title(),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", Role.ADMIN, "Admin User")


@pytest.fixture
def employee(make_user):
    return make_user("employee@example.com", Role.EMPLOYEE, "John Employee")


@pytest.fixture
def other_employee(make_user):
    return make_user("jane@example.com", Role.EMPLOYEE, "Jane Other")


@pytest.fixture
def make_expense(db_session):
    def _make(owner, amount="150.50", category=ExpenseCategory.TRAVEL, spent_on=None,
              status=ExpenseStatus.PENDING, notes=None):
        expense = Expense(
            amount=Decimal(amount),
            category=category,
            date=spent_on or date.today(),
            notes=notes,
            status=status,
            user_id=owner.id,
        )
        db_session.add(expense)
        db_session.commit()
        db_session.refresh(expense)
        return expense
    return _make


@pytest.fixture
def app(settings, database):
    """Application sharing the test's database."""
    return create_app(settings, database)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        return {"Authorization": f"Bearer {issue_token(user, settings)}"}
    return _headers
