"""Tests for the bootstrap seed."""
from expense_tracker.models.domain import Expense, User
from expense_tracker.models.enums import ExpenseStatus, Role
from expense_tracker.seed import SAMPLE_EXPENSES, seed


def test_seed_creates_accounts_and_expenses(db_session, settings):
    result = seed(db_session, settings)

    assert result == {"users": 2, "expenses": len(SAMPLE_EXPENSES)}
    roles = {u.email: u.role for u in db_session.query(User).all()}
    assert roles == {"admin@example.com": Role.ADMIN, "employee@example.com": Role.EMPLOYEE}
    rejected = db_session.query(Expense).filter(Expense.status == ExpenseStatus.REJECTED).all()
    assert all(e.rejection_reason for e in rejected)


def test_seed_is_idempotent(db_session, settings):
    seed(db_session, settings)

    assert seed(db_session, settings) == {"users": 0, "expenses": 0}
    assert db_session.query(User).count() == 2
    assert db_session.query(Expense).count() == len(SAMPLE_EXPENSES)


def test_seeded_admin_can_log_in(client, database, settings):
    session = database.SessionLocal()
    try:
        seed(session, settings)
    finally:
        session.close()

    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "password123"})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "ADMIN"
