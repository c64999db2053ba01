"""
Bootstrap data: one admin, one employee, and a handful of sample expenses.

    python -m expense_tracker.seed

Safe to run repeatedly; existing users are left alone and sample expenses are
only added for a newly created employee.
"""
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from expense_tracker.config import Settings
from expense_tracker.database import Database
from expense_tracker.models.domain import Expense
from expense_tracker.models.enums import ExpenseCategory, ExpenseStatus, Role
from expense_tracker.services.users import UserService

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "password123"

SAMPLE_EXPENSES = [
    ("150.50", ExpenseCategory.TRAVEL, date(2024, 1, 15), "Uber rides for client meetings", ExpenseStatus.APPROVED),
    ("75.25", ExpenseCategory.FOOD, date(2024, 1, 20), "Team lunch during project kickoff", ExpenseStatus.PENDING),
    ("299.99", ExpenseCategory.EQUIPMENT, date(2024, 1, 25), "New wireless headphones for calls", ExpenseStatus.APPROVED),
    ("45.00", ExpenseCategory.OFFICE_SUPPLIES, date(2024, 2, 1), "Notebooks and pens", ExpenseStatus.PENDING),
    ("89.99", ExpenseCategory.SOFTWARE, date(2024, 2, 5), "Annual subscription for design software", ExpenseStatus.APPROVED),
    ("250.00", ExpenseCategory.TRAVEL, date(2024, 2, 10), "Flight to regional office", ExpenseStatus.REJECTED),
    ("120.00", ExpenseCategory.TRAINING, date(2024, 2, 15), "Online course on cloud architecture", ExpenseStatus.PENDING),
]


def seed(db: Session, settings: Settings) -> dict:
    """Create the demo accounts and data. Returns how many of each were created."""
    users = UserService(db, settings)
    _, admin_created = users.ensure("admin@example.com", DEFAULT_PASSWORD, "Admin User", Role.ADMIN)
    employee, employee_created = users.ensure(
        "employee@example.com", DEFAULT_PASSWORD, "John Employee", Role.EMPLOYEE
    )

    expenses_created = 0
    if employee_created:
        for amount, category, spent_on, notes, status in SAMPLE_EXPENSES:
            db.add(Expense(
                amount=Decimal(amount),
                category=category,
                date=spent_on,
                notes=notes,
                status=status,
                rejection_reason="Not covered by travel policy" if status == ExpenseStatus.REJECTED else None,
                user_id=employee.id,
            ))
            expenses_created += 1
        db.commit()

    result = {
        "users": int(admin_created) + int(employee_created),
        "expenses": expenses_created,
    }
    logger.info("Seed complete: %s", result)
    return result


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    database = Database(settings.database_url)
    database.create_all()
    db = database.SessionLocal()
    try:
        seed(db, settings)
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
