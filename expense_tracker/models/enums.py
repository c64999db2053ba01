"""Enums for the expense tracker - these define the valid values for roles, categories and states."""
from enum import Enum


class Role(str, Enum):
    """The two roles a user can hold. No other roles are allowed."""
    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"


class ExpenseCategory(str, Enum):
    TRAVEL = "TRAVEL"
    FOOD = "FOOD"
    EQUIPMENT = "EQUIPMENT"
    OFFICE_SUPPLIES = "OFFICE_SUPPLIES"
    SOFTWARE = "SOFTWARE"
    TRAINING = "TRAINING"
    OTHER = "OTHER"


class ExpenseStatus(str, Enum):
    """Pending is the initial state; approved and rejected are decisions."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuditAction(str, Enum):
    """Kinds of audited actions. Stored as plain strings so new kinds need no schema change."""
    # Session
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"

    # Expense lifecycle
    EXPENSE_CREATED = "EXPENSE_CREATED"
    EXPENSE_UPDATED = "EXPENSE_UPDATED"
    EXPENSE_STATUS_UPDATED = "EXPENSE_STATUS_UPDATED"

    # User management
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"

    # Exports
    EXPENSE_EXPORT = "EXPENSE_EXPORT"
    AUDIT_EXPORT = "AUDIT_EXPORT"
