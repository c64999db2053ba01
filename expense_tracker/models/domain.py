"""Domain models - users and the expense claims they own."""
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from expense_tracker.database import Base
from expense_tracker.models.enums import ExpenseCategory, ExpenseStatus, Role


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    A person who can log in.

    Invariants:
    - Role is always EMPLOYEE or ADMIN
    - Email is unique across all users
    - Password is only ever stored as a bcrypt hash
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(Role), nullable=False, default=Role.EMPLOYEE)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Deleting a user removes everything they own
    expenses = relationship("Expense", back_populates="user", cascade="all, delete-orphan")
    audit_logs = relationship("AuditLog", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def expense_count(self) -> int:
        return len(self.expenses)


class Expense(Base):
    """
    A single expense claim: Pending -> Approved | Rejected.

    Invariants enforced in the workflow service:
    - Created and edited expenses are always Pending
    - rejection_reason is only set by a rejection
    - version increases on every write, and an UPDATE only applies to the
      version that was read
    """
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=_new_id)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(SQLEnum(ExpenseCategory), nullable=False)
    date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(ExpenseStatus), nullable=False, default=ExpenseStatus.PENDING, index=True)
    rejection_reason = Column(Text, nullable=True)
    receipt_url = Column(String(500), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="expenses")

    __mapper_args__ = {"version_id_col": version}
