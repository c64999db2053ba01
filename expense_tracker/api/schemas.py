"""Pydantic schemas for request/response validation."""
import re
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from expense_tracker.models.enums import AuditAction, ExpenseCategory, ExpenseStatus, Role
from expense_tracker.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("100000")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _parse_iso(value: str) -> datetime:
    # fromisoformat only accepts a trailing Z from Python 3.11
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def coerce_date(value):
    """Accept a date, a datetime, or an ISO string of either."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            if "T" in value or " " in value.strip():
                return _parse_iso(value).date()
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ValueError("Invalid date format")
    raise ValueError("Invalid date format")


def coerce_datetime(value, end_of_day: bool = False):
    """Like coerce_date but keeps the time; a bare date covers the whole day when end_of_day."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)
    if isinstance(value, str):
        try:
            if "T" in value or " " in value.strip():
                return _to_naive_utc(_parse_iso(value))
            day = date.fromisoformat(value.strip())
        except ValueError:
            raise ValueError("Invalid date format")
        return datetime.combine(day, time.max if end_of_day else time.min)
    raise ValueError("Invalid date format")


def _check_email(value: str) -> str:
    value = value.strip()
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email format")
    return value


class CamelModel(BaseModel):
    """JSON fields are camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Auth schemas
class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        return _check_email(value)


class UserPublic(CamelModel):
    id: str
    email: str
    name: str
    role: Role


class LoginResponse(CamelModel):
    message: str
    user: UserPublic
    token: str


class MeResponse(CamelModel):
    user: UserPublic


class MessageResponse(BaseModel):
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


# User schemas
class UserSummary(CamelModel):
    id: str
    name: str
    email: str


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    role: Role
    created_at: datetime
    updated_at: datetime
    expense_count: int = 0


class UserCreate(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)
    role: Role = Role.EMPLOYEE

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        return _check_email(value)


class UserUpdate(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[Role] = None

    @field_validator("email")
    @classmethod
    def email_format(cls, value):
        return None if value is None else _check_email(value)


class UserListResponse(CamelModel):
    users: List[UserResponse]
    pagination: Pagination


class UserEnvelope(CamelModel):
    message: str
    user: UserResponse


class UserDetail(CamelModel):
    user: UserResponse


# Expense schemas
class ExpenseForm(BaseModel):
    """Content fields of an expense, as submitted in the multipart form."""
    amount: Decimal
    category: ExpenseCategory
    date: date
    notes: Optional[str] = Field(None, max_length=1000)
    # Optional optimistic concurrency check on edit
    version: Optional[int] = Field(None, ge=1)

    @field_validator("amount")
    @classmethod
    def amount_in_range(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("Amount must be a positive number")
        value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        if value < MIN_AMOUNT:
            raise ValueError("Amount must be at least 0.01")
        if value > MAX_AMOUNT:
            raise ValueError("Amount cannot exceed 100,000")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        return coerce_date(value)

    @field_validator("notes")
    @classmethod
    def blank_notes(cls, value):
        if value is not None and not value.strip():
            return None
        return value

    def content(self) -> dict:
        """Keyword arguments for ExpenseWorkflow.create/update."""
        return {"amount": self.amount, "category": self.category, "spent_on": self.date, "notes": self.notes}


class ExpenseStatusUpdate(BaseModel):
    status: ExpenseStatus
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("status")
    @classmethod
    def decision_only(cls, value: ExpenseStatus) -> ExpenseStatus:
        if value == ExpenseStatus.PENDING:
            raise ValueError("Status must be either APPROVED or REJECTED")
        return value


class ExpenseFilters(CamelModel):
    category: Optional[ExpenseCategory] = None
    status: Optional[ExpenseStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return coerce_date(value)

    def criteria(self) -> dict:
        return {"category": self.category, "status": self.status, "start": self.start_date, "end": self.end_date}


class ExpenseResponse(CamelModel):
    id: str
    amount: float
    category: ExpenseCategory
    date: date
    notes: Optional[str]
    status: ExpenseStatus
    rejection_reason: Optional[str]
    receipt_url: Optional[str]
    version: int
    user_id: str
    user: UserSummary
    created_at: datetime
    updated_at: datetime


class ExpenseListResponse(CamelModel):
    expenses: List[ExpenseResponse]
    pagination: Pagination


class ExpenseEnvelope(CamelModel):
    message: str
    expense: ExpenseResponse


class ExpenseDetail(CamelModel):
    expense: ExpenseResponse


# Audit schemas
class AuditFilters(CamelModel):
    action: Optional[AuditAction] = None
    user_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start(cls, value):
        return coerce_datetime(value)

    @field_validator("end_date", mode="before")
    @classmethod
    def parse_end(cls, value):
        return coerce_datetime(value, end_of_day=True)


class AuditLogResponse(CamelModel):
    id: str
    action: str
    description: str
    timestamp: datetime
    user_id: str
    user: UserSummary


class AuditListResponse(CamelModel):
    logs: List[AuditLogResponse]
    pagination: Pagination


class RecentActivityResponse(CamelModel):
    recent_logs: List[AuditLogResponse]


# Error response
class ErrorResponse(BaseModel):
    error: str
    message: str
