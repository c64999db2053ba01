"""API router: one sub-router per resource."""
from fastapi import APIRouter

from expense_tracker.api import analytics, audit, auth, expenses, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
router.include_router(audit.router, prefix="/audit", tags=["Audit"])
router.include_router(audit.router, prefix="/logs", tags=["Audit"], include_in_schema=False)
