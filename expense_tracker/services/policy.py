"""
Authorization policy.

Every role and ownership decision goes through authorize(): one small pure
predicate per action, evaluated over (caller, action, resource). Admins bypass
ownership checks; employees may only touch rows they own.
"""
import logging
from enum import Enum
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Query

from expense_tracker.errors import Forbidden
from expense_tracker.models.domain import Expense, User

logger = logging.getLogger(__name__)


class Action(str, Enum):
    EXPENSE_CREATE = "expense:create"
    EXPENSE_VIEW = "expense:view"
    EXPENSE_EDIT = "expense:edit"
    EXPENSE_DECIDE = "expense:decide"
    EXPENSE_EXPORT = "expense:export"
    USER_MANAGE = "user:manage"
    ANALYTICS_VIEW_ALL = "analytics:view-all"
    AUDIT_VIEW = "audit:view"


def is_admin(caller: User, resource=None) -> bool:
    return caller.is_admin


def is_authenticated(caller: User, resource=None) -> bool:
    return caller is not None


def owns_or_admin(caller: User, resource: Optional[Expense] = None) -> bool:
    if caller.is_admin:
        return True
    return resource is not None and resource.user_id == caller.id


POLICIES: Dict[Action, Callable[[User, object], bool]] = {
    Action.EXPENSE_CREATE: is_authenticated,
    Action.EXPENSE_VIEW: owns_or_admin,
    Action.EXPENSE_EDIT: owns_or_admin,
    Action.EXPENSE_DECIDE: is_admin,
    Action.EXPENSE_EXPORT: is_admin,
    Action.USER_MANAGE: is_admin,
    Action.ANALYTICS_VIEW_ALL: is_admin,
    Action.AUDIT_VIEW: is_admin,
}

# Messages for refusals that callers are expected to hit
_MESSAGES = {
    Action.EXPENSE_VIEW: "You do not have permission to view this expense",
    Action.EXPENSE_EDIT: "You can only edit your own expenses",
}


def is_allowed(caller: User, action: Action, resource=None) -> bool:
    return POLICIES[action](caller, resource)


def authorize(caller: User, action: Action, resource=None) -> None:
    """Raise Forbidden unless the caller may perform the action on the resource."""
    if not is_allowed(caller, action, resource):
        logger.debug("Refused %s for user %s", action.value, caller.id)
        raise Forbidden(_MESSAGES.get(action))


def scope_expenses(query: Query, caller: User) -> Query:
    """
    Row-level filter for any query over expenses.

    Employees only ever see their own rows, whatever other filters the
    client supplied. Admins see everything.
    """
    if caller.is_admin:
        return query
    return query.filter(Expense.user_id == caller.id)
