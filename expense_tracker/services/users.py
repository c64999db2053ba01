"""User administration. Every write is admin-only and audited."""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from expense_tracker.config import Settings
from expense_tracker.errors import Conflict, Forbidden, NotFound
from expense_tracker.models.domain import User
from expense_tracker.models.enums import AuditAction, Role
from expense_tracker.services.audit_log import AuditLogWriter
from expense_tracker.services.pagination import paginate
from expense_tracker.services.policy import Action, authorize
from expense_tracker.services.security import hash_password

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.audit = AuditLogWriter(db)

    def _email_taken(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email).first() is not None

    def list(self, caller: User, page: int, limit: int, search: str = "") -> Tuple[List[User], dict]:
        authorize(caller, Action.USER_MANAGE)
        query = self.db.query(User)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))
        return paginate(query.order_by(User.created_at.desc()), page, limit)

    def get(self, caller: User, user_id: str) -> User:
        authorize(caller, Action.USER_MANAGE)
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("The requested user does not exist", error="User not found")
        return user

    def create(self, caller: User, email: str, password: str, name: str, role: Role = Role.EMPLOYEE) -> User:
        authorize(caller, Action.USER_MANAGE)
        if self._email_taken(email):
            raise Conflict("A user with this email already exists", error="User already exists")

        user = User(
            email=email,
            password_hash=hash_password(password, self.settings.bcrypt_rounds),
            name=name,
            role=role,
        )
        self.db.add(user)
        self.db.flush()
        self.audit.record(AuditAction.USER_CREATED, f"User {user.email} created by admin", caller.id)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(
        self,
        caller: User,
        user_id: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
        name: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> User:
        """Partial update; fields left out keep their value."""
        user = self.get(caller, user_id)

        if email and email != user.email:
            if self._email_taken(email):
                raise Conflict("A user with this email already exists", error="Email already exists")
            user.email = email
        if name:
            user.name = name
        if role:
            user.role = role
        if password:
            user.password_hash = hash_password(password, self.settings.bcrypt_rounds)
        user.updated_at = datetime.utcnow()

        self.audit.record(AuditAction.USER_UPDATED, f"User {user.email} updated by admin", caller.id)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, caller: User, user_id: str) -> None:
        """
        Delete a user together with their expenses and audit entries.

        An admin may not delete their own account.
        """
        user = self.get(caller, user_id)
        if user.id == caller.id:
            raise Forbidden("You cannot delete your own account", error="Cannot delete yourself")

        email = user.email
        self.db.delete(user)
        self.audit.record(AuditAction.USER_DELETED, f"User {email} deleted by admin", caller.id)
        self.db.commit()
        logger.info("User %s deleted by %s", email, caller.id)

    def ensure(self, email: str, password: str, name: str, role: Role) -> Tuple[User, bool]:
        """Create the user unless the email already exists. Used by the seed script."""
        user = self.db.query(User).filter(User.email == email).first()
        if user:
            return user, False
        user = User(
            email=email,
            password_hash=hash_password(password, self.settings.bcrypt_rounds),
            name=name,
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user, True
