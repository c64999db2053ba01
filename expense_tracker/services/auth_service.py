"""Login and logout."""
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from expense_tracker.config import Settings
from expense_tracker.errors import InvalidCredentials, Unauthenticated
from expense_tracker.models.domain import User
from expense_tracker.models.enums import AuditAction
from expense_tracker.services.audit_log import AuditLogWriter
from expense_tracker.services.security import decode_token, hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Verifies credentials, issues tokens and resolves callers from tokens."""

    _dummy_hash: Optional[str] = None

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.audit = AuditLogWriter(db)

    def _burn_hash_time(self, password: str) -> None:
        # Keep the unknown-email path as slow as a real comparison
        if AuthService._dummy_hash is None:
            AuthService._dummy_hash = hash_password("not-a-real-password", self.settings.bcrypt_rounds)
        verify_password(password, AuthService._dummy_hash)

    def authenticate(self, email: str, password: str) -> Tuple[User, str]:
        """
        Return the user and a fresh token.

        Unknown email and wrong password raise the same InvalidCredentials so
        the response never reveals whether an account exists.
        """
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            self._burn_hash_time(password)
            logger.info("Failed login for %s", email)
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise InvalidCredentials()

        self.audit.record_and_commit(AuditAction.USER_LOGIN, f"User {user.email} logged in", user.id)
        logger.info("User %s logged in", user.email)
        return user, issue_token(user, self.settings)

    def logout(self, user: User) -> None:
        """Tokens are stateless; logging out only leaves a trail. The client discards the token."""
        self.audit.record_and_commit(AuditAction.USER_LOGOUT, f"User {user.email} logged out", user.id)

    def resolve(self, token: str) -> User:
        """
        Map a bearer token to the current user row.

        The role always comes from the database, not from the token claim.
        """
        payload = decode_token(token, self.settings)
        user = self.db.query(User).filter(User.id == payload["userId"]).first()
        if user is None:
            raise Unauthenticated("User no longer exists")
        return user
