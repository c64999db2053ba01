"""Database configuration and session management."""
import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Owns the engine and session factory for one application instance.

    Constructed once in create_app and stored on app.state; request handlers
    receive sessions through get_db instead of importing a global client.
    """

    def __init__(self, url: str):
        self.url = url

        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # In-memory databases live per connection, so share one
                self.engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool)
            else:
                self.engine = create_engine(url, connect_args=connect_args)
        else:
            # PostgreSQL config (production)
            self.engine = create_engine(
                url,
                pool_pre_ping=True,  # Verify connections before using
                pool_size=5,
                max_overflow=10
            )

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # Import models to register them with Base
        from expense_tracker.models import audit, domain  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()


def get_db(request: Request):
    """Dependency for FastAPI endpoints to get database session."""
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
