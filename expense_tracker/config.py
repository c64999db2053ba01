"""Application settings, read from the environment."""
import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite:///./expenses.db"
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 7
    bcrypt_rounds: int = 10
    upload_dir: str = "uploads"
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3006"]
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        defaults = cls()
        database_url = os.getenv("DATABASE_URL", defaults.database_url)

        # Render/Heroku use postgres:// but SQLAlchemy needs postgresql://
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        cors_origins = os.getenv("CORS_ORIGINS")
        return cls(
            database_url=database_url,
            jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
            jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", defaults.jwt_expires_days)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", defaults.bcrypt_rounds)),
            upload_dir=os.getenv("UPLOAD_DIR", defaults.upload_dir),
            max_file_size=int(os.getenv("MAX_FILE_SIZE", defaults.max_file_size)),
            rate_limit_window_ms=int(os.getenv("RATE_LIMIT_WINDOW_MS", defaults.rate_limit_window_ms)),
            rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", defaults.rate_limit_max_requests)),
            cors_origins=_split_origins(cors_origins) if cors_origins else defaults.cors_origins,
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )
