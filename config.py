"""
Configuration settings for the Business Dashboard API.

All values come from environment variables so the same build runs locally,
in CI and in production.
"""
import os
from dataclasses import dataclass, field
from typing import List

# Used only when JWT_SECRET is not set. Never rely on this outside development.
DEFAULT_JWT_SECRET = "supersecretjwtkey"


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "erp_app"
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_in: int = 3600  # seconds
    bcrypt_rounds: int = 10
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"
    port: int = 8000

    @property
    def using_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
        database_name=os.getenv("DATABASE_NAME", "erp_app"),
        jwt_secret=os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
        jwt_expires_in=int(os.getenv("JWT_EXPIRES_IN", 3600)),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 10)),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:5173")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        port=int(os.getenv("PORT", 8000)),
    )


settings = get_settings()
