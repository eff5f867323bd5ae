"""Application settings and validation."""

import os

DEFAULT_JWT_SECRET = "change_me_for_prod"


class Settings:
    ENV: str
    APP_VERSION: str
    DATABASE_URL: str
    API_PREFIX: str
    JWT_SECRET: str
    JWT_REFRESH_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    JWT_REFRESH_EXPIRE_DAYS: int
    JWT_TEMP_EXPIRE_MINUTES: int
    LOG_LEVEL: str
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    RATE_LIMIT_MAX: int
    RATE_LIMIT_WINDOW_SECONDS: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sga.db")
        self.API_PREFIX = os.getenv("API_PREFIX", "/api/v1").rstrip("/")
        self.JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
        self.JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", self.JWT_SECRET)
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.JWT_REFRESH_EXPIRE_DAYS = int(os.getenv("JWT_REFRESH_EXPIRE_DAYS", "7"))
        self.JWT_TEMP_EXPIRE_MINUTES = int(os.getenv("JWT_TEMP_EXPIRE_MINUTES", "15"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "100"))
        self.RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))  # 15 minutes
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if not self.API_PREFIX.startswith("/"):
            raise RuntimeError("API_PREFIX must start with '/'")

    @property
    def is_production(self) -> bool:
        return self.ENV in ("prod", "production")


def get_settings() -> Settings:
    """Build a fresh `Settings` snapshot from the current environment."""
    return Settings()
