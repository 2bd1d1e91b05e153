from pydantic_settings import BaseSettings
from typing import List
from pydantic import model_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./plantsched.db"
    ENVIRONMENT: str = "development"
    AUTO_CREATE_TABLES: bool = True
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    DEBUG: bool = True
    APP_NAME: str = "PlantSched"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_REQUEST_ID: bool = True
    ENABLE_REQUEST_LOGGING: bool = True
    ENABLE_SECURITY_HEADERS: bool = True
    STRICT_TRANSPORT_SECURITY_SECONDS: int = 31536000
    READINESS_CHECK_DATABASE: bool = True

    SCHEDULER_HORIZON_DAYS: int = 30
    SCHEDULER_MAX_SCAN_DAYS: int = 730
    SCHEDULER_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_TARGET_THROUGHPUT_PER_DAY: int = 2
    ALLOW_DEMO_DATA: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}

    @model_validator(mode="after")
    def validate_production_safety(self):
        if self.SCHEDULER_HORIZON_DAYS < 1:
            raise ValueError("SCHEDULER_HORIZON_DAYS must be at least 1.")

        if self.SCHEDULER_TIMEOUT_SECONDS <= 0:
            raise ValueError("SCHEDULER_TIMEOUT_SECONDS must be positive.")

        if not self.is_production:
            return self

        if "sqlite" in self.DATABASE_URL.lower():
            raise ValueError("SQLite is not allowed when ENVIRONMENT is production.")

        if self.AUTO_CREATE_TABLES:
            raise ValueError("AUTO_CREATE_TABLES must be false in production; use Alembic migrations.")

        if self.ALLOW_DEMO_DATA:
            raise ValueError("ALLOW_DEMO_DATA must be false in production.")

        return self


settings = Settings()
