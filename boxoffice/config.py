from dataclasses import dataclass
from pydantic_settings import BaseSettings
from typing import Optional


@dataclass(frozen=True)
class EngineConfig:
    """Explicit configuration injected into the inventory and issuance services"""
    fee_percentage: float
    validation_base_url: str

    def __post_init__(self):
        if not 0 < self.fee_percentage <= 1:
            raise ValueError(f"fee_percentage must be in (0, 1], got {self.fee_percentage}")
        if not self.validation_base_url:
            raise ValueError("validation_base_url is required")


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    PGHOST: Optional[str] = None
    PGDATABASE: Optional[str] = None
    PGUSER: Optional[str] = None
    PGPASSWORD: Optional[str] = None
    PGSSLMODE: str = "require"

    # Application
    PROJECT_NAME: str = "Box Office Ticketing Service"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Ticketing
    SERVICE_FEE_PERCENTAGE: float = 0.1
    VALIDATION_BASE_URL: str = "http://localhost:8000"
    QR_CODE_WIDTH: int = 256

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.PGHOST:
            return f"postgresql://{self.PGUSER}:{self.PGPASSWORD}@{self.PGHOST}/{self.PGDATABASE}?sslmode={self.PGSSLMODE}"
        return "sqlite:///./boxoffice.db"

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            fee_percentage=self.SERVICE_FEE_PERCENTAGE,
            validation_base_url=self.VALIDATION_BASE_URL.rstrip("/"),
        )

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
