# backend/shopfloor/core/settings.py
"""
Shopfloor Tracker - Configuration Management with pydantic-settings

- Loads from environment and root .env
- Validates and normalizes values
- Cached singleton via get_settings()
"""
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# backend/shopfloor/core/settings.py -> <repo>/.env
_ENV_FILE = Path(__file__).resolve().parent.parent.parent.parent / ".env"

# Fixture bundled with the package
_DEFAULT_SEED_FILE = Path(__file__).resolve().parent.parent / "data" / "seed_orders.json"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===================
    # Application Settings
    # ===================
    PROJECT_NAME: str = "Shopfloor Tracker"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Deployment environment")

    # ===================
    # CORS Settings
    # ===================
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins",
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    FRONTEND_URL: Optional[str] = Field(
        default=None, description="Station UI URL (added to CORS origins)"
    )

    @model_validator(mode="after")
    def add_frontend_url_to_cors(self):
        """Ensure FRONTEND_URL is allowed for CORS."""
        if self.FRONTEND_URL and self.FRONTEND_URL not in self.ALLOWED_ORIGINS:
            self.ALLOWED_ORIGINS = list(self.ALLOWED_ORIGINS) + [self.FRONTEND_URL]
        return self

    # ===================
    # Bootstrap Data
    # ===================
    LOAD_SEED_DATA: bool = Field(
        default=True, description="Load the seed dataset into the store at startup"
    )
    SEED_DATA_PATH: Path = Field(
        default=_DEFAULT_SEED_FILE, description="JSON file with the initial orders"
    )

    # ===================
    # Intake
    # ===================
    GENERAL_STOCK_ORDER_ID: str = Field(
        default="GENERAL-STOCK", description="Order that collects unassociated intake"
    )
    GENERAL_STOCK_CUSTOMER: str = "General Stock"
    PLACEHOLDER_CUSTOMER: str = Field(
        default="Unverified Order",
        description="Customer name on orders created for unknown order ids",
    )
    INTAKE_LEAD_DAYS: int = Field(
        default=14, ge=0, description="Due date offset for orders created by intake"
    )

    # ===================
    # Supervision
    # ===================
    HOLD_AGING_HOURS: float = Field(
        default=24.0, gt=0, description="Holds at or beyond this age are escalated"
    )

    # ===================
    # Logging
    # ===================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
