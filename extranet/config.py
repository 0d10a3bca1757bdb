from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./extranet.db",
        alias="DATABASE_URL"
    )

    # Write gate for partner endpoints (Authorization: Bearer <token>)
    # Empty token means every write is refused.
    extranet_write_token: str = Field(default="", alias="EXTRANET_WRITE_TOKEN")

    # CORS - Frontend URLs from environment (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        alias="ALLOWED_ORIGINS"
    )

    # ==============================================
    # Pricing materialization
    # ==============================================
    # Timezone used to decide what "today" is for the write window
    pricing_timezone: str = Field(default="UTC", alias="PRICING_TIMEZONE")

    # Rolling window for fills triggered by catalog reads: [today - past, today + future]
    write_window_past_days: int = Field(default=2, alias="WRITE_WINDOW_PAST_DAYS")
    write_window_future_days: int = Field(default=183, alias="WRITE_WINDOW_FUTURE_DAYS")

    # Largest date span accepted by any pricing endpoint
    max_range_days: int = Field(default=366, alias="MAX_RANGE_DAYS")

    # Public catalog rate limit (slowapi syntax)
    catalog_rate_limit: str = Field(default="120/minute", alias="CATALOG_RATE_LIMIT")

    # Seed a demo property on startup (development only)
    seed_demo_data: bool = Field(default=False, alias="SEED_DEMO_DATA")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    @field_validator('write_window_past_days', 'write_window_future_days', 'max_range_days')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("window and range sizes must be >= 0")
        return v

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        if not self.allowed_origins:
            return ["http://localhost:5173"]

        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        return origins if origins else ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Initialize settings on module load
settings = get_settings()
