"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(default="development", description="Deployment environment")

    # Security
    jwt_secret: str = Field(
        default="change-this-to-a-secure-random-string-in-production",
        description="JWT signing secret",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_minutes: int = Field(default=1440, description="JWT expiration (24h)")
    demo_user_password: str = Field(
        default="marina-demo", description="Password assigned to seeded demo users"
    )

    # Database
    db_type: str = Field(default="duckdb", description="Database type")
    db_path: str = Field(default="./data/marina.duckdb", description="DuckDB file path")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Data source
    default_data_source: str = Field(
        default="mock", description="Initial data source (mock|database)"
    )
    forced_data_source: str = Field(
        default="none", description="Lock the data source (none|mock|database)"
    )
    sample_records_per_type: int = Field(
        default=25, ge=1, description="Records per type in the demo dataset"
    )
    sample_seed: int = Field(default=42, description="Random seed for the demo dataset")

    # Metrics
    recent_payment_days: int = Field(
        default=30, ge=1, description="Window for payments included in summaries"
    )
    health_base_score: float = Field(default=100.0, ge=0, description="Starting health score")
    health_pending_penalty: float = Field(
        default=10.0, ge=0, description="Score deducted per pending work order"
    )
    health_in_progress_penalty: float = Field(
        default=5.0, ge=0, description="Score deducted per in-progress work order"
    )
    contract_expiry_warning_days: int = Field(
        default=30, ge=0, description="Days before end date a contract counts as expiring"
    )

    # Validation harness
    validation_base_url: str = Field(
        default="http://localhost:8000/api/v1",
        description="Base URL the validation probe uses for listing endpoints",
    )
    validation_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Validation probe timeout"
    )

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("default_data_source")
    @classmethod
    def validate_default_data_source(cls, v: str) -> str:
        """Only mock and database are valid data sources."""
        v = v.lower()
        if v not in ("mock", "database"):
            raise ValueError("default_data_source must be 'mock' or 'database'")
        return v

    @field_validator("forced_data_source")
    @classmethod
    def validate_forced_data_source(cls, v: str) -> str:
        """Forced mode is none, mock or database."""
        v = v.lower()
        if v not in ("none", "mock", "database"):
            raise ValueError("forced_data_source must be 'none', 'mock' or 'database'")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
