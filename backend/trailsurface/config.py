"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Redis (shared job store / surface cache) ===
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL"
    )

    # === Job Store ===
    job_store_backend: Literal["memory", "redis"] = Field(default="memory")
    job_ttl_seconds: Optional[int] = Field(
        default=3600,
        description="Job retention; None keeps in-memory jobs until cancelled"
    )

    # === Surface Cache ===
    surface_cache_backend: Literal["memory", "redis"] = Field(default="memory")
    surface_cache_max_entries: int = Field(default=100_000, ge=1)
    surface_cache_ttl_seconds: int = Field(default=7 * 24 * 3600)
    surface_cache_precision: Optional[int] = Field(
        default=None,
        description="Round cache keys to N decimals; None keys on exact floats"
    )

    # === Surface Lookup (Overpass API) ===
    overpass_api_url: str = Field(
        default="https://overpass-api.de/api/interpreter",
        description="Overpass API endpoint"
    )
    overpass_search_radius_m: float = Field(default=25.0, gt=0)
    overpass_timeout_seconds: float = Field(default=30.0, gt=0)

    # === Ingestion ===
    max_concurrent_jobs: int = Field(default=4, ge=1)
    classify_batch_size: int = Field(default=100, ge=1)
    progress_interval_seconds: float = Field(default=1.0, gt=0)
    cleanup_interval_seconds: float = Field(default=300.0, gt=0)
    max_upload_bytes: int = Field(default=20 * 1024 * 1024)

    # === Artifacts (uploaded GPX files) ===
    artifact_backend: Literal["local", "s3"] = Field(default="local")
    artifact_dir: str = Field(default="./uploads")
    s3_bucket: Optional[str] = Field(default=None)
    aws_region: str = Field(default="ap-southeast-2")

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
