"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Required environment variables:
        - MONGODB_URI: MongoDB connection string

    Optional environment variables:
        - MONGODB_DATABASE: Database name (default: b2b_marketplace)
        - HOST: Server host (default: 0.0.0.0)
        - PORT: Server port (default: 8080)
        - ENVIRONMENT: Environment name (development, staging, production)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=4, description="Number of uvicorn workers")

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # MongoDB Configuration
    # ==========================================================================
    mongodb_uri: str = Field(..., description="MongoDB connection string")
    mongodb_database: str = Field(
        default="b2b_marketplace",
        description="Database holding the listings and categories collections"
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000,
        description="How long the driver waits to find a usable server"
    )
    mongodb_socket_timeout_ms: int = Field(
        default=45000,
        description="Socket timeout for a single database operation"
    )
    listings_collection: str = Field(default="listings", description="Listings collection name")
    categories_collection: str = Field(default="categories", description="Categories collection name")

    # ==========================================================================
    # Search Configuration
    # ==========================================================================
    search_default_limit: int = Field(
        default=12,
        ge=1,
        description="Page size used when the request does not specify a valid limit"
    )
    search_max_limit: int = Field(
        default=50,
        ge=1,
        description="Largest page size a client may request"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The application settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    # Try to find .env file in project root
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: A new settings instance with overrides applied
    """
    test_defaults = {
        "mongodb_uri": "mongodb://localhost:27017",
        "mongodb_database": "listing_search_test",
        "environment": "testing",
        "debug": True,
    }
    test_defaults.update(overrides)

    return Settings(**test_defaults)
