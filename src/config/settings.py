"""
Application Settings - Pydantic Settings for configuration management.

Supports environment variables and .env file loading.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def normalize_to_uppercase(v: str) -> str:
    """Normalize string to uppercase."""
    if isinstance(v, str):
        return v.upper()
    return v


class Neo4jSettings(BaseSettings):
    """Neo4j database connection settings."""

    model_config = SettingsConfigDict(env_prefix="NEO4J_")

    uri: str = Field(default="bolt://localhost:7687", description="Neo4j connection URI")
    username: str = Field(default="neo4j", description="Neo4j username")
    password: SecretStr = Field(default=SecretStr("password"), description="Neo4j password")
    database: str = Field(default="neo4j", description="Neo4j database name")
    max_connection_pool_size: int = Field(default=50, description="Connection pool size")


class MigrationSettings(BaseSettings):
    """Schema migration helper settings."""

    model_config = SettingsConfigDict(env_prefix="MIGRATION_")

    max_per_batch: int = Field(
        default=900, ge=1, description="Nodes updated per statement during batched migrations"
    )
    batch_shrink_factor: float = Field(
        default=0.8,
        gt=0.0,
        lt=1.0,
        description="Factor applied to the batch size after a transient store error",
    )
    tracking_label: str = Field(
        default="Migration", description="Label of the nodes recording applied migrations"
    )


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="OBSERVABILITY_")

    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format (json for production, console for development)"
    )


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="Graph Schema Migrations", description="Application name")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"],
        BeforeValidator(normalize_to_uppercase),
    ] = Field(default="INFO", description="Logging level")

    # Sub-settings
    neo4j: Neo4jSettings = Field(default_factory=Neo4jSettings)
    migration: MigrationSettings = Field(default_factory=MigrationSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
