"""Configuration management for Metaquery."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Storage backend: "memory" (JSON catalog file) or "calcite" (JDBC)
    storage_backend: str = "memory"
    catalog_file: Optional[str] = None

    # Calcite JDBC Configuration
    calcite_jar_path: Optional[str] = None
    calcite_model_path: Optional[str] = None
    calcite_schema: Optional[str] = None  # Restrict collections to one schema

    # Value reported in TABLE_CAT
    cluster_name: str = "metaquery"

    # LIKE matching
    identifier_case_sensitive: bool = True
    like_escape_char: Optional[str] = None

    # Storage lookups
    lookup_timeout_seconds: float = 30.0
    lookup_max_workers: int = 4

    # Server Configuration
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    server_reload: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def like_escape(self) -> Optional[str]:
        """Return the LIKE escape marker, treating an empty value as unset."""
        return self.like_escape_char or None


# Global settings instance
settings = Settings()
