from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "URL Shortener Microservice"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Persistence
    # URI is accepted as an alias so existing deployments keep working
    database_url: str = Field(
        default="sqlite:///./url_service.db",
        validation_alias=AliasChoices("database_url", "uri"),
    )
    store_backend: str = "sql"  # Options: "sql", "redis", "memory"
    redis_url: str = "redis://localhost:6379/0"
    counter_name: str = "urlid"

    # Validation
    max_url_length: int = 2048
    allowed_schemes: List[str] = ["http", "https"]

    # CORS
    cors_origins: List[str] = ["*"]

    # Rate limiting (per client IP)
    rate_limit_enabled: bool = True
    rate_limit: str = "100/15 minutes"
    rate_limit_message: str = "Too many requests from this IP, please try again after 15 minutes."
    rate_limit_storage_uri: str = "memory://"  # or redis://host:6379/1 to share counts between workers

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Static content
    views_dir: Path = PACKAGE_DIR / "views"
    public_dir: Path = PACKAGE_DIR / "public"

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Create settings instance
settings = Settings()
