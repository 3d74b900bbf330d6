"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database (PostgreSQL in production, local SQLite file for dev)
    DATABASE_URL: str = "sqlite+pysqlite:///./donation_tracker.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Donor identity fallbacks
    PLACEHOLDER_EMAIL_DOMAIN: str = "mailinator.com"
    ANONYMOUS_DONOR_NAME: str = "Anonymous"

    # System fund that receives donations without a project or child
    GENERAL_FUND_PROJECT_TITLE: str = "General Donation"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
