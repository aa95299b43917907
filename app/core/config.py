
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = Field(default="Brokerage Documents API", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    app_port: int = Field(default=8000, alias="APP_PORT")
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    max_upload_size_mb: int = Field(default=10, alias="MAX_UPLOAD_SIZE_MB")

    # Database (hosted Postgres via asyncpg or SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./brokerage_dev.db",
        alias="DATABASE_URL",
    )

    # Upstream OCR / automation webhook that receives proposal PDFs
    proposal_webhook_url: str | None = Field(default=None, alias="PROPOSAL_WEBHOOK_URL")
    webhook_timeout: int = Field(default=60, alias="WEBHOOK_TIMEOUT")

    # Upload queue polling (36 x 5s = 3 minutes)
    upload_poll_interval_seconds: float = Field(
        default=5.0, alias="UPLOAD_POLL_INTERVAL_SECONDS",
    )
    upload_poll_max_attempts: int = Field(default=36, alias="UPLOAD_POLL_MAX_ATTEMPTS")

    # Payment schedules
    installment_interval_days: int = Field(default=30, alias="INSTALLMENT_INTERVAL_DAYS")
    first_due_offset_days: int = Field(default=30, alias="FIRST_DUE_OFFSET_DAYS")
    upcoming_window_days: int = Field(default=30, alias="UPCOMING_WINDOW_DAYS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def uploads_enabled(self) -> bool:
        """The upload queue only runs when a proposal webhook is configured."""
        return bool(self.proposal_webhook_url)

settings = Settings()
