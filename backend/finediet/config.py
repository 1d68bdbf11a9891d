from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./finediet.db"
    TEST_DATABASE_URL: str = "sqlite+aiosqlite:///./test.db"

    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Comma-separated; these addresses register as admins
    ADMIN_EMAILS: str = ""

    # n8n automation webhooks
    N8N_WEBHOOK_URL: str = ""
    N8N_PEOPLE_WEBHOOK_URL: str = ""
    SHEETS_WEBHOOK_URL: str = ""
    WEBHOOK_FIRE_TIMEOUT_SECONDS: float = 2.5

    # Outbox dispatcher
    OUTBOX_CRON_SECRET: str = ""
    OUTBOX_DISPATCH_INTERVAL_SECONDS: int = 300
    OUTBOX_DISPATCH_TIMEOUT_SECONDS: float = 10.0
    OUTBOX_MAX_ATTEMPTS: int = 5
    OUTBOX_BATCH_SIZE: int = 25
    OUTBOX_PENDING_GRACE_SECONDS: int = 120

    # SEO fallbacks when seo:global is not configured
    SITE_NAME: str = "Fine Diet"
    CANONICAL_BASE: str = "https://myfinediet.com"

    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _fix_database_url(self):
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if self.DATABASE_URL.startswith("postgresql://"):
            self.DATABASE_URL = self.DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://", 1,
            )
        return self

    @property
    def admin_emails(self) -> set[str]:
        return {e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()}


settings = Settings()
