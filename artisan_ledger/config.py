from decimal import Decimal
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Try to load .env into os.environ; a missing file is fine
load_dotenv()


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Artisan's Ledger"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Database (journal). Unset means memory-only.
    DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]  # Restrict in production

    # Costing
    LABOR_RATE_PER_HOUR: Decimal = Decimal("15.00")
    CURRENCY: str = "USD"

    # Per-item locking
    LOCK_TIMEOUT_SECONDS: float = 2.0
    LOCK_RETRY_ATTEMPTS: int = 3
    LOCK_RETRY_BACKOFF_SECONDS: float = 0.05

    # Startup
    SEED_SAMPLE_DATA: bool = False

    # Audit
    AUDIT_LOG_ALL: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
