"""
Application configuration.
All secrets and connection strings are loaded from environment variables
(or etc/app.conf).  Nothing sensitive is hard-coded here.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Project root is two levels up from this file  (backend/core/config.py → ticketflow/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./ticketflow.db"

    # JWT signing secret – must be a long, random string.  Read once at
    # process start; there is no key rotation.
    secret_key: str

    # "production" turns on the Secure flag of the session cookie
    environment: str = "development"

    # Session lifetime.  The cookie max-age follows the same value.
    access_token_expire_minutes: int = 30

    # bcrypt work factor
    bcrypt_rounds: int = 12

    # Login throttling, per client IP
    login_rate_limit_attempts: int = 5
    login_rate_limit_window_minutes: int = 15

    cors_origins: list[str] = ["http://localhost:8000"]

    # Used only by seed_admin.py to bootstrap the first admin account.
    first_admin_email: str = ""
    first_admin_password: str = ""
    first_admin_name: str = "Administrator"

    # app.conf lives in etc/ – resolved relative to the project root so that
    # the file is found regardless of the working directory.
    model_config = {"env_file": str(_PROJECT_ROOT / "etc" / "app.conf")}

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


# Module-level singleton – import this everywhere: from core.config import settings
settings = Settings()
