"""
Application configuration loaded from environment variables.

Uses pydantic-settings for typed, validated configuration with .env file support.
The SysAid credentials use the same variable names as the SPFx backend
deployment (SYSAID_BASE_URL, SYSAID_ACCOUNT_ID, ...).
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings — loaded from environment variables or .env file."""

    # ── App ──────────────────────────────────────────
    app_env: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    # Extra origins on top of SharePoint and localhost, comma-separated
    allowed_origins: str = Field(
        default="",
        validation_alias=AliasChoices("allowed_origins", "cors_origins"),
    )

    # ── SysAid Connect API ───────────────────────────
    sysaid_base_url: str = ""
    sysaid_account_id: str = ""
    sysaid_client_id: str = ""
    sysaid_client_secret: str = ""
    sysaid_timeout_seconds: float = 30.0

    # Tokens are treated as expired this long before SysAid says they are
    token_expiry_margin_seconds: int = 300

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def sysaid_configured(self) -> bool:
        """True when every value needed to request an access token is set."""
        return all((
            self.sysaid_base_url,
            self.sysaid_account_id,
            self.sysaid_client_id,
            self.sysaid_client_secret,
        ))

    @property
    def connect_base_url(self) -> str:
        """Base URL with any trailing slash removed."""
        return self.sysaid_base_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()
