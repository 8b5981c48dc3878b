"""Central environment-driven settings for the payment workflow.

Loaded once per process. Every field can be overridden through an environment
variable of the same name (case-insensitive) or a local `.env` file.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "payment-workflow"
    log_level: str = "INFO"
    database_url: str = "sqlite+pysqlite:///./payments.db"
    pre_auth_approval_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    auth_approval_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    # Upper bound on events handled by one top-level send, follow-ups included.
    max_event_chain: int = Field(default=16, gt=0)
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = AppSettings()
