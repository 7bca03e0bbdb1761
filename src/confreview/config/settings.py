"""Configuration management using Pydantic Settings."""

from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_path: Path = Field(Path("data") / "confreview.db")

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")

    # Links rendered into notification emails
    dashboard_url: str = Field(
        "http://localhost:8000/dashboard/abstracts",
        description="Author dashboard link used for the {dashboardUrl} placeholder",
    )

    # Assignment defaults, used when a rule leaves them unset
    assignment_policy: str = Field("load-based", pattern="^(load-based|round-robin)$")
    reviewers_per_abstract_default: int = Field(2, ge=1, le=20)
    max_abstracts_per_user: int = Field(5, ge=1)

    # Email transport. With an empty host nothing can be delivered and queued mail is kept.
    smtp_host: str = Field("", description="SMTP server host")
    smtp_port: int = Field(587, gt=0)
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = Field("noreply@conference.local")

    # Retry configuration for transient store errors
    max_retries: int = Field(3, ge=1, le=10)
    retry_backoff_factor: float = Field(0.05, gt=0)
    retry_max_wait: float = Field(2.0, gt=0)

    @field_validator("database_path")
    @classmethod
    def _create_parent(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v


# Instantiate global settings
settings = Settings()
