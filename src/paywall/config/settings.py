"""Application configuration schema and validation."""

import logging
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Application environment",
    )
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret API key",
    )
    stripe_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe webhook signing secret (whsec_...)",
    )
    stripe_monthly_price_id: str = Field(
        default="",
        description="Stripe Price ID for the monthly plan",
    )
    stripe_yearly_price_id: str = Field(
        default="",
        description="Stripe Price ID for the yearly plan",
    )
    firebase_project_id: str = Field(
        default="",
        description="Firebase project ID of the service account",
    )
    firebase_private_key: SecretStr = Field(
        default=SecretStr(""),
        description="Service account private key (PEM, literal \\n allowed)",
    )
    firebase_client_email: str = Field(
        default="",
        description="Service account client email",
    )
    families_collection: str = Field(
        default="families",
        description="Firestore collection holding one document per family",
    )
    host: str = Field(
        default="0.0.0.0",
        description="HTTP listen address",
    )
    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="HTTP listen port",
    )
    static_dir: str = Field(
        default="static",
        description="Directory holding app.html, test.html and other static assets",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("firebase_private_key")
    @classmethod
    def unescape_private_key(cls, v: SecretStr) -> SecretStr:
        """Turn literal '\\n' sequences from single-line env values into newlines."""
        return SecretStr(v.get_secret_value().replace("\\n", "\n"))

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level names a standard logging level."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def price_ids(self) -> dict[str, str]:
        """Plan name to Stripe Price ID mapping (unset prices are omitted)."""
        prices = {
            "monthly": self.stripe_monthly_price_id,
            "yearly": self.stripe_yearly_price_id,
        }
        return {plan: price for plan, price in prices.items() if price}


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config
