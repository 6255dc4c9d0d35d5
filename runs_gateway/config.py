"""
Centralized configuration.

Two layers:
- Settings: process environment, loaded once with Pydantic Settings.
- GatewayConfig: operator-editable key/value settings, loaded fresh for
  every inbound message from a SettingsStore.
"""

import secrets
from abc import ABC, abstractmethod

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Run storage database
    run_storage_host: str = "run-storage"
    run_storage_port: int = 5432
    run_storage_db: str = "hash_runs"
    run_storage_user: str = "hash_runs"
    run_storage_password: str = ""

    # Extraction service (Anthropic Messages API)
    extraction_api_url: str = "https://api.anthropic.com/v1/messages"
    extraction_model: str = "claude-sonnet-4-20250514"
    extraction_timeout: float = 30.0
    extraction_max_tokens: int = 1024

    # Public site, used for permalinks in confirmations
    site_url: str = "https://guildfordh3.org.uk"

    # Outbound mail
    subject_prefix: str = "GH3"
    smtp_timeout: float = 30.0

    # Defaults for the stored gateway settings
    anthropic_api_key: str = ""
    webhook_secret: str = ""
    authorised_emails: str = ""
    smtp_host: str = "smtp.forwardemail.net"
    smtp_port: int = 465
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "GH3 Hash Runs"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True  # False for colored dev output

    @property
    def database_url(self) -> str:
        """PostgreSQL connection URL for run storage."""
        return (
            f"postgresql://{self.run_storage_user}:{self.run_storage_password}"
            f"@{self.run_storage_host}:{self.run_storage_port}/{self.run_storage_db}"
        )


# Global settings instance
settings = Settings()


class SettingsStore(ABC):
    """Persisted key/value storage for gateway settings."""

    @abstractmethod
    def get_all(self) -> dict[str, str]:
        """Return every stored setting."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a single setting."""
        pass


class GatewayConfig(BaseModel):
    """Per-message gateway configuration."""

    anthropic_api_key: str = ""
    webhook_secret: str = ""
    authorised_emails: str = ""
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = ""

    @classmethod
    def keys(cls) -> list[str]:
        return list(cls.model_fields)

    @classmethod
    def load(cls, store: SettingsStore, defaults: Settings | None = None) -> "GatewayConfig":
        """
        Build the configuration for one message.

        Stored values override the environment defaults. Blank stored values
        are kept, so an operator can clear a setting.
        """
        defaults = defaults or settings
        values = {key: getattr(defaults, key) for key in cls.keys()}
        stored = store.get_all()
        values.update({key: value for key, value in stored.items() if key in values})
        if not values["smtp_port"]:
            values["smtp_port"] = defaults.smtp_port
        return cls.model_validate(values)

    @property
    def authorised_senders(self) -> set[str]:
        """Allow-list as lower-cased addresses, one per line in storage."""
        return {
            line.strip().lower()
            for line in self.authorised_emails.splitlines()
            if line.strip()
        }

    def is_authorised(self, email: str) -> bool:
        return email.strip().lower() in self.authorised_senders

    @property
    def sender_address(self) -> str:
        """Address replies are sent from."""
        return self.from_email or self.smtp_user


def ensure_webhook_secret(store: SettingsStore) -> str:
    """Generate and persist a webhook secret when none is configured."""
    config = GatewayConfig.load(store)
    if config.webhook_secret:
        return config.webhook_secret
    secret = secrets.token_urlsafe(24)
    store.set("webhook_secret", secret)
    return secret
