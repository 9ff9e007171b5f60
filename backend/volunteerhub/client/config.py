"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for the client library, read from ``VOLUNTEERHUB_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="VOLUNTEERHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = "http://localhost:5001/api"
    realtime_url: str = "ws://localhost:5001/ws"
    request_timeout: float = 10.0

    # Recipient id the server uses for notifications addressed to everyone
    broadcast_recipient: str = "all"

    # False on simulators: reminders are logged and stored, never scheduled
    is_device: bool = False

    # Location of the persisted reminder handles
    storage_path: str = ".volunteerhub/storage.json"


@lru_cache
def get_client_settings() -> ClientSettings:
    """Get cached client settings instance."""
    return ClientSettings()
