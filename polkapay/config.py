"""Configuration settings for polkapay."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment."""

    # Subscan indexer credential. Required for payment verification only.
    subscan_api_key: str | None = None
    indexer_timeout: float | None = None  # None: caller owns the deadline

    # Network
    polkadot_network: str = "polkadot"
    polkadot_rpc_endpoint: str | None = None  # Overrides the registry default

    # Amount-level proof needs a second (block) lookup per verification
    verify_transfer_amount: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
