"""
Configuration management using pydantic-settings.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from lnfunding.funding_cache import CACHE_FILE_NAME


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: Literal["mainnet", "testnet", "signet", "regtest"] = "mainnet"

    rpc_url: str = "http://127.0.0.1:8332"
    rpc_user: str = "rpcuser"
    rpc_password: str = "rpcpassword"
    rpc_timeout: float = 30.0

    # Esplora-compatible API for address history, empty to disable
    address_api_url: str = "https://mempool.space/api"

    cache_dir: Path = Path("./cache")

    # Address watched for unconfirmed incoming transactions, unset to disable
    watched_address: str | None = None

    logger_update_interval: float = Field(default=30.0, gt=0)
    checkpoint_interval: float = Field(default=60.0, gt=0)

    block_cache_size: int = Field(default=100, ge=1)
    block_cache_evict_count: int = Field(default=10, ge=1)

    log_level: str = "INFO"

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / CACHE_FILE_NAME


def get_settings() -> Settings:
    return Settings()
