"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dogwallet.constants import DEFAULT_FEE_PER_KB, DUST_AMOUNT, NUM_RETRIES


class TransferConfig(BaseModel):
    """Parameters for building an inscription transfer."""

    dust_amount: int = Field(
        default=DUST_AMOUNT, ge=1, description="Value sent along with the inscription"
    )
    fee_per_kb: int = Field(
        default=DEFAULT_FEE_PER_KB, ge=0, description="Fee per started kilobyte in koinu"
    )

    model_config = {"frozen": True}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOGWALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Remote services
    dogechain_url: str = "https://dogechain.info"
    doginals_url: str = "https://doginals.com"
    blockchair_url: str = "https://api.blockchair.com"

    request_timeout: float = 30.0
    num_retries: int = Field(default=NUM_RETRIES, ge=1)
    retry_delay: float = Field(default=0.0, ge=0.0)

    fee_per_kb: int = Field(default=DEFAULT_FEE_PER_KB, ge=0)

    store_path: Path = Path.home() / ".dogwallet" / "store.json"

    log_level: str = "INFO"

    def transfer_config(self) -> TransferConfig:
        return TransferConfig(fee_per_kb=self.fee_per_kb)


def get_settings() -> Settings:
    return Settings()
