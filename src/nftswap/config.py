"""
Global configuration using Pydantic Settings.
All values can be overridden from environment variables.
"""

from dotenv import load_dotenv
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
load_dotenv()


class ChainConfig(BaseSettings):
    """Ledger connection configuration."""

    model_config = SettingsConfigDict(env_prefix="CHAIN_", extra="ignore")

    rpc_url: str = Field(
        default="http://localhost:8545",
        description="JSON-RPC endpoint"
    )
    chain_id: int = Field(default=1, description="Default chain ID")
    gas_price_multiplier: float = Field(
        default=1.1,
        description="Gas price multiplier"
    )


class TrackerConfig(BaseSettings):
    """Order status tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="TRACKER_", extra="ignore")

    poll_interval_seconds: float = Field(
        default=10.0,
        description="Delay between order status polls"
    )
    default_timeout_ms: int = Field(
        default=60000,
        description="Default wait timeout for fill/cancel tracking"
    )
    read_retry_attempts: int = Field(
        default=3,
        description="Attempts per ledger read before giving up"
    )
    read_retry_max_wait_seconds: float = Field(
        default=5.0,
        description="Max backoff between ledger read retries"
    )
    receipt_timeout_seconds: int = Field(
        default=120,
        description="Default wait for a transaction receipt"
    )


class OrderConfig(BaseSettings):
    """Order construction defaults."""

    model_config = SettingsConfigDict(env_prefix="ORDER_", extra="ignore")

    default_expiration_seconds: int = Field(
        default=3600,
        description="Order lifetime when no expiration is supplied"
    )


class NftSwapConfig(BaseSettings):
    """Master configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    debug: bool = Field(default=False)

    # Sub-configurations
    chain: ChainConfig = Field(default_factory=ChainConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    order: OrderConfig = Field(default_factory=OrderConfig)


# Global config instance
config = NftSwapConfig()


__all__ = [
    "NftSwapConfig",
    "ChainConfig",
    "TrackerConfig",
    "OrderConfig",
    "config",
]
