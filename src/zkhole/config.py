"""Configuration management for the zkHole SDK."""

import logging
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from zkhole.exceptions import ValidationError
from zkhole.models.schemas import Network

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ZkHoleSettings(BaseSettings):
    """
    SDK settings, read from ``ZKHOLE_*`` environment variables and ``.env``.

    Example:
        ZKHOLE_NETWORK=mainnet-beta
        ZKHOLE_TIMEOUT_MS=60000
        ZKHOLE_DATABASE_URL=sqlite:///zkhole_ledger.db
    """

    model_config = SettingsConfigDict(
        env_prefix="ZKHOLE_",
        env_file=".env",
        extra="ignore",
    )

    network: Network = Field(default=Network.DEVNET)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=1, description="Ledger request timeout")
    database_url: str = Field(default="sqlite://", description="SQLAlchemy URL for the local ledger")
    default_slippage: float = Field(default=0.02, ge=0.0, lt=1.0)
    swap_fee_rate: float = Field(default=0.003, ge=0.0, lt=1.0)
    inbox_page_size: int = Field(default=20, ge=1, le=100)
    sealing_key: Optional[str] = Field(default=None, description="Fernet key for message sealing")
    log_level: str = Field(default="INFO", description="Python logging level name")


@lru_cache(maxsize=1)
def get_settings() -> ZkHoleSettings:
    """
    Load settings once per process.

    Raises:
        ValidationError: If an environment value is out of range
    """
    load_dotenv()
    try:
        settings = ZkHoleSettings()
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid zkHole configuration: {e}", cause=e) from e
    logger.debug(f"Loaded settings for network {settings.network.value}")
    return settings


def reset_settings() -> None:
    """Forget cached settings (for testing)."""
    get_settings.cache_clear()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler for applications embedding the SDK."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
