"""
Runtime settings.

Environment variables win over the optional config file, so a deployed
job can be pointed elsewhere without editing files.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from arbledger.core.errors import ConfigParseError
from arbledger.infrastructure.gateways.arbiscan_api import ARBISCAN_API_URL
from arbledger.infrastructure.config.file_formats import read_structured

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yml"

_ENV_FIELDS = {
    "api_url": ("ARBISCAN_API_URL",),
    "api_key": ("ARBISCAN_API_KEY", "ETHERSCAN_API_KEY"),
    "page_size": ("PAGE_SIZE",),
    "price_cache_path": ("PRICE_CACHE_PATH",),
    "redis_url": ("REDIS_URL",),
    "database_url": ("DATABASE_URL",),
}


class Settings(BaseModel):
    api_url: str = ARBISCAN_API_URL
    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("api_key", "etherscan_api_key"))
    page_size: int = 100
    price_cache_path: str = "prices.json"
    redis_url: Optional[str] = None
    database_url: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        values = {}
        file_path = Path(path or DEFAULT_CONFIG_PATH)
        if path is not None or file_path.exists():
            data = read_structured(file_path) or {}
            if not isinstance(data, dict):
                raise ConfigParseError(f"{file_path} must contain a mapping of settings")
            values.update(data)
            logger.info(f"Loaded settings from {file_path}")

        for field, env_names in _ENV_FIELDS.items():
            for name in env_names:
                value = os.getenv(name)
                if value:
                    values[field] = value
                    break

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigParseError(f"Invalid settings: {e}") from e
