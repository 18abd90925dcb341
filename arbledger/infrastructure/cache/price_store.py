import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

import redis

from arbledger.core.interfaces.datasource import IPriceStore

logger = logging.getLogger(__name__)


def _only_prices(data) -> Dict[str, float]:
    if not isinstance(data, dict):
        return {}
    prices = {}
    for key, value in data.items():
        try:
            prices[str(key)] = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Dropping non-numeric cached price for {key}: {value!r}")
    return prices


class JsonFilePriceStore(IPriceStore):
    """
    Flat {"eth_2024-01-01": 2281.5, ...} JSON file.
    A missing or corrupt file loads as an empty cache.
    """

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Dict[str, float]:
        if not self.path.exists():
            return {}
        try:
            return _only_prices(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable price cache {self.path}: {e}")
            return {}

    def save(self, prices: Dict[str, float]) -> None:
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(prices, indent=2, sort_keys=True), encoding="utf-8")
        logger.info(f"Saved {len(prices)} prices to {self.path}")


class RedisPriceStore(IPriceStore):
    """
    Keeps the whole price map in one Redis hash, so several machines can
    share lookups they already paid for.
    """

    def __init__(self, redis_url: Optional[str] = None, key: str = "arbledger:prices"):
        self.redis_url = redis_url or os.getenv("REDIS_URL")
        self.key = key
        self.client = None
        if self.redis_url:
            try:
                self.client = redis.from_url(self.redis_url, decode_responses=True)
                # Test connection
                self.client.ping()
                logger.info("Connected to Redis for price caching.")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}. Starting with an empty price cache.")
                self.client = None
        else:
            logger.info("REDIS_URL not set. Redis price store disabled.")

    def load(self) -> Dict[str, float]:
        if not self.client:
            return {}
        try:
            return _only_prices(self.client.hgetall(self.key))
        except Exception as e:
            logger.warning(f"Redis load error: {e}")
            return {}

    def save(self, prices: Dict[str, float]) -> None:
        if not self.client:
            return
        if not prices:
            return
        try:
            self.client.hset(self.key, mapping={k: json.dumps(v) for k, v in prices.items()})
            logger.info(f"Saved {len(prices)} prices to Redis hash {self.key}")
        except Exception as e:
            logger.warning(f"Redis save error: {e}")


def make_price_store(redis_url: Optional[str], path) -> IPriceStore:
    """Redis when a URL is configured, otherwise the local JSON file."""
    if redis_url:
        return RedisPriceStore(redis_url)
    return JsonFilePriceStore(path)
