import logging
from datetime import date
from typing import Dict, Optional

from arbledger.core.entities.transaction import normalize_address
from arbledger.core.interfaces.datasource import IPriceSource, IPriceStore

logger = logging.getLogger(__name__)

NATIVE_KEY = "eth"


class PriceCache(IPriceSource):
    """
    Memoizes USD unit prices per (asset, date).

    Entries are loaded from the store at construction and written back only
    when save() is called. Historical prices never change, so an entry is
    never refreshed. Not safe for concurrent callers: the lookup is a plain
    check-then-insert.
    """

    def __init__(self, source: IPriceSource, store: Optional[IPriceStore] = None):
        self.source = source
        self.store = store
        self.prices: Dict[str, float] = store.load() if store is not None else {}
        self.hits = 0
        self.misses = 0
        if self.prices:
            logger.info(f"Loaded {len(self.prices)} cached prices")

    @staticmethod
    def key(asset: Optional[str], day: date) -> str:
        asset_key = normalize_address(asset) or NATIVE_KEY
        return f"{asset_key}_{day.isoformat()}"

    async def price(self, asset: Optional[str], day: date) -> float:
        key = self.key(asset, day)
        cached = self.prices.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        value = await self.source.get_price(normalize_address(asset), day)
        self.prices[key] = value
        return value

    async def get_price(self, contract: Optional[str], day: date) -> float:
        return await self.price(contract, day)

    def insert_price(self, asset: Optional[str], day: date, price: float) -> None:
        self.prices[self.key(asset, day)] = price

    def save(self) -> None:
        if self.store is None:
            return
        logger.info(f"Price cache: {self.hits} hits, {self.misses} remote lookups")
        self.store.save(dict(self.prices))
