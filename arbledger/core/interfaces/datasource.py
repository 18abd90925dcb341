from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional


class ITxSource(ABC):
    """
    Paginated block-explorer listings for one address.
    Records are raw explorer rows (hash, blockNumber, timeStamp, from, to, value, ...).
    An empty page marks the end of the stream.
    """

    @abstractmethod
    async def get_transactions_page(self, address: str, page: int, offset: int) -> List[dict]:
        pass

    @abstractmethod
    async def get_token_transfers_page(self, address: str, page: int, offset: int) -> List[dict]:
        pass


class IPriceSource(ABC):
    @abstractmethod
    async def get_price(self, contract: Optional[str], day: date) -> float:
        """
        USD unit price of `contract` (or the native asset when None) on `day`.
        Returns 0.0 when the source has no usable figure.
        """
        pass


class IPriceStore(ABC):
    @abstractmethod
    def load(self) -> Dict[str, float]:
        pass

    @abstractmethod
    def save(self, prices: Dict[str, float]) -> None:
        pass
