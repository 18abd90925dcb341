"""
Pytest configuration and shared fixtures.
"""
from datetime import date
from typing import Dict, List, Optional, Tuple

import pytest
from httpx import AsyncClient, ASGITransport

from arbledger.api import main as api
from arbledger.config import Settings
from arbledger.core.entities.address_book import AddressBook
from arbledger.core.errors import FetchError, PriceLookupError
from arbledger.core.interfaces.datasource import IPriceSource, ITxSource

TRACKED = "0x2222222222222222222222222222222222222222"
ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x3333333333333333333333333333333333333333"
USDC = "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8"
SPAM_TOKEN = "0x9999999999999999999999999999999999999999"
WEI = 10 ** 18


def raw_tx(tx_hash: str, sender: str = ALICE, to: str = TRACKED, value: int = WEI, ts: int = 1700000000) -> dict:
    return {
        "blockNumber": "100",
        "timeStamp": str(ts),
        "hash": tx_hash,
        "from": sender,
        "to": to,
        "value": str(value),
        "isError": "0",
    }


def raw_event(
    tx_hash: str,
    contract: str = USDC,
    sender: str = ALICE,
    to: str = TRACKED,
    value: int = 1_000_000,
    decimals: str = "6",
    symbol: str = "USDC"
) -> dict:
    return {
        "blockNumber": "100",
        "timeStamp": "1700000000",
        "hash": tx_hash,
        "from": sender,
        "to": to,
        "contractAddress": contract,
        "value": str(value),
        "tokenName": symbol,
        "tokenSymbol": symbol,
        "tokenDecimal": decimals,
    }


class FakeTxSource(ITxSource, IPriceSource):
    """In-memory explorer: page N (1-based) is tx_pages[N-1], past the end is empty."""

    def __init__(
        self,
        tx_pages: Optional[List[List[dict]]] = None,
        event_pages: Optional[List[List[dict]]] = None,
        fail_events_on_page: Optional[int] = None,
        prices: Optional[Dict[Tuple[Optional[str], date], float]] = None
    ):
        self.tx_pages = tx_pages or []
        self.event_pages = event_pages or []
        self.fail_events_on_page = fail_events_on_page
        self.prices = prices or {}
        self.tx_calls: List[Tuple[int, int]] = []
        self.event_calls: List[Tuple[int, int]] = []
        self.price_calls: List[Tuple[Optional[str], date]] = []

    async def get_transactions_page(self, address: str, page: int, offset: int) -> List[dict]:
        self.tx_calls.append((page, offset))
        return list(self.tx_pages[page - 1]) if page <= len(self.tx_pages) else []

    async def get_token_transfers_page(self, address: str, page: int, offset: int) -> List[dict]:
        self.event_calls.append((page, offset))
        if self.fail_events_on_page == page:
            raise FetchError(f"tokentx page {page} failed")
        return list(self.event_pages[page - 1]) if page <= len(self.event_pages) else []

    async def get_price(self, contract: Optional[str], day: date) -> float:
        self.price_calls.append((contract, day))
        return self.prices.get((contract, day), 0.0)

    async def aclose(self) -> None:
        pass


class CountingPriceSource(IPriceSource):
    def __init__(self, price: float = 2000.0, fail: bool = False):
        self.price = price
        self.fail = fail
        self.calls: List[Tuple[Optional[str], date]] = []

    async def get_price(self, contract: Optional[str], day: date) -> float:
        self.calls.append((contract, day))
        if self.fail:
            raise PriceLookupError("price source unreachable")
        return self.price


@pytest.fixture
def fake_source():
    return FakeTxSource(
        tx_pages=[[raw_tx("0xaa"), raw_tx("0xbb", sender=TRACKED, to=BOB, value=2 * WEI)]],
        event_pages=[[raw_event("0xaa"), raw_event("0xbb", contract=SPAM_TOKEN, symbol="USDC")]],
        prices={(None, date(2023, 11, 14)): 2000.0, (USDC, date(2023, 11, 14)): 1.0},
    )


@pytest.fixture
async def client(fake_source, tmp_path):
    """Async HTTP client with the explorer replaced by an in-memory fake."""
    settings = Settings(price_cache_path=str(tmp_path / "prices.json"))

    async def fake_datasource():
        yield fake_source

    api.app.dependency_overrides[api.get_settings] = lambda: settings
    api.app.dependency_overrides[api.get_datasource] = fake_datasource
    api.app.dependency_overrides[api.get_address_book] = lambda: AddressBook.from_tags({ALICE: "alice", BOB: "bob"})

    transport = ASGITransport(app=api.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    api.app.dependency_overrides.clear()
