import logging
from datetime import date
from typing import List, Optional

import httpx

from arbledger.core.errors import FetchError, PriceLookupError
from arbledger.core.interfaces.datasource import IPriceSource, ITxSource

logger = logging.getLogger(__name__)

ARBISCAN_API_URL = "https://api.arbiscan.io/api"

# Explorer replies with status "0" and one of these when a page is simply empty
_EMPTY_MESSAGES = ("no transactions found", "no records found")


class ArbiscanGateway(ITxSource, IPriceSource):
    """
    Implementation of ITxSource and IPriceSource for the Arbiscan
    (Etherscan-compatible) HTTP API.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = ARBISCAN_API_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        :param api_key: Explorer API key; anonymous requests are heavily rate limited.
        :param client: Pre-built client (tests pass one with a MockTransport).
        """
        self.api_key = api_key
        self.base_url = base_url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"ArbiscanGateway initialized. URL: {base_url}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _get(self, params: dict) -> dict:
        if self.api_key:
            params = {**params, "apikey": self.api_key}
        response = await self.client.get(self.base_url, params=params)
        response.raise_for_status()
        return response.json()

    async def _list(self, action: str, address: str, page: int, offset: int) -> List[dict]:
        params = {
            "module": "account",
            "action": action,
            "address": address,
            "page": page,
            "offset": offset,
            "sort": "asc",
        }
        try:
            payload = await self._get(params)
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"{action} page {page} for {address} failed: {e}") from e

        result = payload.get("result") if isinstance(payload, dict) else None
        if isinstance(result, list):
            return [r for r in result if isinstance(r, dict)]

        message = str(payload.get("message", "")) if isinstance(payload, dict) else ""
        if message.lower().startswith(_EMPTY_MESSAGES):
            return []
        raise FetchError(f"{action} page {page} for {address} rejected: {message} {result}")

    async def get_transactions_page(self, address: str, page: int, offset: int) -> List[dict]:
        return await self._list("txlist", address, page, offset)

    async def get_token_transfers_page(self, address: str, page: int, offset: int) -> List[dict]:
        return await self._list("tokentx", address, page, offset)

    async def get_price(self, contract: Optional[str], day: date) -> float:
        params = {"module": "stats", "date": day.strftime("%Y-%m-%d")}
        if contract:
            params["action"] = "tokenpricehistory"
            params["contractaddress"] = contract
        else:
            params["action"] = "ethdailyprice"

        try:
            payload = await self._get(params)
        except (httpx.HTTPError, ValueError) as e:
            raise PriceLookupError(f"Price lookup for {contract or 'ETH'} on {day} failed: {e}") from e

        return self._parse_price(payload, contract, day)

    @staticmethod
    def _parse_price(payload, contract: Optional[str], day: date) -> float:
        """
        Result comes back either as a list of daily rows or as a single
        object; the figure lives under 'ethusd' or 'tokenPriceUSD'.
        """
        result = payload.get("result") if isinstance(payload, dict) else None
        row = None
        if isinstance(result, list) and result and isinstance(result[0], dict):
            row = result[0]
        elif isinstance(result, dict):
            row = result

        raw = None
        if row is not None:
            raw = row.get("ethusd", row.get("tokenPriceUSD"))

        try:
            return float(raw)
        except (TypeError, ValueError):
            logger.warning(f"No usable price for {contract or 'ETH'} on {day}; using 0")
            return 0.0
