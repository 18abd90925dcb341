import logging
from datetime import date
from typing import Iterable, List, Optional

from arbledger.core.entities.split import Split
from arbledger.core.entities.symbol_registry import SymbolRegistry
from arbledger.core.entities.transaction import Transaction, normalize_address
from arbledger.core.errors import PriceLookupError, ValuationError
from arbledger.core.interfaces.datasource import IPriceSource

logger = logging.getLogger(__name__)

NATIVE_SYMBOL = "ETH"
NATIVE_DECIMALS = 18


def decode_units(value: int, decimals: int) -> float:
    return value / (10 ** decimals)


class SplitBuilder:
    """
    Converts annotated transactions into signed ledger splits.

    Valuation is on when a price source (normally a PriceCache) is given;
    without one no price I/O happens and value_usd stays None.
    """

    def __init__(self, registry: SymbolRegistry, prices: Optional[IPriceSource] = None):
        self.registry = registry
        self.prices = prices

    async def build(self, address: str, transactions: Iterable[Transaction]) -> List[Split]:
        tracked = normalize_address(address)
        splits: List[Split] = []
        dropped = 0

        for tx in transactions:
            day = tx.day
            deposit = tx.to_address == tracked
            description, account = self._labels(deposit, tx.from_tag, tx.to_tag)

            if tx.value:
                amount = decode_units(tx.value, NATIVE_DECIMALS)
                if not deposit:
                    amount = -amount
                splits.append(await self._split(day, description, account, NATIVE_SYMBOL, amount, None))

            for transfer in tx.transfers:
                symbol = self.registry.symbol_for(transfer.token_contract)
                if symbol is None:
                    dropped += 1
                    continue
                amount = decode_units(transfer.value, transfer.decimals)
                if transfer.from_address == tracked:
                    amount = -amount
                splits.append(await self._split(
                    day, description, account, symbol, amount, transfer.token_contract
                ))

        if dropped:
            logger.info(f"Ignored {dropped} transfers of unlisted tokens")
        return splits

    @staticmethod
    def _labels(deposit: bool, from_tag: Optional[str], to_tag: Optional[str]):
        if deposit:
            if from_tag:
                return f"from {from_tag}", from_tag
            return "deposit", "Unknown"
        if to_tag:
            return f"to {to_tag}", to_tag
        return "withdrawal", "Unknown"

    async def _split(
        self,
        day: date,
        description: str,
        account: str,
        commodity: str,
        amount: float,
        asset: Optional[str]
    ) -> Split:
        value_usd = None
        if self.prices is not None:
            try:
                unit_price = await self.prices.get_price(asset, day)
            except PriceLookupError as e:
                raise ValuationError(f"Could not value {commodity} on {day}: {e}") from e
            value_usd = amount * unit_price

        return Split(
            date=day,
            description=description,
            account=account,
            commodity=commodity,
            amount=amount,
            value_usd=value_usd
        )
