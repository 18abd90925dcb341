import logging
from typing import List, Optional

from arbledger.core.entities.address_book import AddressBook
from arbledger.core.entities.split import Split
from arbledger.core.entities.symbol_registry import SymbolRegistry
from arbledger.core.entities.transaction import Transaction
from arbledger.core.interfaces.datasource import IPriceSource, ITxSource
from arbledger.core.use_cases.annotator import apply_annotations
from arbledger.core.use_cases.split_builder import SplitBuilder
from arbledger.core.use_cases.transaction_aggregator import DEFAULT_PAGE_SIZE, TransactionAggregator

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Runs the pipeline for one address:
    fetch -> annotate -> build splits (valued when a price source is given).
    """

    def __init__(
        self,
        datasource: ITxSource,
        registry: Optional[SymbolRegistry] = None,
        address_book: Optional[AddressBook] = None,
        page_size: int = DEFAULT_PAGE_SIZE
    ):
        self.aggregator = TransactionAggregator(datasource, page_size=page_size)
        self.registry = registry or SymbolRegistry.arbitrum()
        self.address_book = address_book or AddressBook()

    async def get_transactions(self, address: str) -> List[Transaction]:
        transactions = await self.aggregator.fetch(address)
        if len(self.address_book):
            apply_annotations(transactions, self.address_book)
        return transactions

    async def build_splits(
        self,
        address: str,
        transactions: List[Transaction],
        prices: Optional[IPriceSource] = None
    ) -> List[Split]:
        builder = SplitBuilder(self.registry, prices)
        splits = await builder.build(address, transactions)
        logger.info(f"Built {len(splits)} splits from {len(transactions)} transactions for {address}")
        return splits

    async def get_splits(self, address: str, prices: Optional[IPriceSource] = None) -> List[Split]:
        transactions = await self.get_transactions(address)
        return await self.build_splits(address, transactions, prices)
