import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Optional

from arbledger.core.entities.transaction import TokenTransfer, Transaction
from arbledger.core.interfaces.datasource import ITxSource

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str, int, int], Awaitable[List[dict]]]

DEFAULT_PAGE_SIZE = 100


def _to_int(raw, default: int = 0) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(str(raw), 0) if str(raw).startswith("0x") else int(raw)
    except (TypeError, ValueError):
        return default


class TransactionAggregator:
    """
    Pulls the normal-transaction and token-transfer streams for an address
    and merges the transfer events into their parent transactions by hash.
    """

    def __init__(self, source: ITxSource, page_size: int = DEFAULT_PAGE_SIZE):
        self.source = source
        self.page_size = page_size

    async def fetch(self, address: str) -> List[Transaction]:
        # Both loops must finish; the first failure cancels the other
        tasks = [
            asyncio.ensure_future(self._collect(self.source.get_transactions_page, address, "txlist")),
            asyncio.ensure_future(self._collect(self.source.get_token_transfers_page, address, "tokentx")),
        ]
        try:
            raw_txs, raw_events = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        transfers = self._group_transfers(raw_events)

        result: List[Transaction] = []
        skipped = 0
        for raw in raw_txs:
            tx = self._to_transaction(raw)
            if tx is None:
                skipped += 1
                continue
            tx.transfers = transfers.pop(tx.hash, [])
            result.append(tx)

        if skipped:
            logger.info(f"Skipped {skipped} malformed transaction records for {address}")
        if transfers:
            logger.debug(f"{len(transfers)} transfer groups had no matching normal transaction")
        logger.info(f"Fetched {len(result)} transactions and {len(raw_events)} transfer events for {address}")
        return result

    async def _collect(self, fetch_page: PageFetcher, address: str, stream: str) -> List[dict]:
        records: List[dict] = []
        page = 1
        while True:
            batch = await fetch_page(address, page, self.page_size)
            if not batch:
                break
            records.extend(batch)
            page += 1
        logger.debug(f"{stream}: {len(records)} records over {page - 1} pages")
        return records

    @staticmethod
    def _group_transfers(events: List[dict]) -> Dict[str, List[TokenTransfer]]:
        grouped: Dict[str, List[TokenTransfer]] = defaultdict(list)
        for ev in events:
            tx_hash = (ev.get("hash") or "").lower()
            sender = ev.get("from")
            contract = ev.get("contractAddress")
            if not tx_hash or not sender or not contract:
                logger.debug(f"Skipping malformed transfer event: {ev}")
                continue
            grouped[tx_hash].append(TokenTransfer(
                token_contract=contract,
                from_address=sender,
                to_address=ev.get("to") or None,
                value=_to_int(ev.get("value")),
                token_name=ev.get("tokenName") or "",
                token_symbol=ev.get("tokenSymbol") or "",
                token_decimal=str(ev.get("tokenDecimal") or "18"),
            ))
        return dict(grouped)

    @staticmethod
    def _to_transaction(raw: dict) -> Optional[Transaction]:
        tx_hash = (raw.get("hash") or "").lower()
        sender = raw.get("from")
        if not tx_hash or not sender:
            return None
        return Transaction(
            hash=tx_hash,
            block_number=_to_int(raw.get("blockNumber")),
            timestamp=_to_int(raw.get("timeStamp")),
            from_address=sender,
            to_address=raw.get("to") or None,
            value=_to_int(raw.get("value")),
        )
