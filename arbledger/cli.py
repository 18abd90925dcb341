"""CLI for ArbLedger."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from arbledger.config import Settings
from arbledger.core.entities.address_book import AddressBook
from arbledger.core.errors import ArbLedgerError
from arbledger.core.services import LedgerService
from arbledger.infrastructure.cache.price_cache import PriceCache
from arbledger.infrastructure.cache.price_store import make_price_store
from arbledger.infrastructure.config.address_book import load_address_book
from arbledger.infrastructure.export.csv_export import write_splits_csv
from arbledger.infrastructure.gateways.arbiscan_api import ArbiscanGateway

logger = logging.getLogger("arbledger")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arbledger",
        description="Export an Arbitrum address's history as GnuCash-ready splits",
    )
    parser.add_argument("--address", required=True, help="Arbitrum address to export")
    parser.add_argument("--output", required=True, type=Path, help="Output file path")
    parser.add_argument("--tags", type=Path, help="Address -> tag file (json, yaml or toml)")
    parser.add_argument("--categories", type=Path, help="Address -> category/description file")
    parser.add_argument("--prices", action="store_true", help="Attach USD values to each split")
    parser.add_argument("--config", help="Settings file (default: config.yml when present)")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Write the merged transactions as JSON instead of CSV splits",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _address_book(tags: Optional[Path], categories: Optional[Path]) -> AddressBook:
    book = AddressBook()
    for path in (tags, categories):
        if path is not None:
            book = book.merge(load_address_book(path))
    return book


async def run(args: argparse.Namespace) -> int:
    settings = Settings.load(args.config)
    book = _address_book(args.tags, args.categories)

    gateway = ArbiscanGateway(api_key=settings.api_key, base_url=settings.api_url)
    try:
        service = LedgerService(gateway, address_book=book, page_size=settings.page_size)
        transactions = await service.get_transactions(args.address)

        if args.json:
            payload = [tx.model_dump(mode="json") for tx in transactions]
            args.output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            logger.info(f"Wrote {len(transactions)} transactions to {args.output}")
            return 0

        cache: Optional[PriceCache] = None
        if args.prices:
            cache = PriceCache(gateway, make_price_store(settings.redis_url, settings.price_cache_path))

        splits = await service.build_splits(args.address, transactions, cache)
        if cache is not None:
            cache.save()
        write_splits_csv(args.output, splits, with_value=args.prices)
    finally:
        await gateway.aclose()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(run(args))
    except ArbLedgerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
