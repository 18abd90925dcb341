import asyncio
import logging
import os
from typing import AsyncIterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# --- Imports ---
from arbledger.config import Settings
from arbledger.core.entities.address_book import AddressBook
from arbledger.core.entities.split import Split
from arbledger.core.entities.transaction import Transaction
from arbledger.core.errors import ConfigParseError, FetchError, ValuationError
from arbledger.core.interfaces.datasource import IPriceSource, ITxSource
from arbledger.core.services import LedgerService
from arbledger.infrastructure.cache.price_cache import PriceCache
from arbledger.infrastructure.cache.price_store import make_price_store
from arbledger.infrastructure.config.address_book import load_address_book
from arbledger.infrastructure.gateways.arbiscan_api import ArbiscanGateway
from arbledger.infrastructure.persistence.postgres_repo import LedgerRepo

# Setup Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("ArbLedger")

app = FastAPI(title="ArbLedger API", version="0.1.0", description="Arbitrum address history as ledger splits")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError):
    logger.error(f"Explorer fetch failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(ValuationError)
async def valuation_error_handler(request: Request, exc: ValuationError):
    logger.error(f"Valuation failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


# --- Dependency Injection ---

def get_settings() -> Settings:
    return Settings.load(os.getenv("ARBLEDGER_CONFIG"))


async def get_datasource(settings: Settings = Depends(get_settings)) -> AsyncIterator[ArbiscanGateway]:
    gateway = ArbiscanGateway(api_key=settings.api_key, base_url=settings.api_url)
    try:
        yield gateway
    finally:
        await gateway.aclose()


def get_address_book() -> AddressBook:
    book = AddressBook()
    for env_name in ("ARBLEDGER_TAGS", "ARBLEDGER_CATEGORIES"):
        path = os.getenv(env_name)
        if not path:
            continue
        try:
            book = book.merge(load_address_book(path))
        except ConfigParseError as e:
            raise HTTPException(status_code=500, detail=str(e))
    return book


def get_price_source(
    gateway: ITxSource = Depends(get_datasource)
) -> IPriceSource:
    return gateway


def get_repo(settings: Settings = Depends(get_settings)) -> Optional[LedgerRepo]:
    if not settings.database_url:
        return None
    try:
        return LedgerRepo(settings.database_url)
    except Exception as e:
        logger.error(f"Failed to connect to DB: {e}")
        return None


def get_service(
    settings: Settings = Depends(get_settings),
    gateway: ITxSource = Depends(get_datasource),
    book: AddressBook = Depends(get_address_book)
) -> LedgerService:
    return LedgerService(gateway, address_book=book, page_size=settings.page_size)


# --- Endpoints ---

@app.get("/health")
async def health():
    return {"status": "healthy", "mode": "Arbiscan explorer via Gateway"}


@app.get("/v1/transactions", response_model=List[Transaction])
async def get_transactions(
    address: str = Query(..., description="Tracked address"),
    service: LedgerService = Depends(get_service)
):
    return await service.get_transactions(address)


@app.get("/v1/splits", response_model=List[Split])
async def get_splits(
    address: str = Query(..., description="Tracked address"),
    prices: bool = Query(False, description="Attach USD values"),
    settings: Settings = Depends(get_settings),
    service: LedgerService = Depends(get_service),
    price_source: IPriceSource = Depends(get_price_source)
):
    if not prices:
        return await service.get_splits(address)

    # Store setup, load and save hit Redis or the disk; keep them off the loop
    store = await asyncio.to_thread(make_price_store, settings.redis_url, settings.price_cache_path)
    cache = await asyncio.to_thread(PriceCache, price_source, store)
    splits = await service.get_splits(address, cache)
    await asyncio.to_thread(cache.save)
    return splits


@app.post("/v1/sync")
async def sync_data(
    address: str = Query(..., description="Tracked address"),
    service: LedgerService = Depends(get_service),
    repo: Optional[LedgerRepo] = Depends(get_repo)
):
    """
    Fetches the address history and persists transactions and unvalued
    splits to Postgres.
    """
    if not repo:
        raise HTTPException(status_code=503, detail="Database not configured or unavailable")

    transactions = await service.get_transactions(address)
    splits = await service.build_splits(address, transactions)

    # Offload to thread to avoid blocking async loop
    await asyncio.to_thread(repo.bulk_insert_transactions, transactions, address.lower())
    await asyncio.to_thread(repo.replace_splits, splits, address.lower())

    return {
        "status": "success",
        "stats": {"transactions_saved": len(transactions), "splits_saved": len(splits)}
    }


@app.get("/v1/ledger", response_model=List[Split])
async def get_stored_ledger(
    address: str = Query(..., description="Tracked address"),
    repo: Optional[LedgerRepo] = Depends(get_repo)
):
    """Splits previously persisted by /v1/sync."""
    if not repo:
        raise HTTPException(status_code=503, detail="Database not configured or unavailable")
    return await asyncio.to_thread(repo.get_splits, address.lower())
