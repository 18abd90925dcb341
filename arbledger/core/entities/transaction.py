"""
Transaction Entities for ArbLedger

Normal chain transactions with their ERC-20 transfer events attached.
"""
from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def normalize_address(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class TokenTransfer(BaseModel):
    """
    A single ERC-20 transfer event.
    Name and symbol are whatever the explorer reported and are display-only.
    """
    token_contract: str
    from_address: str
    to_address: Optional[str] = None
    value: int = 0  # smallest unit
    token_name: str = ""
    token_symbol: str = ""
    token_decimal: str = "18"

    @field_validator("token_contract", "from_address", "to_address")
    @classmethod
    def _lower_address(cls, v: Optional[str]) -> Optional[str]:
        return normalize_address(v)

    @property
    def decimals(self) -> int:
        try:
            decimals = int(self.token_decimal)
        except (TypeError, ValueError):
            return 18
        return decimals if decimals >= 0 else 18


class Transaction(BaseModel):
    """
    Standardised chain transaction used throughout the pipeline.
    Annotation fields stay None until the annotator runs.
    """
    hash: str
    block_number: int = 0
    timestamp: int = 0  # unix seconds
    from_address: str
    to_address: Optional[str] = None  # None for contract creation
    value: int = 0  # wei

    tag: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    from_tag: Optional[str] = None
    to_tag: Optional[str] = None

    transfers: List[TokenTransfer] = Field(default_factory=list)

    @field_validator("from_address", "to_address")
    @classmethod
    def _lower_address(cls, v: Optional[str]) -> Optional[str]:
        return normalize_address(v)

    @property
    def day(self) -> date:
        """UTC calendar date of the block timestamp."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).date()
