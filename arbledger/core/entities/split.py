import datetime
from typing import Optional

from pydantic import BaseModel


class Split(BaseModel):
    """
    One signed ledger line. Negative amounts leave the tracked address.
    """
    date: datetime.date
    description: str
    account: str
    commodity: str  # e.g. "ETH", "USDC"
    amount: float
    value_usd: Optional[float] = None

    class Config:
        json_schema_extra = {
            "example": {
                "date": "2024-03-01",
                "description": "from alice",
                "account": "alice",
                "commodity": "ETH",
                "amount": 1.0,
                "value_usd": 3400.12
            }
        }
