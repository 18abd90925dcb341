from types import MappingProxyType
from typing import Mapping, Optional

from arbledger.core.entities.transaction import normalize_address

# Known-good Arbitrum One token contracts
ARBITRUM_TOKENS = {
    "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8": "USDC",
    "0xfd086bc7cd5c481dcc9c85ebe478a1c0b69fcbb9": "USDT",
    "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1": "DAI",
    "0x2f2a2543b76a4166549f7aab2e75bef0aefc5b63": "WBTC",
    "0x82af49447d8a07e3bd95bd0d56f35241523fbab1": "WETH",
}


class SymbolRegistry:
    """
    Allow-list of token contracts and their canonical ticker symbols.
    Transfers of any other contract never reach the ledger.
    """

    def __init__(self, tokens: Mapping[str, str]):
        self._tokens = MappingProxyType(
            {normalize_address(addr): symbol for addr, symbol in tokens.items()}
        )

    @classmethod
    def arbitrum(cls) -> "SymbolRegistry":
        return cls(ARBITRUM_TOKENS)

    def symbol_for(self, contract: Optional[str]) -> Optional[str]:
        key = normalize_address(contract)
        if key is None:
            return None
        return self._tokens.get(key)

    def __len__(self) -> int:
        return len(self._tokens)
