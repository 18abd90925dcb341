"""
Address Book Entities for ArbLedger

Operators label counterparties in one of two file schemas:

    rich:    {"0xabc...": {"category": "Exchange", "description": "Binance hot wallet"}}
    legacy:  {"0xabc...": "binance"}

Both are resolved once, at load time, into a single AddressBook.
"""
from types import MappingProxyType
from typing import Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel

from arbledger.core.entities.transaction import normalize_address


class CategoryEntry(BaseModel):
    kind: Literal["category"] = "category"
    category: str
    description: Optional[str] = None

    @property
    def label(self) -> str:
        return self.category


class TagEntry(BaseModel):
    kind: Literal["tag"] = "tag"
    tag: str

    @property
    def label(self) -> str:
        return self.tag


AddressEntry = Union[CategoryEntry, TagEntry]


class AddressBook:
    """
    Immutable address -> entry lookup. Keys are lower-case hex addresses.
    """

    def __init__(self, entries: Optional[Mapping[str, AddressEntry]] = None):
        normalized: Dict[str, AddressEntry] = {}
        for address, entry in (entries or {}).items():
            key = normalize_address(address)
            if key:
                normalized[key] = entry
        self._entries = MappingProxyType(normalized)

    @classmethod
    def from_categories(cls, mapping: Mapping[str, CategoryEntry]) -> "AddressBook":
        return cls(mapping)

    @classmethod
    def from_tags(cls, mapping: Mapping[str, str]) -> "AddressBook":
        return cls({address: TagEntry(tag=tag) for address, tag in mapping.items()})

    def entry_for(self, address: Optional[str]) -> Optional[AddressEntry]:
        key = normalize_address(address)
        if key is None:
            return None
        return self._entries.get(key)

    def merge(self, other: "AddressBook") -> "AddressBook":
        """Returns a new book where entries from `other` win."""
        combined = dict(self._entries)
        combined.update(other._entries)
        return AddressBook(combined)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.entry_for(address) is not None
