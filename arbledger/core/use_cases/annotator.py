from typing import Iterable, Optional

from arbledger.core.entities.address_book import AddressBook, AddressEntry, CategoryEntry
from arbledger.core.entities.transaction import Transaction


def _label(entry: Optional[AddressEntry]) -> Optional[str]:
    return entry.label if entry is not None else None


def apply_annotations(transactions: Iterable[Transaction], book: AddressBook) -> None:
    """
    Tags transactions in place from the address book.

    tag/category/description come from the recipient's entry, or the sender's
    when the recipient has none. from_tag/to_tag always reflect each side's
    own entry. Addresses missing from the book are simply left unset.
    """
    for tx in transactions:
        sender_entry = book.entry_for(tx.from_address)
        recipient_entry = book.entry_for(tx.to_address)

        tx.from_tag = _label(sender_entry)
        tx.to_tag = _label(recipient_entry)

        entry = recipient_entry or sender_entry
        if entry is None:
            continue

        tx.tag = entry.label
        if isinstance(entry, CategoryEntry):
            tx.category = entry.category
            tx.description = entry.description
        else:
            tx.category = entry.label
