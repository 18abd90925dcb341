import logging
from typing import Dict

from pydantic import TypeAdapter, ValidationError

from arbledger.core.entities.address_book import AddressBook, CategoryEntry
from arbledger.core.errors import ConfigParseError
from arbledger.infrastructure.config.file_formats import read_structured

logger = logging.getLogger(__name__)

_RICH = TypeAdapter(Dict[str, CategoryEntry])
_LEGACY = TypeAdapter(Dict[str, str])


def _address_key(key) -> str:
    # YAML 1.1 reads unquoted 0x... keys as hex integers
    if isinstance(key, int) and not isinstance(key, bool):
        return f"0x{key:040x}"
    return str(key)


def parse_address_book(data) -> AddressBook:
    """
    Tries the category+description schema first, then the legacy
    address -> tag schema.
    """
    if data is None:
        return AddressBook()
    if isinstance(data, dict):
        data = {_address_key(k): v for k, v in data.items()}
    try:
        return AddressBook.from_categories(_RICH.validate_python(data))
    except ValidationError:
        pass
    try:
        return AddressBook.from_tags(_LEGACY.validate_python(data))
    except ValidationError as e:
        raise ConfigParseError(
            "Address file matches neither the category schema nor the tag schema"
        ) from e


def load_address_book(path) -> AddressBook:
    book = parse_address_book(read_structured(path))
    logger.info(f"Loaded {len(book)} address entries from {path}")
    return book
