import csv
import logging
from pathlib import Path
from typing import Iterable

from arbledger.core.entities.split import Split

logger = logging.getLogger(__name__)

HEADER = ["Date", "Description", "Account", "Commodity", "Amount"]


def write_splits_csv(path, splits: Iterable[Split], with_value: bool = False) -> int:
    """
    Writes one row per split in a layout GnuCash's CSV importer accepts.
    Returns the number of rows written.
    """
    path = Path(path)
    header = HEADER + ["Value"] if with_value else HEADER
    rows = 0
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for split in splits:
            row = [
                split.date.isoformat(),
                split.description,
                split.account,
                split.commodity,
                repr(split.amount),
            ]
            if with_value:
                row.append("" if split.value_usd is None else repr(split.value_usd))
            writer.writerow(row)
            rows += 1
    logger.info(f"Wrote {rows} splits to {path}")
    return rows
