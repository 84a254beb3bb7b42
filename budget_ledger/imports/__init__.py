"""CSV feed reading and the batch import pipeline."""

from budget_ledger.imports.batch import (
    BatchImportPipeline,
    ImportTally,
    RowOutcome,
    parse_row,
)
from budget_ledger.imports.feed import FEED_COLUMNS, open_feed, read_feed

__all__ = [
    "BatchImportPipeline",
    "FEED_COLUMNS",
    "ImportTally",
    "RowOutcome",
    "open_feed",
    "parse_row",
    "read_feed",
]
