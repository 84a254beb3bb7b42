"""
Import Feed Reader

Turns a CSV text stream into RawRow records.

Expected format:
- First non-empty line is a header naming exactly Date, Description,
  Category and Amount, in any order (matched ignoring case and
  surrounding whitespace)
- Every value is trimmed
- Empty lines are skipped; a line of bare delimiters is still a row

Anything that stops the stream being read as a table (no header, wrong
header, undecodable bytes, tokenizer errors) raises
StructuralImportError. Bad VALUES are not checked here; they are row
failures decided by the batch pipeline.
"""

import csv
from pathlib import Path
from typing import IO, Iterable, Iterator, Union

from budget_ledger.errors import StructuralImportError
from budget_ledger.models.ledger import RawRow

FEED_COLUMNS = ("Date", "Description", "Category", "Amount")

_FIELD_NAMES = tuple(name.lower() for name in FEED_COLUMNS)

FeedSource = Union[str, Path, IO[str]]


def _header_map(header: list[str]) -> list[str]:
    """RawRow field name for each header position."""
    fields = []
    for cell in header:
        key = cell.lstrip("\ufeff").strip().lower()
        if key not in _FIELD_NAMES or key in fields:
            raise StructuralImportError(
                f"Unexpected header {header!r}; expected columns "
                f"{', '.join(FEED_COLUMNS)}"
            )
        fields.append(key)
    if len(fields) != len(FEED_COLUMNS):
        raise StructuralImportError(
            f"Missing header columns in {header!r}; expected "
            f"{', '.join(FEED_COLUMNS)}"
        )
    return fields


def read_feed(lines: Iterable[str]) -> Iterator[RawRow]:
    """
    Yield one RawRow per data row of a CSV feed.

    Empty lines are skipped. A line holding only delimiters or spaces is
    still a row, and fails later for its empty fields.

    Short rows get empty strings for the missing trailing fields; extra
    trailing values are ignored.

    Raises:
        StructuralImportError: while iterating, if the feed is not a table
    """
    try:
        records = (r for r in csv.reader(lines) if r)
        header = next(records, None)
        if header is None:
            raise StructuralImportError("Feed is empty: no header row")
        fields = _header_map(header)

        for record in records:
            yield RawRow(**dict(zip(fields, record)))
    except (csv.Error, UnicodeDecodeError) as e:
        raise StructuralImportError(f"Could not read feed: {e}") from e


def source_name(source: FeedSource) -> str:
    """Human-readable name of a feed source, for logs."""
    if isinstance(source, (str, Path)):
        return Path(source).name
    return str(getattr(source, "name", "<stream>"))


def open_feed(source: FeedSource) -> IO[str]:
    """
    Open a path for reading as UTF-8 (a leading BOM is dropped).

    Streams are returned unchanged; the caller owns them.

    Raises:
        StructuralImportError: the file cannot be opened
    """
    if not isinstance(source, (str, Path)):
        return source
    try:
        return open(source, encoding="utf-8-sig", newline="")
    except OSError as e:
        raise StructuralImportError(f"Could not open feed {source}: {e}") from e
