"""Services package."""

from budget_ledger.services.storage import (
    DuplicateError,
    EntityStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    InMemoryEntityStore,
    RecordNotFoundError,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "DuplicateError",
    "EntityStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsEntityStore",
    "InMemoryEntityStore",
    "RecordNotFoundError",
    "StorageConnectionError",
    "StorageError",
]
