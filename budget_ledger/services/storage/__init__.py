"""
Storage Services Package

Provides the abstract entity store interface and concrete implementations.
The in-memory store is the default; Google Sheets is the persistent option.
"""

from budget_ledger.services.storage.interface import (
    DuplicateError,
    EntityStoreInterface,
    RecordNotFoundError,
    StorageConnectionError,
    StorageError,
    names_match,
)
from budget_ledger.services.storage.memory import InMemoryEntityStore
from budget_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
)

__all__ = [
    # Interfaces
    "EntityStoreInterface",
    # Exceptions
    "DuplicateError",
    "RecordNotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Helpers
    "names_match",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsEntityStore",
    "InMemoryEntityStore",
]
