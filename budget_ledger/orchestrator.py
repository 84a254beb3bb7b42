"""
Component Wiring for Budget Ledger

This module builds every service and engine on top of one entity store
and hands them out together.

DESIGN DECISION: All components share the SAME store and event logger.
- The posting engine is the only component handed to callers that can
  change a balance; the account service and import pipeline go through it
- The reconciliation engine reads the same store it never writes
  transactions to
- If Google Sheets cannot be reached the ledger still starts, on the
  in-memory store, and says so in the log
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from budget_ledger.audit import LedgerEventLogger, configure_logging
from budget_ledger.budgets import BudgetReconciliationEngine
from budget_ledger.config import Settings, get_settings
from budget_ledger.imports import BatchImportPipeline
from budget_ledger.ledger import (
    AccountService,
    CategoryService,
    LedgerPostingEngine,
    TransactionQueries,
)
from budget_ledger.models.ledger import Category
from budget_ledger.services.storage import (
    EntityStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    InMemoryEntityStore,
    StorageError,
)

logger = structlog.get_logger(__name__)


@dataclass
class LedgerComponents:
    """Everything the presentation layer needs, built on one store."""
    store: EntityStoreInterface
    storage_backend: str
    event_logger: LedgerEventLogger
    posting_engine: LedgerPostingEngine
    account_service: AccountService
    category_service: CategoryService
    transaction_queries: TransactionQueries
    budget_engine: BudgetReconciliationEngine
    import_pipeline: BatchImportPipeline
    sheets_client: Optional[GoogleSheetsClient] = None


async def seed_default_categories(
    category_service: CategoryService,
    names: Iterable[str],
) -> list[Category]:
    """
    Create each named category that does not exist yet.

    Safe to run on every start. Returns only the categories created now.
    """
    created = []
    for name in names:
        if not name or not name.strip():
            continue
        if await category_service.find_category_by_name(name):
            continue
        created.append(await category_service.create_category(name))
    return created


def _build_store(settings: Settings) -> tuple[EntityStoreInterface, str, Optional[GoogleSheetsClient]]:
    """Store for the configured backend, falling back to memory."""
    if settings.ledger.storage_backend != "google_sheets":
        return InMemoryEntityStore(), "memory", None

    try:
        sheets_client = GoogleSheetsClient(settings.google_sheets)
        sheets_client.connect()
        return GoogleSheetsEntityStore(sheets_client), "google_sheets", sheets_client
    except (StorageError, ValueError) as e:
        # Storage not configured - continue in memory
        logger.warning(
            "storage_fallback",
            requested="google_sheets",
            using="memory",
            error=str(e),
        )
        return InMemoryEntityStore(), "memory", None


async def create_app_components(settings: Optional[Settings] = None) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; the cached process settings if None

    Returns:
        LedgerComponents wired to a single store
    """
    settings = settings or get_settings()
    configure_logging(settings.ledger.log_level, settings.ledger.log_format)

    store, backend, sheets_client = _build_store(settings)
    event_logger = LedgerEventLogger()

    posting_engine = LedgerPostingEngine(store, event_logger)
    category_service = CategoryService(store, event_logger)
    components = LedgerComponents(
        store=store,
        storage_backend=backend,
        event_logger=event_logger,
        posting_engine=posting_engine,
        account_service=AccountService(store, posting_engine, event_logger),
        category_service=category_service,
        transaction_queries=TransactionQueries(store),
        budget_engine=BudgetReconciliationEngine(store, event_logger),
        import_pipeline=BatchImportPipeline(
            store,
            posting_engine,
            category_service,
            event_logger,
            max_error_messages=settings.ledger.max_import_error_messages,
        ),
        sheets_client=sheets_client,
    )

    if settings.ledger.seed_default_categories:
        created = await seed_default_categories(
            category_service,
            settings.ledger.default_categories_list,
        )
        logger.info("default_categories_seeded", created=len(created))

    return components
