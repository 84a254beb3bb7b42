"""
Category Service

Explicit creation plus the find-or-create used by the import pipeline.
Names are the lookup key and compare ignoring case, so "Groceries" and
"groceries" are the same category.
"""

from typing import Optional
from uuid import UUID

from budget_ledger.audit import LedgerEventLogger
from budget_ledger.errors import CategoryNotFoundError
from budget_ledger.models.ledger import Category
from budget_ledger.services.storage import DuplicateError, EntityStoreInterface


class CategoryService:
    """Creates and retrieves categories."""

    def __init__(
        self,
        store: EntityStoreInterface,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._store = store
        self._event_logger = event_logger

    async def create_category(self, name: str) -> Category:
        """
        Create a category.

        Raises:
            ValueError: name is blank
            DuplicateError: a category with this name exists (ignoring case)
        """
        if not name or not name.strip():
            raise ValueError("Category name cannot be blank")
        if await self._store.get_category_by_name(name, case_insensitive=True):
            raise DuplicateError(f"Category name already in use: {name.strip()}")
        return await self._save_new(name)

    async def find_or_create_category(self, name: Optional[str]) -> Optional[Category]:
        """
        Return the category matching name (ignoring case), creating it if needed.

        A blank name means "uncategorized" and returns None.
        """
        if not name or not name.strip():
            return None

        existing = await self._store.get_category_by_name(name, case_insensitive=True)
        if existing:
            return existing

        try:
            return await self._save_new(name)
        except DuplicateError:
            # Created by someone else since the lookup
            existing = await self._store.get_category_by_name(name, case_insensitive=True)
            if existing is None:
                raise
            return existing

    async def list_categories(self) -> list[Category]:
        return await self._store.list_categories()

    async def get_category(self, category_id: UUID) -> Category:
        """Raises CategoryNotFoundError when absent."""
        category = await self._store.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    async def find_category_by_name(self, name: str) -> Optional[Category]:
        if not name or not name.strip():
            return None
        return await self._store.get_category_by_name(name, case_insensitive=True)

    async def _save_new(self, name: str) -> Category:
        category = await self._store.save_category(Category(name=name))
        if self._event_logger:
            self._event_logger.log_category_created(category.id, category.name)
        return category
