"""
Category store for the helpdesk taxonomy.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from quickdesk.core.identifiers import generate_unique_id
from quickdesk.database.adapter import DatabaseAdapter
from quickdesk.database.snapshot import SnapshotPersister, CATEGORIES
from quickdesk.models.category import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ('Technical Support', 'Hardware and software issues', '#3B82F6'),
    ('Account & Billing', 'Account management and billing inquiries', '#10B981'),
    ('Feature Request', 'New feature suggestions and improvements', '#8B5CF6'),
    ('Bug Report', 'Software bugs and glitches', '#EF4444'),
]


class CategoryManager:
    """
    Owns the category collection.

    Categories are only created or deleted. Deleting a category never
    touches tickets that reference it.
    """

    def __init__(self, database_adapter: DatabaseAdapter, persister: SnapshotPersister):
        """
        Initialize CategoryManager.

        Args:
            database_adapter: Adapter the collection is loaded from
            persister: Snapshot persister the collection is written through
        """
        self.database = database_adapter
        self.persister = persister
        self._categories: Dict[str, Category] = {}
        self._lock = asyncio.Lock()
        persister.register(CATEGORIES, self.list_categories, database_adapter.save_categories)

    async def load(self) -> int:
        """
        Replace the in-memory collection with the stored snapshot.

        Returns:
            int: Number of categories loaded
        """
        categories = await self.database.load_categories()
        async with self._lock:
            self._categories = {category.category_id: category for category in categories}
        logger.info(f"Loaded {len(categories)} categories")
        return len(categories)

    async def create_category(self, name: str, description: str = '', color: str = '') -> Category:
        """
        Create a category. Duplicate names are allowed.

        Args:
            name: Display name
            description: Free-form description
            color: Display color, e.g. ``#3B82F6``

        Returns:
            Category: The created category
        """
        async with self._lock:
            category = Category(
                category_id=generate_unique_id(self._categories),
                name=name,
                description=description,
                color=color,
                created_at=datetime.now(timezone.utc)
            )
            self._categories[category.category_id] = category

        self.persister.mark_dirty(CATEGORIES)
        logger.info(f"Created category {category.category_id} ({name})")
        return category

    async def delete_category(self, category_id: str) -> bool:
        """
        Delete a category.

        Args:
            category_id: Category to delete

        Returns:
            bool: True if deleted, False if no such category
        """
        async with self._lock:
            removed = self._categories.pop(category_id, None)

        if removed is None:
            logger.warning(f"Category {category_id} not found, nothing deleted")
            return False

        self.persister.mark_dirty(CATEGORIES)
        logger.info(f"Deleted category {category_id} ({removed.name})")
        return True

    def get_category(self, category_id: Optional[str]) -> Optional[Category]:
        if category_id is None:
            return None
        return self._categories.get(category_id)

    def list_categories(self) -> List[Category]:
        """Snapshot of all categories in creation order."""
        return list(self._categories.values())

    async def seed_default_categories(self) -> List[Category]:
        """
        Create the stock categories when the collection is empty.

        Returns:
            List[Category]: Categories created (empty if any existed)
        """
        if self._categories:
            return []

        created = []
        for name, description, color in DEFAULT_CATEGORIES:
            created.append(await self.create_category(name, description, color))
        logger.info(f"Seeded {len(created)} default categories")
        return created
