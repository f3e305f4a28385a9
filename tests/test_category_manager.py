"""
Unit tests for the CategoryManager class.
"""

import pytest

from quickdesk.core.category_manager import CategoryManager, DEFAULT_CATEGORIES
from quickdesk.database.snapshot import CATEGORIES


class TestCategoryManager:

    @pytest.mark.asyncio
    async def test_create_category(self, category_manager, persister):
        category = await category_manager.create_category("Billing", "Invoices", "#10B981")

        assert category.name == "Billing"
        assert category.description == "Invoices"
        assert category.color == "#10B981"
        assert category.created_at is not None
        assert category_manager.get_category(category.category_id) == category
        assert CATEGORIES in persister.pending

    @pytest.mark.asyncio
    async def test_duplicate_names_allowed(self, category_manager):
        first = await category_manager.create_category("Billing")
        second = await category_manager.create_category("Billing")

        assert first.category_id != second.category_id
        assert len(category_manager.list_categories()) == 2

    @pytest.mark.asyncio
    async def test_list_keeps_creation_order(self, category_manager):
        for name in ["A", "B", "C"]:
            await category_manager.create_category(name)

        assert [c.name for c in category_manager.list_categories()] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_delete_category(self, category_manager):
        category = await category_manager.create_category("Billing")

        assert await category_manager.delete_category(category.category_id) is True
        assert category_manager.get_category(category.category_id) is None
        assert await category_manager.delete_category(category.category_id) is False

    def test_get_category_none(self, category_manager):
        assert category_manager.get_category(None) is None

    @pytest.mark.asyncio
    async def test_seed_default_categories(self, category_manager):
        created = await category_manager.seed_default_categories()

        assert [c.name for c in created] == [name for name, _, _ in DEFAULT_CATEGORIES]
        assert await category_manager.seed_default_categories() == []

    @pytest.mark.asyncio
    async def test_seed_skipped_when_categories_exist(self, category_manager):
        await category_manager.create_category("Custom")

        assert await category_manager.seed_default_categories() == []
        assert len(category_manager.list_categories()) == 1

    @pytest.mark.asyncio
    async def test_flush_and_load(self, adapter, persister, category_manager):
        await category_manager.create_category("A")
        await category_manager.create_category("B")
        await persister.flush()

        restored = CategoryManager(adapter, persister)

        assert await restored.load() == 2
        assert restored.list_categories() == category_manager.list_categories()
