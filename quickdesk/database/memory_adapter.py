"""
In-process database adapter.

Keeps serialized snapshots in memory. Used for ephemeral desks and tests.
"""
import logging
from typing import List

from quickdesk.database.adapter import DatabaseAdapter, ConnectionError
from quickdesk.models.category import Category
from quickdesk.models.ticket import Ticket

logger = logging.getLogger(__name__)


class MemoryAdapter(DatabaseAdapter):
    """DatabaseAdapter that stores record dictionaries in memory."""

    def __init__(self, connection_string: str = "memory://", **kwargs):
        super().__init__(connection_string, **kwargs)
        self._tickets: List[dict] = []
        self._categories: List[dict] = []
        self._connected = False
        self.save_count = 0

    async def connect(self) -> None:
        self._connected = True
        logger.info("Connected to in-memory database")

    async def disconnect(self) -> None:
        self._connected = False

    async def is_connected(self) -> bool:
        return self._connected

    def _ensure_connected(self, operation: str):
        if not self._connected:
            raise ConnectionError(f"In-memory database is not connected ({operation})", operation=operation)

    async def save_tickets(self, tickets: List[Ticket]) -> None:
        self._ensure_connected('save_tickets')
        self._tickets = [ticket.to_dict() for ticket in tickets]
        self.save_count += 1

    async def load_tickets(self) -> List[Ticket]:
        self._ensure_connected('load_tickets')
        return [Ticket.from_dict(data) for data in self._tickets]

    async def save_categories(self, categories: List[Category]) -> None:
        self._ensure_connected('save_categories')
        self._categories = [category.to_dict() for category in categories]
        self.save_count += 1

    async def load_categories(self) -> List[Category]:
        self._ensure_connected('load_categories')
        return [Category.from_dict(data) for data in self._categories]
