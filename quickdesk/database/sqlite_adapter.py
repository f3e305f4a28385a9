"""
SQLite database adapter implementation for the helpdesk.
"""
import aiosqlite
import json
import logging
from datetime import datetime
from enum import Enum
from typing import List
from pathlib import Path

from quickdesk.database.adapter import DatabaseAdapter, ConnectionError
from quickdesk.errors.handlers import handle_database_errors
from quickdesk.models.category import Category
from quickdesk.models.ticket import Ticket, TicketReply, TicketStatus, TicketPriority


logger = logging.getLogger(__name__)


def _json_default(obj):
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite implementation of the DatabaseAdapter interface.

    Each save replaces a whole collection inside one transaction, so a
    failed write leaves the previous snapshot in place. Connections are
    opened per operation.
    """

    def __init__(self, connection_string: str, **kwargs):
        """
        Initialize SQLite adapter.

        Args:
            connection_string: Path to SQLite database file
            **kwargs: Additional configuration (timeout)
        """
        super().__init__(connection_string, **kwargs)
        self.db_path = connection_string
        self.timeout = kwargs.get('timeout', 30.0)
        self._schema_initialized = False
        self._connected = False

    async def connect(self) -> None:
        """
        Verify the database file is reachable and create the schema.

        Raises:
            ConnectionError: If connection cannot be established
        """
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
                await conn.execute("SELECT 1")

            if not self._schema_initialized:
                await self._initialize_schema()
                self._schema_initialized = True

            self._connected = True
            logger.info(f"Connected to SQLite database: {self.db_path}")

        except Exception as e:
            logger.error(f"Failed to connect to SQLite database: {e}")
            raise ConnectionError(f"Failed to connect to SQLite database: {e}", operation='connect')

    async def disconnect(self) -> None:
        """Mark the adapter disconnected; connections are per operation."""
        self._connected = False
        logger.info("Disconnected from SQLite database")

    async def is_connected(self) -> bool:
        """
        Check if database is accessible.

        Returns:
            bool: True if database is accessible, False otherwise
        """
        if not self._connected:
            return False
        try:
            async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
                await conn.execute("SELECT 1")
                return True
        except (aiosqlite.Error, OSError):
            return False

    @handle_database_errors
    async def _initialize_schema(self) -> None:
        """Initialize database schema with tables and indexes."""
        async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS tickets (
                    ticket_id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    subject TEXT NOT NULL,
                    description TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'open',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    category_id TEXT NOT NULL,
                    category_name TEXT NOT NULL,
                    created_by TEXT NOT NULL,
                    created_by_name TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    assigned_to TEXT NULL,
                    assigned_to_name TEXT NULL,
                    votes INTEGER NOT NULL DEFAULT 0,
                    voted_by TEXT NOT NULL DEFAULT '[]',
                    attachments TEXT NOT NULL DEFAULT '[]',
                    replies TEXT NOT NULL DEFAULT '[]'
                )
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    category_id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    color TEXT NOT NULL DEFAULT '',
                    created_at TIMESTAMP NOT NULL
                )
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_tickets_position
                ON tickets(position)
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_categories_position
                ON categories(position)
            """)

            await conn.commit()
            logger.info("SQLite schema initialized successfully")

    def _ticket_to_row(self, position: int, ticket: Ticket) -> tuple:
        """Convert Ticket object to a row tuple in column order."""
        return (
            ticket.ticket_id,
            position,
            ticket.subject,
            ticket.description,
            ticket.status.value,
            ticket.priority.value,
            ticket.category_id,
            ticket.category_name,
            ticket.created_by,
            ticket.created_by_name,
            ticket.created_at.isoformat(),
            ticket.updated_at.isoformat(),
            ticket.assigned_to,
            ticket.assigned_to_name,
            ticket.votes,
            json.dumps(ticket.voted_by),
            json.dumps(ticket.attachments),
            json.dumps([reply.to_dict() for reply in ticket.replies], default=_json_default)
        )

    def _ticket_from_row(self, row) -> Ticket:
        """Convert database row to Ticket object."""
        return Ticket(
            ticket_id=row['ticket_id'],
            subject=row['subject'],
            description=row['description'],
            status=TicketStatus(row['status']),
            priority=TicketPriority(row['priority']),
            category_id=row['category_id'],
            category_name=row['category_name'],
            created_by=row['created_by'],
            created_by_name=row['created_by_name'],
            created_at=datetime.fromisoformat(row['created_at']),
            updated_at=datetime.fromisoformat(row['updated_at']),
            assigned_to=row['assigned_to'],
            assigned_to_name=row['assigned_to_name'],
            votes=row['votes'],
            voted_by=json.loads(row['voted_by']),
            attachments=json.loads(row['attachments']),
            replies=[TicketReply.from_dict(r) for r in json.loads(row['replies'])]
        )

    @handle_database_errors
    async def save_tickets(self, tickets: List[Ticket]) -> None:
        """
        Replace the stored ticket collection.

        Args:
            tickets: Tickets in collection order

        Raises:
            DatabaseError: If the write fails
        """
        rows = [self._ticket_to_row(position, ticket) for position, ticket in enumerate(tickets)]

        async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
            await conn.execute("DELETE FROM tickets")
            await conn.executemany("""
                INSERT INTO tickets (
                    ticket_id, position, subject, description, status, priority,
                    category_id, category_name, created_by, created_by_name,
                    created_at, updated_at, assigned_to, assigned_to_name,
                    votes, voted_by, attachments, replies
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, rows)
            await conn.commit()

        logger.debug(f"Saved {len(rows)} tickets to SQLite database")

    @handle_database_errors
    async def load_tickets(self) -> List[Ticket]:
        """
        Load the stored ticket collection.

        Returns:
            List[Ticket]: Tickets in saved order
        """
        async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute("SELECT * FROM tickets ORDER BY position ASC")
            rows = await cursor.fetchall()

        return [self._ticket_from_row(row) for row in rows]

    @handle_database_errors
    async def save_categories(self, categories: List[Category]) -> None:
        """
        Replace the stored category collection.

        Args:
            categories: Categories in collection order

        Raises:
            DatabaseError: If the write fails
        """
        rows = [
            (
                category.category_id,
                position,
                category.name,
                category.description,
                category.color,
                category.created_at.isoformat()
            )
            for position, category in enumerate(categories)
        ]

        async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
            await conn.execute("DELETE FROM categories")
            await conn.executemany("""
                INSERT INTO categories (
                    category_id, position, name, description, color, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, rows)
            await conn.commit()

        logger.debug(f"Saved {len(rows)} categories to SQLite database")

    @handle_database_errors
    async def load_categories(self) -> List[Category]:
        """
        Load the stored category collection.

        Returns:
            List[Category]: Categories in saved order
        """
        async with aiosqlite.connect(self.db_path, timeout=self.timeout) as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute("SELECT * FROM categories ORDER BY position ASC")
            rows = await cursor.fetchall()

        return [
            Category(
                category_id=row['category_id'],
                name=row['name'],
                description=row['description'],
                color=row['color'],
                created_at=datetime.fromisoformat(row['created_at'])
            )
            for row in rows
        ]
