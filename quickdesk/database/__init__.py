# Database package for adapters and snapshot persistence

from .adapter import (
    DatabaseAdapter,
    DatabaseError,
    ConnectionError
)
from .sqlite_adapter import SQLiteAdapter
from .memory_adapter import MemoryAdapter
from .snapshot import SnapshotPersister, TICKETS, CATEGORIES

__all__ = [
    'DatabaseAdapter',
    'DatabaseError',
    'ConnectionError',
    'SQLiteAdapter',
    'MemoryAdapter',
    'SnapshotPersister',
    'TICKETS',
    'CATEGORIES'
]
