"""
Background snapshot persistence for the in-memory stores.

Stores mark a collection dirty after each mutation and return at once.
A background task writes the latest state of every dirty collection
through the database adapter, so no disk I/O happens while a mutation
holds its lock.
"""
import asyncio
import logging
from typing import Callable, Dict, List, Optional, Awaitable, Any

from quickdesk.errors.exceptions import DatabaseError
from quickdesk.errors.handlers import log_error, retry_on_failure

logger = logging.getLogger(__name__)

TICKETS = 'tickets'
CATEGORIES = 'categories'


class SnapshotPersister:
    """
    Coalescing writer for collection snapshots.

    Several mutations between two writes produce a single write of the
    newest state. ``flush()`` writes synchronously and is what callers
    use at shutdown or when they need durability before continuing.
    """

    def __init__(self, max_retries: int = 3, retry_delay: float = 0.5):
        """
        Initialize the persister.

        Args:
            max_retries: Retries per collection write before giving up
            retry_delay: Initial delay between retries in seconds (doubles each retry)
        """
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sources: Dict[str, Callable[[], List[Any]]] = {}
        self._writers: Dict[str, Callable[[List[Any]], Awaitable[None]]] = {}
        self._dirty: set = set()
        self._wakeup = asyncio.Event()
        self._write_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._stopping = False

    def register(self, collection: str, snapshot: Callable[[], List[Any]],
                 writer: Callable[[List[Any]], Awaitable[None]]) -> None:
        """
        Register a collection.

        Args:
            collection: Collection name
            snapshot: Returns the collection's current records
            writer: Adapter coroutine that stores a snapshot
        """
        self._sources[collection] = snapshot
        self._writers[collection] = writer

    def mark_dirty(self, collection: str) -> None:
        """Schedule a write of the collection's latest state."""
        if collection not in self._sources:
            raise KeyError(f"Unknown collection: {collection}")
        self._dirty.add(collection)
        self._wakeup.set()

    @property
    def pending(self) -> frozenset:
        return frozenset(self._dirty)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background writer on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="quickdesk-snapshot")
        logger.info("Snapshot persister started")

    async def stop(self) -> None:
        """
        Stop the background writer and flush remaining changes.

        A write already in progress is awaited, not cancelled.
        """
        if self._task is not None:
            self._stopping = True
            self._wakeup.set()
            try:
                await self._task
            finally:
                self._task = None
                self._stopping = False
        await self.flush()
        logger.info("Snapshot persister stopped")

    async def flush(self) -> None:
        """
        Write every dirty collection now.

        Raises:
            DatabaseError: If a collection could not be written after retries;
                the collection stays dirty
        """
        async with self._write_lock:
            pending = sorted(self._dirty)
            self._dirty.difference_update(pending)

            for index, collection in enumerate(pending):
                records = self._sources[collection]()
                try:
                    await self._write(collection, records)
                except BaseException as e:
                    # Unwritten collections stay dirty, also when the write is cancelled
                    self._dirty.update(pending[index:])
                    if isinstance(e, DatabaseError) or not isinstance(e, Exception):
                        raise
                    raise DatabaseError(f"Failed to persist {collection}: {e}", operation=f"save_{collection}") from e

                logger.debug(f"Persisted {len(records)} {collection}")

    async def _write(self, collection: str, records: List[Any]) -> None:
        writer = retry_on_failure(max_retries=self.max_retries, delay=self.retry_delay)(self._writers[collection])
        await writer(records)

    async def _run(self) -> None:
        while not self._stopping:
            await self._wakeup.wait()
            self._wakeup.clear()
            try:
                await self.flush()
            except DatabaseError as e:
                # Data stays dirty and is retried on the next mutation or flush
                log_error(e, context="snapshot persister")
