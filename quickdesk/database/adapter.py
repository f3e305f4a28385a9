"""
Abstract database adapter interface for the helpdesk.

Adapters persist two independent collections, tickets and categories,
each as an ordered sequence of flat records. There is no foreign-key
enforcement between them.
"""
from abc import ABC, abstractmethod
from typing import List

from quickdesk.errors.exceptions import DatabaseError, ConnectionError
from quickdesk.models.category import Category
from quickdesk.models.ticket import Ticket


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    This interface defines the contract that all database adapters must implement
    to store and load collection snapshots and manage their connection.
    """

    def __init__(self, connection_string: str, **kwargs):
        """
        Initialize the database adapter.

        Args:
            connection_string: Database connection string
            **kwargs: Additional configuration parameters
        """
        self.connection_string = connection_string
        self.config = kwargs

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the database.

        Raises:
            ConnectionError: If connection cannot be established
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the database connection and cleanup resources."""

    @abstractmethod
    async def is_connected(self) -> bool:
        """
        Check if the database connection is active.

        Returns:
            bool: True if connected, False otherwise
        """

    @abstractmethod
    async def save_tickets(self, tickets: List[Ticket]) -> None:
        """
        Replace the stored ticket collection with the given snapshot.

        Args:
            tickets: Tickets in collection order (newest first)

        Raises:
            DatabaseError: If the write fails; the previous snapshot stays intact
        """

    @abstractmethod
    async def load_tickets(self) -> List[Ticket]:
        """
        Load the stored ticket collection.

        Returns:
            List[Ticket]: Tickets in the order they were saved

        Raises:
            DatabaseError: If retrieval fails
        """

    @abstractmethod
    async def save_categories(self, categories: List[Category]) -> None:
        """
        Replace the stored category collection with the given snapshot.

        Args:
            categories: Categories in collection order

        Raises:
            DatabaseError: If the write fails
        """

    @abstractmethod
    async def load_categories(self) -> List[Category]:
        """
        Load the stored category collection.

        Returns:
            List[Category]: Categories in the order they were saved

        Raises:
            DatabaseError: If retrieval fails
        """


__all__ = ['DatabaseAdapter', 'DatabaseError', 'ConnectionError']
