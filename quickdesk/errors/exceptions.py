"""
Custom exception classes for the QuickDesk ticket store.

This module defines all custom exceptions used throughout the helpdesk
for consistent error handling and caller feedback.
"""

from typing import Optional, Dict, Any


class HelpDeskError(Exception):
    """
    Base exception for all helpdesk errors.

    All custom exceptions in the package inherit from this class
    to provide consistent error handling and logging.
    """

    def __init__(self, message: str, user_message: Optional[str] = None,
                 error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize HelpDeskError.

        Args:
            message: Technical error message for logging
            user_message: User-friendly error message for display
            error_code: Optional error code for categorization
            details: Optional additional error details
        """
        super().__init__(message)
        self.user_message = user_message or message
        self.error_code = error_code
        self.details = details or {}


class DatabaseError(HelpDeskError):
    """
    Exception raised for persistence-related errors.

    This includes connection failures, query errors and snapshot
    write problems.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        """
        Initialize DatabaseError.

        Args:
            message: Technical error message
            operation: Database operation that failed (e.g., 'save_tickets')
            user_message: User-friendly error message
        """
        if not user_message:
            user_message = "A storage error occurred. Please try again later."

        super().__init__(message, user_message, error_code="DB_ERROR", **kwargs)
        self.operation = operation


class ConnectionError(DatabaseError):
    """Exception raised when the database cannot be reached."""
    pass


class UnauthorizedError(HelpDeskError):
    """
    Exception raised when an actor's role does not allow an operation.

    Status changes and assignment are staff-only; category management
    is admin-only.
    """

    def __init__(self, message: str, required_role: Optional[str] = None,
                 actor_id: Optional[str] = None, user_message: Optional[str] = None, **kwargs):
        """
        Initialize UnauthorizedError.

        Args:
            message: Technical error message
            required_role: The role (or role group) that was required
            actor_id: ID of the actor that was rejected
            user_message: User-friendly error message
        """
        if not user_message:
            user_message = "You don't have permission to perform this action."

        super().__init__(message, user_message, error_code="UNAUTHORIZED", **kwargs)
        self.required_role = required_role
        self.actor_id = actor_id


class ConfigurationError(HelpDeskError):
    """
    Exception raised for configuration-related errors.

    This includes missing settings, invalid configuration values,
    and unreadable configuration files.
    """

    def __init__(self, message: str, config_key: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        """
        Initialize ConfigurationError.

        Args:
            message: Technical error message
            config_key: The configuration key that caused the error
            user_message: User-friendly error message
        """
        if not user_message:
            user_message = "Helpdesk configuration error. Please contact an administrator."

        super().__init__(message, user_message, error_code="CONFIG_ERROR", **kwargs)
        self.config_key = config_key


class ValidationError(HelpDeskError):
    """
    Exception raised for input validation errors.

    Raised before a request reaches the store: blank subjects, unknown
    statuses, invalid page numbers and similar.
    """

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[Any] = None, user_message: Optional[str] = None,
                 error_code: str = "VALIDATION_ERROR", **kwargs):
        """
        Initialize ValidationError.

        Args:
            message: Technical error message
            field: The field that failed validation
            value: The invalid value
            user_message: User-friendly error message
            error_code: Error code override for subclasses
        """
        if not user_message:
            user_message = "Invalid input provided. Please check your input and try again."

        super().__init__(message, user_message, error_code=error_code, **kwargs)
        self.field = field
        self.value = value


class InvalidTransitionError(ValidationError):
    """Exception raised when a status change leaves a terminal status."""

    def __init__(self, message: str, from_status: Optional[str] = None,
                 to_status: Optional[str] = None, user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "Closed tickets cannot be reopened."

        super().__init__(message, field="status", value=to_status, user_message=user_message,
                         error_code="INVALID_TRANSITION", **kwargs)
        self.from_status = from_status
        self.to_status = to_status


class TicketNotFoundError(HelpDeskError):
    """
    Exception raised when a ticket is not found.

    The store itself treats a missing ticket as a no-op; the API
    facade raises this instead.
    """

    def __init__(self, message: str, ticket_id: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        """
        Initialize TicketNotFoundError.

        Args:
            message: Technical error message
            ticket_id: ID of the ticket that was not found
            user_message: User-friendly error message
        """
        if not user_message:
            user_message = "Ticket not found. Please check the ticket ID and try again."

        super().__init__(message, user_message, error_code="TICKET_NOT_FOUND", **kwargs)
        self.ticket_id = ticket_id


class CategoryNotFoundError(HelpDeskError):
    """Exception raised when a category is not found."""

    def __init__(self, message: str, category_id: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "Category not found."

        super().__init__(message, user_message, error_code="CATEGORY_NOT_FOUND", **kwargs)
        self.category_id = category_id
