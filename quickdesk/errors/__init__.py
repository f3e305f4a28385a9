"""
Error handling module for the QuickDesk ticket store.

This module provides custom exception classes and error handling utilities
for consistent error management across the helpdesk.
"""

from .exceptions import (
    HelpDeskError,
    DatabaseError,
    ConnectionError,
    UnauthorizedError,
    ConfigurationError,
    ValidationError,
    InvalidTransitionError,
    TicketNotFoundError,
    CategoryNotFoundError
)

from .handlers import (
    handle_errors,
    format_error_message,
    log_error,
    handle_database_errors,
    require_role,
    require_staff_role,
    require_admin_role,
    retry_on_failure
)

__all__ = [
    # Exception classes
    'HelpDeskError',
    'DatabaseError',
    'ConnectionError',
    'UnauthorizedError',
    'ConfigurationError',
    'ValidationError',
    'InvalidTransitionError',
    'TicketNotFoundError',
    'CategoryNotFoundError',

    # Handler functions
    'handle_errors',
    'format_error_message',
    'log_error',
    'handle_database_errors',
    'require_role',
    'require_staff_role',
    'require_admin_role',
    'retry_on_failure'
]
