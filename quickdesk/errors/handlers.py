"""
Error handling utilities and decorators for the helpdesk.

This module provides decorators and utility functions for consistent
error handling across facade operations and persistence.
"""

import asyncio
import logging
import functools
from typing import Optional, Callable
from datetime import datetime, timezone

from quickdesk.models.user import Actor, UserRole, STAFF_ROLES

from .exceptions import HelpDeskError, DatabaseError, UnauthorizedError

logger = logging.getLogger(__name__)


def log_error(error: Exception, context: Optional[str] = None,
              actor_id: Optional[str] = None, ticket_id: Optional[str] = None,
              additional_info: Optional[dict] = None) -> None:
    """
    Log an error with context information.

    Args:
        error: The exception that occurred
        context: Additional context about where the error occurred
        actor_id: ID of the actor involved (if applicable)
        ticket_id: ID of the ticket involved (if applicable)
        additional_info: Additional information to log
    """
    error_info = {
        'error_type': type(error).__name__,
        'error_message': str(error),
        'context': context,
        'actor_id': actor_id,
        'ticket_id': ticket_id,
        'timestamp': datetime.now(timezone.utc).isoformat()
    }

    if additional_info:
        error_info.update(additional_info)

    # Caller mistakes are warnings, everything else is an error
    if isinstance(error, HelpDeskError):
        if error.error_code in ['UNAUTHORIZED', 'VALIDATION_ERROR', 'INVALID_TRANSITION',
                                'TICKET_NOT_FOUND', 'CATEGORY_NOT_FOUND']:
            logger.warning(f"Helpdesk error: {error_info}")
        else:
            logger.error(f"Helpdesk error: {error_info}")
    else:
        logger.error(f"Unexpected error: {error_info}", exc_info=error)


def format_error_message(error: Exception, include_details: bool = False) -> str:
    """
    Format an error message for display to users.

    Args:
        error: The exception to format
        include_details: Whether to include technical details

    Returns:
        str: Formatted error message
    """
    if isinstance(error, HelpDeskError):
        message = error.user_message
        if include_details and error.details:
            details = ", ".join(f"{k}: {v}" for k, v in error.details.items())
            message += f" (Details: {details})"
        return message
    else:
        return "An unexpected error occurred. Please try again later."


def _find_actor(args, kwargs) -> Optional[Actor]:
    for arg in list(args) + list(kwargs.values()):
        if isinstance(arg, Actor):
            return arg
    return None


def handle_errors(func: Callable) -> Callable:
    """
    Decorator for logging errors raised by facade operations.

    Errors are logged with the acting user and re-raised so the
    calling API layer can report them synchronously. Failures that are
    not HelpDeskErrors are also passed to the owner's
    ``on_unexpected_error(error, operation, actor_id, ticket_id)`` hook
    when it has one.

    Args:
        func: The coroutine function to wrap

    Returns:
        Callable: Wrapped function with error logging
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            actor = _find_actor(args, kwargs)
            actor_id = actor.id if actor else None
            ticket_id = kwargs.get('ticket_id') or getattr(e, 'ticket_id', None)
            log_error(e, context=func.__name__, actor_id=actor_id, ticket_id=ticket_id)

            if not isinstance(e, HelpDeskError):
                hook = getattr(args[0] if args else None, 'on_unexpected_error', None)
                if hook is not None:
                    hook(e, func.__name__, actor_id, ticket_id)
            raise

    return wrapper


def handle_database_errors(func: Callable) -> Callable:
    """
    Decorator for database adapter methods.

    Translates any unexpected failure into a DatabaseError that carries
    the name of the failed operation. DatabaseErrors pass through.

    Args:
        func: The adapter coroutine to wrap

    Returns:
        Callable: Wrapped function with database error translation
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DatabaseError:
            raise
        except Exception as e:
            logger.error(f"Database operation {func.__name__} failed: {e}")
            raise DatabaseError(
                f"Database operation {func.__name__} failed: {e}",
                operation=func.__name__
            ) from e

    return wrapper


def require_role(*roles: UserRole, error_message: Optional[str] = None) -> Callable:
    """
    Decorator to require one of the given roles for an operation.

    The acting user is the first Actor found among the call arguments.
    Objects exposing an ``on_permission_denied(actor, operation, required)``
    hook (the facade does) are notified before the error is raised.

    Args:
        roles: Roles allowed to run the operation
        error_message: Custom error message for permission denial

    Returns:
        Callable: Decorator function
    """
    allowed = frozenset(roles)
    required = "|".join(sorted(role.value for role in allowed))

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            actor = _find_actor(args, kwargs)
            if actor is None:
                raise UnauthorizedError(
                    f"Operation {func.__name__} requires an authenticated actor",
                    required_role=required
                )

            if actor.role not in allowed:
                owner = args[0] if args else None
                hook = getattr(owner, 'on_permission_denied', None)
                if hook is not None:
                    hook(actor, func.__name__, required)
                raise UnauthorizedError(
                    f"Actor {actor.id} with role {actor.role.value} may not run {func.__name__}",
                    required_role=required,
                    actor_id=actor.id,
                    user_message=error_message
                )

            return await func(*args, **kwargs)

        return wrapper
    return decorator


def require_staff_role(error_message: Optional[str] = None) -> Callable:
    """Decorator to require a support-agent or admin actor."""
    return require_role(
        *STAFF_ROLES,
        error_message=error_message or "You must be a staff member to perform this action."
    )


def require_admin_role(error_message: Optional[str] = None) -> Callable:
    """Decorator to require an admin actor."""
    return require_role(
        UserRole.ADMIN,
        error_message=error_message or "You must be an administrator to perform this action."
    )


def retry_on_failure(max_retries: int = 3, delay: float = 1.0,
                     backoff_factor: float = 2.0) -> Callable:
    """
    Decorator to retry coroutine execution on failure.

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff_factor: Factor to multiply delay by for each retry

    Returns:
        Callable: Decorator function
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if attempt == max_retries:
                        raise

                    logger.warning(f"Function {func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}): {e}")

                    await asyncio.sleep(current_delay)
                    current_delay *= backoff_factor

        return wrapper
    return decorator
