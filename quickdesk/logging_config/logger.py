"""
Main logging configuration and setup for the helpdesk.

This module provides centralized logging configuration with support for
file rotation, audit logging, and structured log formatting.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone

from .formatters import HelpDeskFormatter, AuditFormatter
from .handlers import RotatingFileHandler, AuditFileHandler

AUDIT_LOGGER_NAME = "quickdesk.audit"


class HelpDeskLogger:
    """
    Main logger class for the helpdesk.

    Configures the root logger with a console handler and rotating
    application and error log files.
    """

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO"):
        """
        Initialize the logger.

        Args:
            log_dir: Directory to store log files
            log_level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_root_logger()

    def _setup_root_logger(self):
        """Setup the root logger with console and file handlers."""
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(HelpDeskFormatter())
        root_logger.addHandler(console_handler)

        file_handler = RotatingFileHandler(
            filename=str(self.log_dir / "quickdesk.log"),
            max_bytes=10 * 1024 * 1024,  # 10MB
            backup_count=5,
            encoding='utf-8'
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(HelpDeskFormatter(use_colors=False, include_extra=True))
        root_logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            filename=str(self.log_dir / "error.log"),
            max_bytes=5 * 1024 * 1024,  # 5MB
            backup_count=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(HelpDeskFormatter(use_colors=False, include_extra=True))
        root_logger.addHandler(error_handler)

    def setup_audit_logging(self) -> 'AuditLogger':
        """
        Setup audit logging for ticket operations.

        Returns:
            AuditLogger: Audit logger writing to ``audit.log`` in the log directory
        """
        return AuditLogger(self.log_dir)


class AuditLogger:
    """
    Specialized logger for audit events.

    Provides structured logging for ticket mutations, category changes
    and permission denials. Without a log directory the events are
    emitted to whatever handlers the ``quickdesk.audit`` logger already has.
    """

    def __init__(self, log_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the audit logger.

        Args:
            log_dir: Directory to store audit log files, or None for no file
        """
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self.logger.setLevel(logging.INFO)
        # Audit events stay out of the application log
        self.logger.propagate = False

        if self.log_dir is not None:
            for handler in list(self.logger.handlers):
                self.logger.removeHandler(handler)
                handler.close()

            audit_handler = AuditFileHandler(
                filename=str(self.log_dir / "audit.log"),
                max_bytes=20 * 1024 * 1024,  # 20MB
                backup_count=10,
                encoding='utf-8'
            )
            audit_handler.setLevel(logging.INFO)
            audit_handler.setFormatter(AuditFormatter())
            self.logger.addHandler(audit_handler)

    def log_ticket_created(self, ticket_id: str, actor_id: str, category_id: str,
                           priority: str, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log ticket creation event.

        Args:
            ticket_id: Unique ticket identifier
            actor_id: ID of the user who created the ticket
            category_id: Category the ticket was filed under
            priority: Ticket priority value
            additional_info: Additional information to log
        """
        info = additional_info or {}
        info['category_id'] = category_id
        info['priority'] = priority

        self._log_audit_event(
            event_type="TICKET_CREATED",
            ticket_id=ticket_id,
            actor_id=actor_id,
            additional_info=info
        )

    def log_status_changed(self, ticket_id: str, actor_id: str, old_status: str,
                           new_status: str, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log ticket status change event.

        Args:
            ticket_id: Unique ticket identifier
            actor_id: ID of the staff member who changed the status
            old_status: Status before the change
            new_status: Status after the change
            additional_info: Additional information to log
        """
        info = additional_info or {}
        info['old_status'] = old_status
        info['new_status'] = new_status

        self._log_audit_event(
            event_type="STATUS_CHANGED",
            ticket_id=ticket_id,
            actor_id=actor_id,
            additional_info=info
        )

    def log_ticket_assigned(self, ticket_id: str, actor_id: str, assignee_id: str,
                            additional_info: Optional[Dict[str, Any]] = None):
        """
        Log ticket assignment event.

        Args:
            ticket_id: Unique ticket identifier
            actor_id: ID of the staff member who assigned the ticket
            assignee_id: ID of the new assignee
            additional_info: Additional information to log
        """
        info = additional_info or {}
        info['assignee_id'] = assignee_id

        self._log_audit_event(
            event_type="TICKET_ASSIGNED",
            ticket_id=ticket_id,
            actor_id=actor_id,
            additional_info=info
        )

    def log_vote_cast(self, ticket_id: str, actor_id: str, voted: bool, votes: int):
        """Log a vote toggle; ``voted`` is the actor's state after the call."""
        self._log_audit_event(
            event_type="VOTE_CAST",
            ticket_id=ticket_id,
            actor_id=actor_id,
            additional_info={'voted': voted, 'votes': votes}
        )

    def log_reply_added(self, ticket_id: str, actor_id: str, reply_id: str, is_internal: bool):
        """Log a reply appended to a ticket thread."""
        self._log_audit_event(
            event_type="REPLY_ADDED",
            ticket_id=ticket_id,
            actor_id=actor_id,
            additional_info={'reply_id': reply_id, 'is_internal': is_internal}
        )

    def log_category_created(self, category_id: str, actor_id: str, name: str):
        self._log_audit_event(
            event_type="CATEGORY_CREATED",
            actor_id=actor_id,
            additional_info={'category_id': category_id, 'name': name}
        )

    def log_category_deleted(self, category_id: str, actor_id: str):
        self._log_audit_event(
            event_type="CATEGORY_DELETED",
            actor_id=actor_id,
            additional_info={'category_id': category_id}
        )

    def log_permission_denied(self, operation: str, actor_id: str, role: str,
                              required_role: str, ticket_id: Optional[str] = None):
        """
        Log permission denied event.

        Args:
            operation: Name of the operation that was denied
            actor_id: ID of the actor who was denied
            role: The actor's role
            required_role: The role that was required
            ticket_id: Ticket involved, if any
        """
        self._log_audit_event(
            event_type="PERMISSION_DENIED",
            actor_id=actor_id,
            ticket_id=ticket_id,
            additional_info={
                'operation': operation,
                'role': role,
                'required_role': required_role
            }
        )

    def log_error_occurred(self, error_type: str, error_message: str,
                           actor_id: Optional[str] = None, ticket_id: Optional[str] = None,
                           additional_info: Optional[Dict[str, Any]] = None):
        """
        Log error occurrence event.

        Args:
            error_type: Type of error that occurred
            error_message: Error message
            actor_id: ID of the actor involved (if applicable)
            ticket_id: ID of ticket involved (if applicable)
            additional_info: Additional information to log
        """
        info = additional_info or {}
        info['error_type'] = error_type
        info['error_message'] = error_message

        self._log_audit_event(
            event_type="ERROR_OCCURRED",
            actor_id=actor_id,
            ticket_id=ticket_id,
            additional_info=info
        )

    def _log_audit_event(self, event_type: str, actor_id: Optional[str] = None,
                         ticket_id: Optional[str] = None,
                         additional_info: Optional[Dict[str, Any]] = None):
        """
        Log a structured audit event.

        Args:
            event_type: Type of event being logged
            actor_id: ID of the actor involved
            ticket_id: ID of ticket involved
            additional_info: Additional information to include
        """
        event_data = {
            'event_type': event_type,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'actor_id': actor_id,
            'ticket_id': ticket_id
        }

        if additional_info:
            event_data.update(additional_info)

        event_data = {k: v for k, v in event_data.items() if v is not None}

        self.logger.info("Audit event", extra={'audit_data': event_data})


_logger_instance: Optional[HelpDeskLogger] = None
_audit_logger_instance: Optional[AuditLogger] = None


def setup_logging(log_dir: str = "logs", log_level: str = "INFO") -> HelpDeskLogger:
    """
    Setup global logging configuration.

    Args:
        log_dir: Directory to store log files
        log_level: Default log level

    Returns:
        HelpDeskLogger: Configured logger instance
    """
    global _logger_instance, _audit_logger_instance

    _logger_instance = HelpDeskLogger(log_dir, log_level)
    _audit_logger_instance = _logger_instance.setup_audit_logging()

    return _logger_instance


def get_audit_logger() -> AuditLogger:
    """
    Get the global audit logger instance.

    Returns:
        AuditLogger: Configured audit logger instance
    """
    if _audit_logger_instance is None:
        setup_logging()

    return _audit_logger_instance
