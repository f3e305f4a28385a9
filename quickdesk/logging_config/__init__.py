"""
Logging configuration module for the helpdesk.

This module provides logging setup including file rotation,
audit logging, and structured logging for all store operations.
"""

from .logger import setup_logging, get_audit_logger, HelpDeskLogger, AuditLogger
from .formatters import HelpDeskFormatter, AuditFormatter
from .handlers import RotatingFileHandler, AuditFileHandler

__all__ = [
    'setup_logging',
    'get_audit_logger',
    'HelpDeskLogger',
    'AuditLogger',
    'HelpDeskFormatter',
    'AuditFormatter',
    'RotatingFileHandler',
    'AuditFileHandler'
]
