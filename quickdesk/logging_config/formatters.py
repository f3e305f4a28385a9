"""
Custom log formatters for the helpdesk.

This module provides specialized log formatters for the standard
application log and the JSON audit log.
"""

import logging
import json
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any


# Attributes every LogRecord carries; anything else came in through ``extra``
STANDARD_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'asctime', 'message', 'taskName'
}


class HelpDeskFormatter(logging.Formatter):
    """
    Custom formatter for helpdesk logs.

    Provides colored output for console and structured formatting for files.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = True, include_extra: bool = False):
        """
        Initialize the formatter.

        Args:
            use_colors: Whether to use colors in output (for console)
            include_extra: Whether to include extra fields in output
        """
        self.use_colors = use_colors
        self.include_extra = include_extra

        base_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(base_format, datefmt='%Y-%m-%d %H:%M:%S')

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record.

        Args:
            record: Log record to format

        Returns:
            str: Formatted log message
        """
        # Work on a copy so other handlers see the uncolored level name
        record_copy = logging.makeLogRecord(record.__dict__)

        if self.use_colors:
            color = self.COLORS.get(record_copy.levelname, '')
            reset = self.COLORS['RESET']
            record_copy.levelname = f"{color}{record_copy.levelname}{reset}"

        formatted = super().format(record_copy)

        if self.include_extra:
            extra_info = self._extract_extra_info(record)
            if extra_info:
                extra_str = " | " + " | ".join(f"{k}={v}" for k, v in extra_info.items())
                formatted += extra_str

        return formatted

    def _extract_extra_info(self, record: logging.LogRecord) -> Dict[str, Any]:
        """
        Extract extra information from log record.

        Args:
            record: Log record to extract from

        Returns:
            Dict[str, Any]: Extra information
        """
        extra = {}
        for key, value in record.__dict__.items():
            if key not in STANDARD_FIELDS and not key.startswith('_'):
                if isinstance(value, (dict, list, tuple)):
                    try:
                        extra[key] = json.dumps(value, default=str)
                    except (TypeError, ValueError):
                        extra[key] = str(value)
                else:
                    extra[key] = value

        return extra


class AuditFormatter(logging.Formatter):
    """
    Specialized formatter for audit logs.

    Formats audit events as one JSON object per line.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format an audit log record as JSON.

        Args:
            record: Log record to format

        Returns:
            str: JSON-formatted audit log entry
        """
        audit_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        audit_data = getattr(record, 'audit_data', None)
        if audit_data:
            audit_entry.update(audit_data)

        if record.exc_info:
            audit_entry['exception'] = self.formatException(record.exc_info)

        try:
            return json.dumps(audit_entry, default=self._json_serializer, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            return f"AUDIT_LOG_ERROR: Failed to serialize audit entry: {e} | Original: {audit_entry}"

    def _json_serializer(self, obj: Any) -> str:
        """
        Custom JSON serializer for objects that aren't JSON serializable.

        Args:
            obj: Object to serialize

        Returns:
            str: String representation of the object
        """
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return str(obj)
