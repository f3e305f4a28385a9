"""
Custom log handlers for the helpdesk.

This module provides a rotating file handler with compression and an
audit-specific handler with restricted file permissions.
"""

import logging
import logging.handlers
import os
import gzip
import shutil
from pathlib import Path
from typing import Optional
from datetime import datetime


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Rotating file handler that gzips rotated files.

    Backups are named ``<file>.N.gz`` and shift like plain backups, so
    ``backup_count`` compressed files are kept.
    """

    def __init__(self, filename: str, max_bytes: int = 10485760, backup_count: int = 5,
                 encoding: Optional[str] = None, compress_rotated: bool = True):
        """
        Initialize the rotating file handler.

        Args:
            filename: Path to the log file
            max_bytes: Maximum size of log file before rotation (default: 10MB)
            backup_count: Number of backup files to keep
            encoding: File encoding (default: utf-8)
            compress_rotated: Whether to compress rotated files
        """
        self.compress_rotated = compress_rotated

        Path(filename).parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            filename=filename,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=encoding or 'utf-8'
        )

        if compress_rotated:
            self.namer = self._gzip_name
            self.rotator = self._gzip_rotate

    @staticmethod
    def _gzip_name(name: str) -> str:
        return name + ".gz"

    @staticmethod
    def _gzip_rotate(source: str, dest: str):
        """Compress the active log file into its first backup."""
        with open(source, 'rb') as f_in:
            with gzip.open(dest, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
        os.remove(source)


class AuditFileHandler(RotatingFileHandler):
    """
    Specialized file handler for audit logs.

    Keeps the audit file readable and writable by the owner only.
    """

    PERMISSION_CHECK_SECONDS = 300

    def __init__(self, filename: str, max_bytes: int = 20971520, backup_count: int = 10,
                 encoding: Optional[str] = None):
        """
        Initialize the audit file handler.

        Args:
            filename: Path to the audit log file
            max_bytes: Maximum size before rotation (default: 20MB)
            backup_count: Number of backup files to keep (default: 10)
            encoding: File encoding
        """
        super().__init__(
            filename=filename,
            max_bytes=max_bytes,
            backup_count=backup_count,
            encoding=encoding,
            compress_rotated=True
        )
        self._last_permission_check: Optional[datetime] = None
        self._set_secure_permissions()

    def _set_secure_permissions(self):
        """Set owner-only (600) permissions on the audit file."""
        try:
            if os.path.exists(self.baseFilename):
                os.chmod(self.baseFilename, 0o600)
        except OSError as e:
            print(f"Warning: Could not set secure permissions on audit log: {e}")
        self._last_permission_check = datetime.now()

    def emit(self, record: logging.LogRecord):
        """
        Emit a log record and periodically re-check file permissions.

        Args:
            record: Log record to emit
        """
        super().emit(record)

        now = datetime.now()
        if (self._last_permission_check is None or
                (now - self._last_permission_check).total_seconds() > self.PERMISSION_CHECK_SECONDS):
            self._set_secure_permissions()

    def doRollover(self):
        """Perform rollover and secure the new file."""
        super().doRollover()
        self._set_secure_permissions()
