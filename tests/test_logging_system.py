"""
Unit tests for logging system.

Tests logging configuration, formatters, handlers, and audit logging
to ensure proper log management throughout the helpdesk.
"""

import gzip
import json
import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

import pytest

from quickdesk.logging_config.formatters import HelpDeskFormatter, AuditFormatter
from quickdesk.logging_config.handlers import RotatingFileHandler, AuditFileHandler
from quickdesk.logging_config.logger import (
    AUDIT_LOGGER_NAME, AuditLogger, HelpDeskLogger, get_audit_logger, setup_logging
)
from quickdesk.models.ticket import TicketStatus


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("quickdesk.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def audit_dir():
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    for handler in list(audit.handlers):
        audit.removeHandler(handler)
        handler.close()
    shutil.rmtree(temp_dir, ignore_errors=True)


def read_audit_events(log_dir: Path):
    for handler in logging.getLogger(AUDIT_LOGGER_NAME).handlers:
        handler.flush()
    with open(log_dir / "audit.log", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class TestHelpDeskLogger:

    def test_initialization(self, tmp_path, restore_root_logger):
        helpdesk_logger = HelpDeskLogger(log_dir=str(tmp_path / "logs"), log_level="DEBUG")

        assert helpdesk_logger.log_level == logging.DEBUG
        assert (tmp_path / "logs").is_dir()
        assert len(logging.getLogger().handlers) == 3

    def test_errors_go_to_error_log(self, tmp_path, restore_root_logger):
        HelpDeskLogger(log_dir=str(tmp_path))
        log = logging.getLogger("quickdesk.test")

        log.info("routine")
        log.error("broken")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "routine" in (tmp_path / "quickdesk.log").read_text()
        error_log = (tmp_path / "error.log").read_text()
        assert "broken" in error_log
        assert "routine" not in error_log

    def test_module_level_setup(self, tmp_path, restore_root_logger):
        helpdesk_logger = setup_logging(log_dir=str(tmp_path), log_level="WARNING")

        assert helpdesk_logger.log_level == logging.WARNING
        assert get_audit_logger().log_dir == tmp_path
        assert (tmp_path / "audit.log").exists()


class TestFormatters:

    def test_console_colors(self):
        formatted = HelpDeskFormatter(use_colors=True).format(make_record(level=logging.ERROR))
        assert "\033[31mERROR\033[0m" in formatted

    def test_plain_with_extra(self):
        record = make_record(ticket_id="T1", payload={"a": 1})

        formatted = HelpDeskFormatter(use_colors=False, include_extra=True).format(record)

        assert " - INFO - hello" in formatted
        assert "ticket_id=T1" in formatted
        assert 'payload={"a": 1}' in formatted

    def test_coloring_does_not_leak_to_record(self):
        record = make_record()
        HelpDeskFormatter(use_colors=True).format(record)
        assert record.levelname == "INFO"

    def test_audit_formatter_json(self):
        record = make_record("Audit event", audit_data={'event_type': "STATUS_CHANGED",
                                                        'new_status': TicketStatus.CLOSED})

        entry = json.loads(AuditFormatter().format(record))

        assert entry['event_type'] == "STATUS_CHANGED"
        assert entry['new_status'] == "closed"
        assert entry['message'] == "Audit event"
        assert entry['level'] == "INFO"


class TestHandlers:

    def test_rotation_compresses_backup(self, tmp_path):
        log_file = tmp_path / "rotate.log"
        handler = RotatingFileHandler(str(log_file), max_bytes=200, backup_count=2)
        handler.setFormatter(logging.Formatter("%(message)s"))
        try:
            for index in range(20):
                handler.emit(make_record(f"line {index:03d} " + "x" * 40))
        finally:
            handler.close()

        backup = tmp_path / "rotate.log.1.gz"
        assert backup.exists()
        with gzip.open(backup, 'rt') as f:
            assert "line" in f.read()

    def test_compressed_backups_are_shifted(self, tmp_path):
        log_file = tmp_path / "app.log"
        handler = RotatingFileHandler(str(log_file), max_bytes=50, backup_count=3)
        handler.setFormatter(logging.Formatter("%(message)s"))
        try:
            for index in range(4):
                handler.emit(make_record(f"generation {index}"))
                handler.doRollover()
        finally:
            handler.close()

        assert sorted(p.name for p in tmp_path.iterdir()) == [
            "app.log", "app.log.1.gz", "app.log.2.gz", "app.log.3.gz"
        ]
        with gzip.open(tmp_path / "app.log.1.gz", 'rt') as f:
            assert f.read().strip() == "generation 3"
        with gzip.open(tmp_path / "app.log.3.gz", 'rt') as f:
            assert f.read().strip() == "generation 1"

    @pytest.mark.skipif(os.name == 'nt', reason="POSIX permissions")
    def test_audit_file_is_owner_only(self, tmp_path):
        handler = AuditFileHandler(str(tmp_path / "audit.log"))
        try:
            handler.emit(make_record())
        finally:
            handler.close()

        mode = stat.S_IMODE(os.stat(tmp_path / "audit.log").st_mode)
        assert mode == 0o600


class TestAuditLogger:

    def test_without_directory_adds_no_file(self):
        audit = AuditLogger()

        assert audit.log_dir is None
        assert audit.logger.name == AUDIT_LOGGER_NAME
        assert audit.logger.propagate is False

    def test_events_are_json_lines(self, audit_dir):
        audit = AuditLogger(audit_dir)

        audit.log_ticket_created("T1", "u1", "C1", "high")
        audit.log_status_changed("T1", "a1", "open", "in-progress")
        audit.log_ticket_assigned("T1", "a1", "a2")
        audit.log_vote_cast("T1", "u1", True, 1)
        audit.log_reply_added("T1", "a1", "R1", False)
        audit.log_category_created("C2", "admin", "Billing")
        audit.log_category_deleted("C2", "admin")

        events = read_audit_events(audit_dir)

        assert [e['event_type'] for e in events] == [
            "TICKET_CREATED", "STATUS_CHANGED", "TICKET_ASSIGNED", "VOTE_CAST",
            "REPLY_ADDED", "CATEGORY_CREATED", "CATEGORY_DELETED"
        ]
        assert events[0]['priority'] == "high"
        assert events[1]['new_status'] == "in-progress"
        assert events[3]['votes'] == 1
        assert 'ticket_id' not in events[5]

    def test_permission_denied_and_errors(self, audit_dir):
        audit = AuditLogger(audit_dir)

        audit.log_permission_denied("set_status", "u1", "end-user", "admin|support-agent", "T1")
        audit.log_error_occurred("DatabaseError", "disk full", actor_id="a1")

        denied, error = read_audit_events(audit_dir)

        assert denied['event_type'] == "PERMISSION_DENIED"
        assert denied['operation'] == "set_status"
        assert denied['required_role'] == "admin|support-agent"
        assert error['error_type'] == "DatabaseError"
