"""
Shared fixtures for the helpdesk test suite.
"""

import logging
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from quickdesk.config.config_manager import DeskConfig
from quickdesk.core.category_manager import CategoryManager
from quickdesk.core.ticket_manager import TicketManager
from quickdesk.database.memory_adapter import MemoryAdapter
from quickdesk.database.snapshot import SnapshotPersister
from quickdesk.helpdesk import create_helpdesk
from quickdesk.logging_config.logger import AUDIT_LOGGER_NAME, AuditLogger
from quickdesk.models.user import Actor, UserRole


@pytest.fixture
def end_user():
    return Actor(id="u1", name="User One", role=UserRole.END_USER)


@pytest.fixture
def other_user():
    return Actor(id="u2", name="User Two", role=UserRole.END_USER)


@pytest.fixture
def agent():
    return Actor(id="a1", name="Agent One", role=UserRole.SUPPORT_AGENT)


@pytest.fixture
def other_agent():
    return Actor(id="a2", name="Agent Two", role=UserRole.SUPPORT_AGENT)


@pytest.fixture
def admin():
    return Actor(id="admin", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def desk_config():
    return DeskConfig(database_type='memory', database_url='memory://', seed_default_categories=False)


@pytest_asyncio.fixture
async def adapter():
    """Connected in-memory adapter."""
    adapter = MemoryAdapter()
    await adapter.connect()
    yield adapter
    await adapter.disconnect()


@pytest.fixture
def persister():
    """Persister that is never started; tests flush explicitly."""
    return SnapshotPersister(max_retries=0, retry_delay=0)


@pytest.fixture
def category_manager(adapter, persister):
    return CategoryManager(adapter, persister)


@pytest.fixture
def ticket_manager(adapter, category_manager, persister, desk_config):
    return TicketManager(adapter, category_manager, persister, desk_config)


@pytest.fixture
def audit_logger():
    """Audit logger double recording the events a test triggers."""
    return MagicMock(spec=AuditLogger)


@pytest_asyncio.fixture
async def helpdesk(desk_config, audit_logger):
    """Running helpdesk on the in-memory backend."""
    desk = await create_helpdesk(config=desk_config, audit_logger=audit_logger)
    yield desk
    await desk.close()


@pytest.fixture
def restore_root_logger():
    """Undo global logging setup done by a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)

    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    for handler in list(audit.handlers):
        audit.removeHandler(handler)
        handler.close()
