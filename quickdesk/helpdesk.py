#!/usr/bin/env python3
"""
QuickDesk - Helpdesk API Facade and Entry Point

Wraps the ticket and category stores with input validation, role checks,
audit logging and the bootstrap of the storage backend.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, Union

from dotenv import load_dotenv

from quickdesk.config.config_manager import ConfigManager, DeskConfig
from quickdesk.core.access import AccessPolicy
from quickdesk.core.category_manager import CategoryManager
from quickdesk.core.dashboard import DashboardStats, compute_dashboard_stats, recent_tickets
from quickdesk.core import query
from quickdesk.core.query import Page, SortOrder, TicketFilters
from quickdesk.core.ticket_manager import TicketManager
from quickdesk.core.validation import coerce_priority, coerce_status, require_text
from quickdesk.database.adapter import DatabaseAdapter
from quickdesk.database.memory_adapter import MemoryAdapter
from quickdesk.database.snapshot import SnapshotPersister
from quickdesk.database.sqlite_adapter import SQLiteAdapter
from quickdesk.errors.exceptions import (
    CategoryNotFoundError, ConfigurationError, TicketNotFoundError,
    UnauthorizedError, ValidationError
)
from quickdesk.errors.handlers import (
    format_error_message, handle_errors, require_admin_role, require_staff_role
)
from quickdesk.logging_config.logger import AuditLogger, get_audit_logger, setup_logging
from quickdesk.models.category import Category
from quickdesk.models.ticket import Ticket, TicketPriority, TicketReply, TicketStatus
from quickdesk.models.user import Actor, UserRole

logger = logging.getLogger(__name__)


class HelpDesk:
    """
    Public API of the helpdesk.

    Every operation takes the acting user. Input is validated and
    permissions are checked here, before the stores are touched.
    Unlike the stores, a missing ticket raises TicketNotFoundError.
    """

    def __init__(self, config: DeskConfig, database_adapter: DatabaseAdapter,
                 persister: SnapshotPersister, categories: CategoryManager,
                 tickets: TicketManager, audit_logger: Optional[AuditLogger] = None):
        self.config = config
        self.database = database_adapter
        self.persister = persister
        self.categories = categories
        self.tickets = tickets
        self.audit = audit_logger or AuditLogger()
        self.policy = AccessPolicy()
        self._closed = False

    def on_permission_denied(self, actor: Actor, operation: str, required_role: str,
                             ticket_id: Optional[str] = None) -> None:
        """Record a denied operation in the audit log."""
        self.audit.log_permission_denied(operation, actor.id, actor.role.value, required_role, ticket_id)

    def on_unexpected_error(self, error: Exception, operation: str,
                            actor_id: Optional[str], ticket_id: Optional[str]) -> None:
        """Record an internal failure of a facade operation in the audit log."""
        self.audit.log_error_occurred(type(error).__name__, str(error), actor_id=actor_id,
                                      ticket_id=ticket_id, additional_info={'operation': operation})

    def _deny(self, actor: Actor, operation: str, required_role: str, message: str,
              ticket_id: Optional[str] = None) -> UnauthorizedError:
        self.on_permission_denied(actor, operation, required_role, ticket_id)
        return UnauthorizedError(
            f"Actor {actor.id} may not run {operation}" + (f" on ticket {ticket_id}" if ticket_id else ""),
            required_role=required_role,
            actor_id=actor.id,
            user_message=message
        )

    def _require_ticket(self, ticket_id: str) -> Ticket:
        ticket = self.tickets.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found", ticket_id=ticket_id)
        return ticket

    def _require_visible_ticket(self, actor: Actor, ticket_id: str, operation: str) -> Ticket:
        ticket = self._require_ticket(ticket_id)
        if not self.policy.can_view_ticket(actor, ticket):
            raise self._deny(actor, operation, "staff|creator",
                             "You do not have access to this ticket.", ticket_id)
        return ticket

    @handle_errors
    async def create_ticket(self, actor: Actor, subject: str, description: str,
                            category_id: Optional[str] = None,
                            priority: Union[TicketPriority, str] = TicketPriority.MEDIUM,
                            attachments: Optional[List[str]] = None) -> Ticket:
        """
        Open a new ticket on behalf of ``actor``.

        Raises:
            ValidationError: If subject or description is blank, the priority
                is unknown or there are too many attachments
        """
        subject = require_text(subject, 'subject')
        description = require_text(description, 'description')
        priority = coerce_priority(priority)
        attachments = list(attachments or [])
        if len(attachments) > self.config.max_attachments:
            raise ValidationError(
                f"Too many attachments: {len(attachments)} (max {self.config.max_attachments})",
                field='attachments',
                value=len(attachments),
                user_message=f"You can attach at most {self.config.max_attachments} files."
            )

        ticket = await self.tickets.create_ticket(actor, subject, description, category_id,
                                                  priority, attachments)
        self.audit.log_ticket_created(ticket.ticket_id, actor.id, ticket.category_id, priority.value)
        return ticket

    @handle_errors
    @require_staff_role("Only support staff can change ticket status.")
    async def set_status(self, actor: Actor, ticket_id: str,
                         status: Union[TicketStatus, str]) -> Ticket:
        """
        Change a ticket's status.

        Raises:
            TicketNotFoundError: If the ticket does not exist
            InvalidTransitionError: If the ticket is closed and reopening is disabled
        """
        status = coerce_status(status)
        before = self._require_ticket(ticket_id)
        ticket = await self.tickets.set_status(actor, ticket_id, status)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found", ticket_id=ticket_id)

        self.audit.log_status_changed(ticket_id, actor.id, before.status.value, ticket.status.value)
        if ticket.assigned_to != before.assigned_to:
            self.audit.log_ticket_assigned(ticket_id, actor.id, ticket.assigned_to,
                                           additional_info={'automatic': True})
        return ticket

    @handle_errors
    @require_staff_role("Only support staff can assign tickets.")
    async def assign_ticket(self, actor: Actor, ticket_id: str, agent_id: str,
                            agent_name: str) -> Ticket:
        """Assign a ticket and move it to in-progress."""
        agent_id = require_text(agent_id, 'agent_id')
        agent_name = require_text(agent_name, 'agent_name')
        self._require_ticket(ticket_id)

        ticket = await self.tickets.assign_ticket(ticket_id, agent_id, agent_name)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found", ticket_id=ticket_id)

        self.audit.log_ticket_assigned(ticket_id, actor.id, agent_id)
        return ticket

    @handle_errors
    async def vote(self, actor: Actor, ticket_id: str, is_upvote: bool = True) -> Ticket:
        """Toggle the actor's vote on a ticket they can see."""
        self._require_visible_ticket(actor, ticket_id, 'vote')

        ticket = await self.tickets.vote(ticket_id, actor.id, is_upvote)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found", ticket_id=ticket_id)

        self.audit.log_vote_cast(ticket_id, actor.id, actor.id in ticket.voted_by, ticket.votes)
        return self.policy.redact(actor, ticket)

    @handle_errors
    async def add_reply(self, actor: Actor, ticket_id: str, content: str,
                        is_internal: bool = False) -> TicketReply:
        """
        Post a reply to a ticket.

        Raises:
            ValidationError: If the content is blank
            UnauthorizedError: If the actor cannot see the ticket, the ticket is
                closed, or a non-staff actor posts an internal note
        """
        content = require_text(content, 'content')
        ticket = self._require_visible_ticket(actor, ticket_id, 'add_reply')

        if is_internal and not self.policy.can_post_internal(actor):
            raise self._deny(actor, 'add_reply', 'staff',
                             "Only support staff can post internal notes.", ticket_id)
        if not self.policy.can_reply(actor, ticket):
            raise self._deny(actor, 'add_reply', 'open-ticket',
                             "This ticket is closed and no longer accepts replies.", ticket_id)

        reply = await self.tickets.add_reply(ticket_id, actor, content, is_internal)
        if reply is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found", ticket_id=ticket_id)

        self.audit.log_reply_added(ticket_id, actor.id, reply.reply_id, is_internal)
        return reply

    @handle_errors
    @require_admin_role("Only administrators can manage categories.")
    async def create_category(self, actor: Actor, name: str, description: str = '',
                              color: str = '') -> Category:
        name = require_text(name, 'name')
        category = await self.categories.create_category(name, description or '', color or '')
        self.audit.log_category_created(category.category_id, actor.id, category.name)
        return category

    @handle_errors
    @require_admin_role("Only administrators can manage categories.")
    async def delete_category(self, actor: Actor, category_id: str) -> None:
        """
        Delete a category. Tickets filed under it keep their category label.

        Raises:
            CategoryNotFoundError: If the category does not exist
        """
        if not await self.categories.delete_category(category_id):
            raise CategoryNotFoundError(f"Category {category_id} not found", category_id=category_id)
        self.audit.log_category_deleted(category_id, actor.id)

    @handle_errors
    async def list_tickets(self, actor: Actor, filters: Optional[TicketFilters] = None,
                           sort: Union[SortOrder, str] = SortOrder.RECENT,
                           page: int = 1, page_size: Optional[int] = None) -> Page:
        """
        List the tickets the actor may see.

        Args:
            actor: Acting user
            filters: Optional filter criteria
            sort: Sort order
            page: 1-indexed page number
            page_size: Items per page, the configured default if omitted

        Returns:
            Page: The requested page
        """
        visible = self.policy.scope_tickets(actor, self.tickets.list_tickets())
        result = query.list_tickets(visible, filters, sort, page, page_size or self.config.page_size)
        result.items = [self.policy.redact(actor, ticket) for ticket in result.items]
        return result

    @handle_errors
    async def get_ticket(self, actor: Actor, ticket_id: str) -> Ticket:
        """Fetch one ticket, with internal replies hidden from end users."""
        ticket = self._require_visible_ticket(actor, ticket_id, 'get_ticket')
        return self.policy.redact(actor, ticket)

    def list_categories(self) -> List[Category]:
        return self.categories.list_categories()

    async def dashboard(self, actor: Actor) -> dict:
        """Ticket counts and the most recently updated tickets for ``actor``."""
        visible = self.policy.scope_tickets(actor, self.tickets.list_tickets())
        stats: DashboardStats = compute_dashboard_stats(visible, actor)
        return {
            'stats': stats,
            'recent_tickets': [self.policy.redact(actor, t) for t in recent_tickets(visible)]
        }

    async def flush(self) -> None:
        await self.persister.flush()

    async def close(self) -> None:
        """Flush pending writes and disconnect from storage."""
        if self._closed:
            return
        self._closed = True
        logger.info("Helpdesk is shutting down...")

        try:
            await self.persister.stop()
        finally:
            await self.database.disconnect()
        logger.info("Helpdesk shutdown completed")


def create_adapter(config: DeskConfig) -> DatabaseAdapter:
    """Build the storage adapter named by the configuration."""
    if config.database_type == 'sqlite':
        return SQLiteAdapter(config.database_url)
    if config.database_type == 'memory':
        return MemoryAdapter()
    raise ConfigurationError(f"Unsupported database type: {config.database_type}",
                             config_key='database_type')


async def create_helpdesk(config_manager: Optional[ConfigManager] = None,
                          config: Optional[DeskConfig] = None,
                          database_adapter: Optional[DatabaseAdapter] = None,
                          audit_logger: Optional[AuditLogger] = None) -> HelpDesk:
    """
    Bootstrap a ready-to-use helpdesk.

    Connects the adapter, loads both collections, seeds the default
    categories when enabled and starts the background persister.

    Args:
        config_manager: Source of the configuration
        config: Explicit configuration, takes precedence over ``config_manager``
        database_adapter: Adapter to use instead of the configured one
        audit_logger: Audit logger, a handler-less one if omitted

    Returns:
        HelpDesk: The running helpdesk; call ``close()`` when done
    """
    if config is None:
        config = config_manager.get_config() if config_manager else DeskConfig()

    adapter = database_adapter or create_adapter(config)
    logger.info(f"Initializing {config.database_type} storage...")
    await adapter.connect()

    try:
        persister = SnapshotPersister()
        categories = CategoryManager(adapter, persister)
        tickets = TicketManager(adapter, categories, persister, config)

        await categories.load()
        await tickets.load()
        if config.seed_default_categories:
            await categories.seed_default_categories()

        persister.start()
    except Exception as e:
        logger.error(f"Failed to initialize helpdesk: {e}")
        await adapter.disconnect()
        raise

    logger.info("Helpdesk initialized successfully")
    return HelpDesk(config, adapter, persister, categories, tickets, audit_logger)


async def _startup_check(config_manager: ConfigManager, audit_logger: AuditLogger) -> DashboardStats:
    helpdesk = await create_helpdesk(config_manager, audit_logger=audit_logger)
    try:
        overview = Actor(id="system", name="System", role=UserRole.ADMIN)
        return (await helpdesk.dashboard(overview))['stats']
    finally:
        await helpdesk.close()


def _parse_assignment(text: str):
    """Split ``KEY=VALUE``; the value is read as JSON when it parses, else kept as text."""
    key, sep, raw = text.partition('=')
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {text!r}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip(), value


def _save_settings(config_file: str, assignments) -> None:
    """Write settings to the configuration file, leaving environment overrides out."""
    editor = ConfigManager(config_file, use_environment=False)
    for key, value in assignments:
        editor.set_setting(key, value)
    editor.save_configuration()
    for key, _ in assignments:
        print(f"Saved {key} = {editor.get_setting(key)!r}")


def run(argv: Optional[List[str]] = None) -> int:
    """Console entry point: validate configuration and report ticket totals."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="QuickDesk helpdesk ticket store")
    parser.add_argument('--config', default='config.json', help="Path to the JSON configuration file")
    parser.add_argument('--set', dest='assignments', action='append', default=[],
                        type=_parse_assignment, metavar='KEY=VALUE',
                        help="Store a setting in the configuration file before starting")
    args = parser.parse_args(argv)

    try:
        config_manager = ConfigManager(args.config)
        if args.assignments:
            _save_settings(args.config, args.assignments)
            config_manager.reload_configuration()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    errors = config_manager.validate_configuration()
    if errors:
        print("Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors),
              file=sys.stderr)
        return 1

    config = config_manager.get_config()
    setup_logging(log_dir=config.log_dir, log_level=config.log_level)

    try:
        stats = asyncio.run(_startup_check(config_manager, get_audit_logger()))
    except Exception as e:
        logger.error(f"Helpdesk startup failed: {e}")
        print(format_error_message(e), file=sys.stderr)
        return 1

    logger.info(
        f"Tickets: {stats.total_tickets} total, {stats.open_tickets} open, "
        f"{stats.in_progress_tickets} in progress, {stats.resolved_tickets} resolved, "
        f"{stats.closed_tickets} closed"
    )
    return 0


if __name__ == "__main__":
    sys.exit(run())
