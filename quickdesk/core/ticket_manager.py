"""
Ticket Manager for the helpdesk.

This module provides the ticket store: creation, status transitions,
assignment, voting and reply threading over an in-memory collection
that is persisted through snapshot writes.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Union

from quickdesk.config.config_manager import DeskConfig
from quickdesk.core.category_manager import CategoryManager
from quickdesk.core.identifiers import generate_unique_id
from quickdesk.core.validation import coerce_priority, coerce_status
from quickdesk.database.adapter import DatabaseAdapter
from quickdesk.database.snapshot import SnapshotPersister, TICKETS
from quickdesk.errors.exceptions import InvalidTransitionError, UnauthorizedError
from quickdesk.models.ticket import Ticket, TicketPriority, TicketReply, TicketStatus
from quickdesk.models.user import Actor

logger = logging.getLogger(__name__)


class TicketManager:
    """
    Core ticket store.

    Every mutation builds a new Ticket record and swaps it into the
    collection in one step, so concurrent readers see either the old or
    the new record and never a partial update. Mutations of the same
    ticket are serialized by a per-ticket lock.

    Mutations on an unknown ticket id are no-ops that return None.
    There is no version check: the last writer wins.
    """

    def __init__(self, database_adapter: DatabaseAdapter, category_manager: CategoryManager,
                 persister: SnapshotPersister, config: Optional[DeskConfig] = None):
        """
        Initialize TicketManager.

        Args:
            database_adapter: Adapter the collection is loaded from
            category_manager: Category store used for label lookups
            persister: Snapshot persister the collection is written through
            config: Store settings (default category label, reopen policy)
        """
        self.database = database_adapter
        self.categories = category_manager
        self.persister = persister
        self.config = config or DeskConfig(database_type='memory')
        # Insertion order is creation order; listings are newest first
        self._tickets: Dict[str, Ticket] = {}
        self._collection_lock = asyncio.Lock()
        self._ticket_locks: Dict[str, asyncio.Lock] = {}
        # Reply ids are unique across the whole store
        self._reply_ids: Set[str] = set()
        persister.register(TICKETS, self._snapshot, database_adapter.save_tickets)

    def _get_ticket_lock(self, ticket_id: str) -> asyncio.Lock:
        """
        Get or create the lock for a specific ticket.

        Args:
            ticket_id: Ticket identifier

        Returns:
            asyncio.Lock: Lock for the ticket
        """
        if ticket_id not in self._ticket_locks:
            self._ticket_locks[ticket_id] = asyncio.Lock()
        return self._ticket_locks[ticket_id]

    @staticmethod
    def _touch(ticket: Ticket) -> datetime:
        """Timestamp for a mutation, never earlier than the last one."""
        return max(datetime.now(timezone.utc), ticket.updated_at)

    def _snapshot(self) -> List[Ticket]:
        return list(reversed(self._tickets.values()))

    async def load(self) -> int:
        """
        Replace the in-memory collection with the stored snapshot.

        Returns:
            int: Number of tickets loaded
        """
        tickets = await self.database.load_tickets()
        async with self._collection_lock:
            self._tickets = {ticket.ticket_id: ticket for ticket in reversed(tickets)}
            self._reply_ids = {reply.reply_id for ticket in tickets for reply in ticket.replies}
        logger.info(f"Loaded {len(tickets)} tickets")
        return len(tickets)

    async def create_ticket(self, actor: Actor, subject: str, description: str,
                            category_id: Optional[str] = None,
                            priority: Union[TicketPriority, str] = TicketPriority.MEDIUM,
                            attachments: Optional[List[str]] = None) -> Ticket:
        """
        Create a new support ticket.

        Subject and description are expected to be validated by the caller.
        An unknown category id keeps the id but takes the default label.

        Args:
            actor: User creating the ticket
            subject: Ticket subject
            description: Ticket description
            category_id: Category to file the ticket under
            priority: Ticket priority
            attachments: Attachment references

        Returns:
            Ticket: Created ticket
        """
        priority = coerce_priority(priority)
        category = self.categories.get_category(category_id)
        category_name = category.name if category else self.config.default_category_name
        if category is None:
            logger.debug(f"Category {category_id!r} not found, using {category_name!r}")

        now = datetime.now(timezone.utc)
        async with self._collection_lock:
            ticket = Ticket(
                ticket_id=generate_unique_id(self._tickets),
                subject=subject,
                description=description,
                status=TicketStatus.OPEN,
                priority=priority,
                category_id=category_id or '',
                category_name=category_name,
                created_by=actor.id,
                created_by_name=actor.name,
                created_at=now,
                updated_at=now,
                attachments=list(attachments or [])
            )
            self._tickets[ticket.ticket_id] = ticket

        self.persister.mark_dirty(TICKETS)
        logger.info(f"Created ticket {ticket.ticket_id} for user {actor.id}")
        return ticket.copy()

    async def _update(self, ticket_id: str, operation: str,
                      change: Callable[[Ticket], Optional[Ticket]]) -> Optional[Ticket]:
        """
        Apply ``change`` to a ticket under its lock.

        ``change`` returns the replacement record, or None for a no-op.

        Returns:
            Optional[Ticket]: Copy of the ticket after the call, None if it does not exist
        """
        if ticket_id not in self._tickets:
            logger.warning(f"Ticket {ticket_id} not found, {operation} ignored")
            return None

        async with self._get_ticket_lock(ticket_id):
            current = self._tickets[ticket_id]
            updated = change(current)
            if updated is None:
                return current.copy()
            self._tickets[ticket_id] = updated

        self.persister.mark_dirty(TICKETS)
        return updated.copy()

    async def set_status(self, actor: Actor, ticket_id: str,
                         status: Union[TicketStatus, str]) -> Optional[Ticket]:
        """
        Change a ticket's status. Staff only.

        Any status may be set directly. Moving an unassigned ticket to
        in-progress assigns the acting staff member; no other change
        touches the assignee. Leaving ``closed`` is rejected unless the
        desk allows reopening.

        Args:
            actor: Staff member changing the status
            ticket_id: Ticket to change
            status: Target status

        Returns:
            Optional[Ticket]: Updated ticket, None if not found

        Raises:
            UnauthorizedError: If the actor is not staff
            InvalidTransitionError: If the ticket is closed and reopening is disabled
        """
        if not actor.is_staff:
            raise UnauthorizedError(
                f"Actor {actor.id} with role {actor.role.value} cannot change ticket status",
                required_role="staff",
                actor_id=actor.id
            )
        target = coerce_status(status)

        def change(ticket: Ticket) -> Ticket:
            if (ticket.status == TicketStatus.CLOSED and target != TicketStatus.CLOSED
                    and not self.config.allow_reopen):
                raise InvalidTransitionError(
                    f"Ticket {ticket.ticket_id} is closed and cannot move to {target.value}",
                    from_status=ticket.status.value,
                    to_status=target.value
                )

            changes = {'status': target, 'updated_at': self._touch(ticket)}
            if target == TicketStatus.IN_PROGRESS and not ticket.is_assigned:
                changes['assigned_to'] = actor.id
                changes['assigned_to_name'] = actor.name
            return ticket.copy(**changes)

        updated = await self._update(ticket_id, 'set_status', change)
        if updated:
            logger.info(f"Ticket {ticket_id} status set to {target.value} by {actor.id}")
        return updated

    async def assign_ticket(self, ticket_id: str, agent_id: str, agent_name: str) -> Optional[Ticket]:
        """
        Assign a ticket to a staff member.

        Always forces the status to in-progress, including from
        resolved or closed.

        Args:
            ticket_id: Ticket to assign
            agent_id: Assignee user ID
            agent_name: Assignee display name

        Returns:
            Optional[Ticket]: Updated ticket, None if not found
        """
        def change(ticket: Ticket) -> Ticket:
            return ticket.copy(
                assigned_to=agent_id,
                assigned_to_name=agent_name,
                status=TicketStatus.IN_PROGRESS,
                updated_at=self._touch(ticket)
            )

        updated = await self._update(ticket_id, 'assign_ticket', change)
        if updated:
            logger.info(f"Ticket {ticket_id} assigned to {agent_id}")
        return updated

    async def vote(self, ticket_id: str, actor_id: str, is_upvote: bool = True) -> Optional[Ticket]:
        """
        Toggle an actor's vote.

        An existing vote is always retracted, whatever ``is_upvote`` says.
        Otherwise an upvote adds the actor and a downvote does nothing:
        there are no negative votes.

        Args:
            ticket_id: Ticket to vote on
            actor_id: Voting user ID
            is_upvote: Whether the call is an upvote

        Returns:
            Optional[Ticket]: Ticket after the call, None if not found
        """
        def change(ticket: Ticket) -> Optional[Ticket]:
            if actor_id in ticket.voted_by:
                voted_by = [voter for voter in ticket.voted_by if voter != actor_id]
            elif is_upvote:
                voted_by = ticket.voted_by + [actor_id]
            else:
                return None
            return ticket.copy(voted_by=voted_by, votes=len(voted_by), updated_at=self._touch(ticket))

        return await self._update(ticket_id, 'vote', change)

    async def add_reply(self, ticket_id: str, actor: Actor, content: str,
                        is_internal: bool = False) -> Optional[TicketReply]:
        """
        Append a reply to a ticket's thread.

        The author's name and role are captured now and never refreshed.
        Who may reply is decided by the caller.

        Args:
            ticket_id: Ticket to reply to
            actor: Reply author
            content: Reply text
            is_internal: Staff-only note

        Returns:
            Optional[TicketReply]: The new reply, None if the ticket does not exist
        """
        created: List[TicketReply] = []

        def change(ticket: Ticket) -> Ticket:
            now = self._touch(ticket)
            reply_id = generate_unique_id(self._reply_ids)
            self._reply_ids.add(reply_id)
            reply = TicketReply(
                reply_id=reply_id,
                ticket_id=ticket.ticket_id,
                user_id=actor.id,
                user_name=actor.name,
                user_role=actor.role,
                content=content,
                created_at=now,
                is_internal=is_internal
            )
            created.append(reply)
            return ticket.copy(replies=ticket.replies + [reply], updated_at=now)

        updated = await self._update(ticket_id, 'add_reply', change)
        if updated is None:
            return None

        logger.info(f"Reply {created[0].reply_id} added to ticket {ticket_id} by {actor.id}")
        return created[0]

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        """
        Get a copy of a ticket.

        Args:
            ticket_id: Ticket identifier

        Returns:
            Optional[Ticket]: Ticket if found, None otherwise
        """
        ticket = self._tickets.get(ticket_id)
        return ticket.copy() if ticket else None

    def list_tickets(self) -> List[Ticket]:
        """Copies of all tickets, newest first."""
        return [ticket.copy() for ticket in self._snapshot()]

    async def flush(self) -> None:
        """Write pending changes through the persister now."""
        await self.persister.flush()
