"""
Role-based access rules applied on top of the ticket store.
"""
from typing import Iterable, List

from quickdesk.models.ticket import Ticket, TicketReply, TicketStatus
from quickdesk.models.user import Actor


class AccessPolicy:
    """
    Decides what an actor may see and do.

    Staff (support agents and admins) see every ticket. End users only
    see the tickets they created and never see internal replies.
    """

    @staticmethod
    def is_staff(actor: Actor) -> bool:
        return actor.is_staff

    @staticmethod
    def is_admin(actor: Actor) -> bool:
        return actor.is_admin

    @classmethod
    def can_view_ticket(cls, actor: Actor, ticket: Ticket) -> bool:
        return cls.is_staff(actor) or ticket.created_by == actor.id

    @classmethod
    def scope_tickets(cls, actor: Actor, tickets: Iterable[Ticket]) -> List[Ticket]:
        """Tickets the actor is allowed to list."""
        return [ticket for ticket in tickets if cls.can_view_ticket(actor, ticket)]

    @classmethod
    def can_reply(cls, actor: Actor, ticket: Ticket) -> bool:
        """Staff or the creator may reply while the ticket is not closed."""
        return ticket.status != TicketStatus.CLOSED and cls.can_view_ticket(actor, ticket)

    @classmethod
    def can_post_internal(cls, actor: Actor) -> bool:
        return cls.is_staff(actor)

    @classmethod
    def visible_replies(cls, actor: Actor, ticket: Ticket) -> List[TicketReply]:
        if cls.is_staff(actor):
            return list(ticket.replies)
        return [reply for reply in ticket.replies if not reply.is_internal]

    @classmethod
    def redact(cls, actor: Actor, ticket: Ticket) -> Ticket:
        """Copy of ``ticket`` with the replies the actor may not see removed."""
        return ticket.copy(replies=cls.visible_replies(actor, ticket))
