"""
Dashboard statistics over a ticket snapshot.
"""
from dataclasses import dataclass, asdict
from typing import Iterable, List

from quickdesk.models.ticket import Ticket, TicketStatus
from quickdesk.models.user import Actor, UserRole

RECENT_TICKETS_LIMIT = 5


@dataclass(frozen=True)
class DashboardStats:
    """Ticket counts shown on an actor's dashboard."""
    total_tickets: int = 0
    open_tickets: int = 0
    in_progress_tickets: int = 0
    resolved_tickets: int = 0
    closed_tickets: int = 0
    my_tickets: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _is_mine(actor: Actor, ticket: Ticket) -> bool:
    if actor.role == UserRole.END_USER:
        return ticket.created_by == actor.id
    if actor.role == UserRole.SUPPORT_AGENT:
        return ticket.assigned_to == actor.id
    return False


def compute_dashboard_stats(tickets: Iterable[Ticket], actor: Actor) -> DashboardStats:
    """
    Count tickets by status.

    ``my_tickets`` counts tickets an end user created or a support agent
    is assigned. Admins have no personal queue, so it is 0 for them.
    Callers pass tickets already scoped to what the actor may see.

    Args:
        tickets: Tickets to count
        actor: Actor the dashboard is built for

    Returns:
        DashboardStats: The counts
    """
    tickets = list(tickets)
    by_status = {status: 0 for status in TicketStatus}
    for ticket in tickets:
        by_status[ticket.status] += 1

    return DashboardStats(
        total_tickets=len(tickets),
        open_tickets=by_status[TicketStatus.OPEN],
        in_progress_tickets=by_status[TicketStatus.IN_PROGRESS],
        resolved_tickets=by_status[TicketStatus.RESOLVED],
        closed_tickets=by_status[TicketStatus.CLOSED],
        my_tickets=sum(1 for ticket in tickets if _is_mine(actor, ticket))
    )


def recent_tickets(tickets: Iterable[Ticket], limit: int = RECENT_TICKETS_LIMIT) -> List[Ticket]:
    """Most recently updated tickets first."""
    return sorted(tickets, key=lambda t: t.updated_at, reverse=True)[:limit]
