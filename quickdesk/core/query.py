"""
Ticket query engine.

Filtering, sorting and pagination over ticket snapshots. Everything here
is a pure function over the list it is given.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set, Union

from quickdesk.core.validation import coerce_enum, coerce_enum_set
from quickdesk.errors.exceptions import ValidationError
from quickdesk.models.ticket import Ticket, TicketPriority, TicketStatus


class SortOrder(Enum):
    """Supported ticket orderings."""
    RECENT = "recent"
    OLDEST = "oldest"
    PRIORITY = "priority"
    VOTES = "votes"


@dataclass
class TicketFilters:
    """
    Optional ticket filter criteria.

    An empty collection or empty search string counts as absent. When
    ``search`` is set it replaces all other criteria.
    """
    status: Optional[Iterable[Union[TicketStatus, str]]] = None
    category: Optional[Iterable[str]] = None
    priority: Optional[Iterable[Union[TicketPriority, str]]] = None
    assigned_to: Optional[Iterable[str]] = None
    search: Optional[str] = None

    def __post_init__(self):
        self.status = coerce_enum_set(TicketStatus, self.status, 'status')
        self.priority = coerce_enum_set(TicketPriority, self.priority, 'priority')
        self.category = _as_id_set(self.category)
        self.assigned_to = _as_id_set(self.assigned_to)
        if self.search is not None and not self.search.strip():
            self.search = None


def _as_id_set(values: Optional[Iterable[str]]) -> Optional[Set[str]]:
    if not values:
        return None
    if isinstance(values, str):
        return {values}
    return set(values)


@dataclass
class Page:
    """One page of a ticket listing."""
    items: List[Ticket] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total_items: int = 0
    total_pages: int = 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def _matches_search(ticket: Ticket, needle: str) -> bool:
    needle = needle.lower()
    return (needle in ticket.subject.lower()
            or needle in ticket.description.lower()
            or needle in ticket.created_by_name.lower())


def _matches_criteria(ticket: Ticket, filters: TicketFilters) -> bool:
    if filters.status and ticket.status not in filters.status:
        return False
    if filters.category and ticket.category_id not in filters.category:
        return False
    if filters.priority and ticket.priority not in filters.priority:
        return False
    if filters.assigned_to and (not ticket.is_assigned or ticket.assigned_to not in filters.assigned_to):
        return False
    return True


def filter_tickets(tickets: Iterable[Ticket], filters: Optional[TicketFilters] = None) -> List[Ticket]:
    """
    Apply filter criteria to a ticket list.

    Present criteria are ANDed. A search term replaces the status,
    category, priority and assignee criteria entirely.

    Args:
        tickets: Tickets to filter
        filters: Criteria, or None to keep everything

    Returns:
        List[Ticket]: Matching tickets in their original order
    """
    tickets = list(tickets)
    if filters is None:
        return tickets
    if filters.search:
        return [ticket for ticket in tickets if _matches_search(ticket, filters.search)]
    return [ticket for ticket in tickets if _matches_criteria(ticket, filters)]


def sort_tickets(tickets: Iterable[Ticket], order: Union[SortOrder, str] = SortOrder.RECENT) -> List[Ticket]:
    """
    Sort tickets. The sort is stable, so ties keep their input order.

    Args:
        tickets: Tickets to sort
        order: ``recent`` (updated_at desc), ``oldest`` (created_at asc),
            ``priority`` (critical first) or ``votes`` (most first)

    Returns:
        List[Ticket]: Sorted tickets
    """
    order = coerce_enum(SortOrder, order, 'sort')
    tickets = list(tickets)

    if order == SortOrder.RECENT:
        return sorted(tickets, key=lambda t: t.updated_at, reverse=True)
    if order == SortOrder.OLDEST:
        return sorted(tickets, key=lambda t: t.created_at)
    if order == SortOrder.PRIORITY:
        return sorted(tickets, key=lambda t: t.priority.rank, reverse=True)
    return sorted(tickets, key=lambda t: t.votes, reverse=True)


def paginate(items: List[Ticket], page: int = 1, page_size: int = 10) -> Page:
    """
    Slice one 1-indexed page out of ``items``.

    Pages past the end are empty.

    Raises:
        ValidationError: If page or page_size is below 1
    """
    if page < 1:
        raise ValidationError(f"Page must be at least 1, got {page}", field='page', value=page)
    if page_size < 1:
        raise ValidationError(f"Page size must be at least 1, got {page_size}",
                              field='page_size', value=page_size)

    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=math.ceil(len(items) / page_size)
    )


def list_tickets(tickets: Iterable[Ticket], filters: Optional[TicketFilters] = None,
                 order: Union[SortOrder, str] = SortOrder.RECENT,
                 page: int = 1, page_size: int = 10) -> Page:
    """Filter, then sort, then paginate."""
    return paginate(sort_tickets(filter_tickets(tickets, filters), order), page, page_size)
