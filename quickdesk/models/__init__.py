# Models package for ticket, reply, category and actor records

from .user import Actor, UserRole, STAFF_ROLES
from .ticket import Ticket, TicketReply, TicketStatus, TicketPriority
from .category import Category

__all__ = [
    'Actor',
    'UserRole',
    'STAFF_ROLES',
    'Ticket',
    'TicketReply',
    'TicketStatus',
    'TicketPriority',
    'Category'
]
