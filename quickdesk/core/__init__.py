# Core package for the ticket and category stores and the query engine

from .ticket_manager import TicketManager
from .category_manager import CategoryManager, DEFAULT_CATEGORIES
from .access import AccessPolicy
from .dashboard import DashboardStats, compute_dashboard_stats, recent_tickets
from .query import TicketFilters, SortOrder, Page, filter_tickets, sort_tickets, paginate, list_tickets

__all__ = [
    'TicketManager',
    'CategoryManager',
    'DEFAULT_CATEGORIES',
    'AccessPolicy',
    'DashboardStats',
    'compute_dashboard_stats',
    'recent_tickets',
    'TicketFilters',
    'SortOrder',
    'Page',
    'filter_tickets',
    'sort_tickets',
    'paginate',
    'list_tickets'
]
