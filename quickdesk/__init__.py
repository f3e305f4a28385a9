# QuickDesk helpdesk ticket store

__version__ = "1.0.0"
