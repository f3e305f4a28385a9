"""
Unit tests for the ticket query engine.
"""

from datetime import datetime, timedelta, timezone

import pytest

from quickdesk.core.query import (
    Page, SortOrder, TicketFilters, filter_tickets, list_tickets, paginate, sort_tickets
)
from quickdesk.errors.exceptions import ValidationError
from quickdesk.models.ticket import Ticket, TicketPriority, TicketStatus


BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_ticket(ticket_id, subject="Subject", status=TicketStatus.OPEN, priority=TicketPriority.MEDIUM,
                category_id="C1", created_by_name="User One", description="Description",
                assigned_to=None, votes=0, created=0, updated=None) -> Ticket:
    return Ticket(
        ticket_id=ticket_id,
        subject=subject,
        description=description,
        status=status,
        priority=priority,
        category_id=category_id,
        category_name="Category",
        created_by="u1",
        created_by_name=created_by_name,
        created_at=BASE + timedelta(minutes=created),
        updated_at=BASE + timedelta(minutes=created if updated is None else updated),
        assigned_to=assigned_to,
        assigned_to_name=assigned_to and assigned_to.upper(),
        votes=votes,
        voted_by=[f"v{i}" for i in range(votes)]
    )


@pytest.fixture
def tickets():
    return [
        make_ticket("T1", subject="Login fails", status=TicketStatus.OPEN, priority=TicketPriority.HIGH,
                    category_id="C1", created=1, updated=10, votes=2),
        make_ticket("T2", subject="Invoice wrong", status=TicketStatus.RESOLVED,
                    priority=TicketPriority.CRITICAL, category_id="C2", created=2, updated=5,
                    assigned_to="a1", votes=5),
        make_ticket("T3", subject="Dark mode", status=TicketStatus.OPEN, priority=TicketPriority.LOW,
                    category_id="C3", created=3, updated=3, description="Please add login themes",
                    assigned_to="a2"),
        make_ticket("T4", subject="Crash", status=TicketStatus.OPEN, priority=TicketPriority.CRITICAL,
                    category_id="C1", created=4, updated=4, created_by_name="Login Larry", votes=1),
    ]


def ids(items):
    return [t.ticket_id for t in items]


class TestTicketFilters:

    def test_strings_are_coerced(self):
        filters = TicketFilters(status=["open"], priority="high")
        assert filters.status == {TicketStatus.OPEN}
        assert filters.priority == {TicketPriority.HIGH}

    def test_empty_values_are_absent(self):
        filters = TicketFilters(status=[], category=[], priority=set(), assigned_to=[], search="  ")
        assert filters.status is None
        assert filters.category is None
        assert filters.priority is None
        assert filters.assigned_to is None
        assert filters.search is None

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            TicketFilters(status=["pending"])
        assert exc_info.value.field == "status"


class TestFilterTickets:

    def test_no_filters_keeps_everything(self, tickets):
        assert ids(filter_tickets(tickets)) == ["T1", "T2", "T3", "T4"]
        assert ids(filter_tickets(tickets, TicketFilters())) == ["T1", "T2", "T3", "T4"]

    def test_criteria_are_anded(self, tickets):
        filters = TicketFilters(status={TicketStatus.OPEN},
                                priority={TicketPriority.HIGH, TicketPriority.CRITICAL})
        assert ids(filter_tickets(tickets, filters)) == ["T1", "T4"]

    def test_category_filter(self, tickets):
        assert ids(filter_tickets(tickets, TicketFilters(category=["C1"]))) == ["T1", "T4"]

    def test_assigned_to_only_matches_assigned(self, tickets):
        assert ids(filter_tickets(tickets, TicketFilters(assigned_to=["a1"]))) == ["T2"]
        assert ids(filter_tickets(tickets, TicketFilters(assigned_to=["nobody"]))) == []

    def test_search_matches_subject_description_and_creator(self, tickets):
        result = filter_tickets(tickets, TicketFilters(search="LOGIN"))
        assert ids(result) == ["T1", "T3", "T4"]

    def test_search_replaces_other_criteria(self, tickets):
        """A search term ignores status, category and priority given alongside it."""
        filters = TicketFilters(search="login", status=["resolved"], category=["C2"],
                                priority=["critical"], assigned_to=["a1"])
        assert ids(filter_tickets(tickets, filters)) == ["T1", "T3", "T4"]


class TestSortTickets:

    def test_recent(self, tickets):
        assert ids(sort_tickets(tickets, SortOrder.RECENT)) == ["T1", "T2", "T4", "T3"]

    def test_oldest(self, tickets):
        assert ids(sort_tickets(reversed(tickets), "oldest")) == ["T1", "T2", "T3", "T4"]

    def test_priority_is_stable(self, tickets):
        assert ids(sort_tickets(tickets, "priority")) == ["T2", "T4", "T1", "T3"]

    def test_votes(self, tickets):
        assert ids(sort_tickets(tickets, SortOrder.VOTES)) == ["T2", "T1", "T4", "T3"]

    def test_unknown_order(self, tickets):
        with pytest.raises(ValidationError):
            sort_tickets(tickets, "alphabetical")


class TestPaginate:

    def test_pages(self):
        items = list(range(25))

        first = paginate(items, 1, 10)
        last = paginate(items, 3, 10)

        assert first.items == list(range(10))
        assert first.total_items == 25
        assert first.total_pages == 3
        assert first.has_next and not first.has_previous
        assert last.items == [20, 21, 22, 23, 24]
        assert not last.has_next and last.has_previous

    def test_past_the_end_is_empty(self):
        page = paginate(list(range(5)), 4, 10)
        assert page.items == []
        assert page.total_pages == 1

    def test_empty_collection(self):
        assert paginate([], 1, 10) == Page(items=[], page=1, page_size=10, total_items=0, total_pages=0)

    @pytest.mark.parametrize("page,page_size", [(0, 10), (-1, 10), (1, 0)])
    def test_invalid_arguments(self, page, page_size):
        with pytest.raises(ValidationError):
            paginate([1, 2, 3], page, page_size)


class TestListTickets:

    def test_filter_sort_paginate(self, tickets):
        page = list_tickets(tickets, TicketFilters(status=["open"]), "votes", page=1, page_size=2)

        assert ids(page.items) == ["T1", "T4"]
        assert page.total_items == 3
        assert page.total_pages == 2
