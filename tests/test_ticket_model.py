"""
Unit tests for the ticket, reply, category and actor models.
"""

from datetime import datetime, timezone

import pytest

from quickdesk.models.category import Category
from quickdesk.models.ticket import Ticket, TicketReply, TicketStatus, TicketPriority, parse_datetime
from quickdesk.models.user import Actor, UserRole, STAFF_ROLES


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_ticket(**overrides) -> Ticket:
    fields = dict(
        ticket_id="T1",
        subject="Login fails",
        description="Cannot log in since the update",
        status=TicketStatus.OPEN,
        priority=TicketPriority.HIGH,
        category_id="C1",
        category_name="Billing",
        created_by="u1",
        created_by_name="User One",
        created_at=NOW,
        updated_at=NOW
    )
    fields.update(overrides)
    return Ticket(**fields)


class TestTicketEnums:
    """Test status and priority enumerations."""

    def test_status_values(self):
        assert [s.value for s in TicketStatus] == ["open", "in-progress", "resolved", "closed"]

    def test_priority_ranks(self):
        """Critical outranks high, which outranks medium and low."""
        assert TicketPriority.CRITICAL.rank == 4
        assert TicketPriority.HIGH.rank == 3
        assert TicketPriority.MEDIUM.rank == 2
        assert TicketPriority.LOW.rank == 1


class TestTicket:
    """Test cases for the Ticket dataclass."""

    def test_defaults(self):
        ticket = make_ticket()

        assert ticket.votes == 0
        assert ticket.voted_by == []
        assert ticket.attachments == []
        assert ticket.replies == []
        assert ticket.assigned_to is None
        assert not ticket.is_assigned

    def test_copy_has_independent_lists(self):
        ticket = make_ticket(voted_by=["u2"], votes=1)
        clone = ticket.copy()

        clone.voted_by.append("u3")

        assert ticket.voted_by == ["u2"]
        assert clone == make_ticket(voted_by=["u2", "u3"], votes=1)

    def test_copy_with_changes(self):
        ticket = make_ticket()
        changed = ticket.copy(status=TicketStatus.RESOLVED)

        assert changed.status == TicketStatus.RESOLVED
        assert ticket.status == TicketStatus.OPEN

    def test_dict_round_trip_with_replies(self):
        reply = TicketReply(
            reply_id="R1", ticket_id="T1", user_id="a1", user_name="Agent One",
            user_role=UserRole.SUPPORT_AGENT, content="Looking into it",
            created_at=NOW, is_internal=True
        )
        ticket = make_ticket(replies=[reply], attachments=["screenshot.png"])

        data = ticket.to_dict()
        assert data['status'] == "open"
        assert data['priority'] == "high"
        assert data['replies'][0]['user_role'] == "support-agent"

        assert Ticket.from_dict(data) == ticket

    def test_from_dict_parses_iso_timestamps(self):
        data = make_ticket().to_dict()
        data['created_at'] = NOW.isoformat()
        data['updated_at'] = NOW.isoformat()

        ticket = Ticket.from_dict(data)

        assert ticket.created_at == NOW
        assert ticket.updated_at == NOW


class TestParseDatetime:

    def test_passthrough(self):
        assert parse_datetime(NOW) is NOW
        assert parse_datetime(None) is None

    def test_iso_string(self):
        assert parse_datetime("2024-03-01T12:00:00+00:00") == NOW


class TestCategory:

    def test_round_trip(self):
        category = Category("C1", "Billing", "Invoices", "#10B981", NOW)
        assert Category.from_dict(category.to_dict()) == category

    def test_optional_fields_default_to_empty(self):
        category = Category.from_dict({'category_id': "C1", 'name': "Billing", 'created_at': NOW})
        assert category.description == ""
        assert category.color == ""


class TestActor:

    def test_staff_roles(self):
        assert STAFF_ROLES == {UserRole.SUPPORT_AGENT, UserRole.ADMIN}

    @pytest.mark.parametrize("role,is_staff,is_admin", [
        (UserRole.END_USER, False, False),
        (UserRole.SUPPORT_AGENT, True, False),
        (UserRole.ADMIN, True, True),
    ])
    def test_role_checks(self, role, is_staff, is_admin):
        actor = Actor(id="x", name="X", role=role)
        assert actor.is_staff is is_staff
        assert actor.is_admin is is_admin

    def test_from_dict(self):
        actor = Actor.from_dict({'id': "a1", 'name': "Agent One", 'role': "support-agent"})
        assert actor == Actor("a1", "Agent One", UserRole.SUPPORT_AGENT)
        assert actor.to_dict()['role'] == "support-agent"
