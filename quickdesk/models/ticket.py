"""
Ticket and reply data models for the helpdesk.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from quickdesk.models.user import UserRole


class TicketStatus(Enum):
    """Enumeration for ticket status values."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(Enum):
    """Enumeration for ticket priority values."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Sort rank, critical highest."""
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    TicketPriority.LOW: 1,
    TicketPriority.MEDIUM: 2,
    TicketPriority.HIGH: 3,
    TicketPriority.CRITICAL: 4,
}


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Accept either an ISO string or a datetime."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class TicketReply:
    """
    A single message in a ticket's reply thread.

    Replies are never edited or deleted once created. The author's name
    and role are captured when the reply is posted.

    Attributes:
        reply_id: Unique identifier for the reply
        ticket_id: ID of the parent ticket
        user_id: ID of the author
        user_name: Author display name at posting time
        user_role: Author role at posting time
        content: Message text
        created_at: Timestamp when the reply was posted
        is_internal: Staff-only note, hidden from end users
    """
    reply_id: str
    ticket_id: str
    user_id: str
    user_name: str
    user_role: UserRole
    content: str
    created_at: datetime
    is_internal: bool = False

    def to_dict(self) -> dict:
        """Convert reply to dictionary representation."""
        return {
            'reply_id': self.reply_id,
            'ticket_id': self.ticket_id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'user_role': self.user_role.value,
            'content': self.content,
            'created_at': self.created_at,
            'is_internal': self.is_internal
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TicketReply':
        """Create reply instance from dictionary representation."""
        return cls(
            reply_id=data['reply_id'],
            ticket_id=data['ticket_id'],
            user_id=data['user_id'],
            user_name=data['user_name'],
            user_role=UserRole(data['user_role']),
            content=data['content'],
            created_at=parse_datetime(data['created_at']),
            is_internal=data.get('is_internal', False)
        )


@dataclass
class Ticket:
    """
    Data model representing a support ticket.

    Category, creator and assignee names are denormalized at write time
    and are not refreshed when the referenced record changes.

    Attributes:
        ticket_id: Unique identifier for the ticket
        subject: Short summary, never empty
        description: Full problem description
        status: Current status of the ticket
        priority: Ticket priority
        category_id: Referenced category (may dangle after deletion)
        category_name: Category label captured at creation
        created_by: User ID of the ticket creator
        created_by_name: Creator display name
        created_at: Timestamp when ticket was created
        updated_at: Timestamp of the last mutation
        assigned_to: User ID of the assigned staff member (None if unassigned)
        assigned_to_name: Assignee display name
        votes: Number of votes, always equal to len(voted_by)
        voted_by: User IDs that currently vote for the ticket
        attachments: Attachment references
        replies: Reply thread in posting order
    """
    ticket_id: str
    subject: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    category_id: str
    category_name: str
    created_by: str
    created_by_name: str
    created_at: datetime
    updated_at: datetime
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    votes: int = 0
    voted_by: List[str] = None
    attachments: List[str] = None
    replies: List[TicketReply] = None

    def __post_init__(self):
        """Initialize default values for mutable fields."""
        if self.voted_by is None:
            self.voted_by = []
        if self.attachments is None:
            self.attachments = []
        if self.replies is None:
            self.replies = []

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None

    def copy(self, **changes) -> 'Ticket':
        """Return a new record with fresh lists and the given field changes."""
        fields = {
            'voted_by': list(self.voted_by),
            'attachments': list(self.attachments),
            'replies': list(self.replies),
        }
        fields.update(changes)
        return replace(self, **fields)

    def to_dict(self) -> dict:
        """Convert ticket to dictionary representation."""
        return {
            'ticket_id': self.ticket_id,
            'subject': self.subject,
            'description': self.description,
            'status': self.status.value,
            'priority': self.priority.value,
            'category_id': self.category_id,
            'category_name': self.category_name,
            'created_by': self.created_by,
            'created_by_name': self.created_by_name,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'assigned_to': self.assigned_to,
            'assigned_to_name': self.assigned_to_name,
            'votes': self.votes,
            'voted_by': list(self.voted_by),
            'attachments': list(self.attachments),
            'replies': [reply.to_dict() for reply in self.replies]
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Ticket':
        """Create ticket instance from dictionary representation."""
        return cls(
            ticket_id=data['ticket_id'],
            subject=data['subject'],
            description=data['description'],
            status=TicketStatus(data['status']),
            priority=TicketPriority(data['priority']),
            category_id=data['category_id'],
            category_name=data['category_name'],
            created_by=data['created_by'],
            created_by_name=data['created_by_name'],
            created_at=parse_datetime(data['created_at']),
            updated_at=parse_datetime(data['updated_at']),
            assigned_to=data.get('assigned_to'),
            assigned_to_name=data.get('assigned_to_name'),
            votes=data.get('votes', 0),
            voted_by=list(data.get('voted_by', [])),
            attachments=list(data.get('attachments') or []),
            replies=[TicketReply.from_dict(r) for r in data.get('replies') or []]
        )
