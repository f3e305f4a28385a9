"""
Actor model supplied by the user directory.

The store never verifies credentials; it only consumes the
``{id, name, role}`` descriptor of an already authenticated user.
"""
from dataclasses import dataclass
from enum import Enum


class UserRole(Enum):
    """Enumeration for user role values."""
    END_USER = "end-user"
    SUPPORT_AGENT = "support-agent"
    ADMIN = "admin"


STAFF_ROLES = frozenset({UserRole.SUPPORT_AGENT, UserRole.ADMIN})


@dataclass(frozen=True)
class Actor:
    """
    Authenticated caller of a helpdesk operation.

    Attributes:
        id: User directory ID
        name: Display name, cached on records the actor writes
        role: Role at the time of the call
    """
    id: str
    name: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'role': self.role.value}

    @classmethod
    def from_dict(cls, data: dict) -> 'Actor':
        return cls(id=data['id'], name=data['name'], role=UserRole(data['role']))
