"""
Category data model for the helpdesk taxonomy.
"""
from dataclasses import dataclass
from datetime import datetime

from quickdesk.models.ticket import parse_datetime


@dataclass(frozen=True)
class Category:
    """
    A ticket category.

    Names are expected to be unique by convention only. Categories are
    created and deleted, never edited.
    """
    category_id: str
    name: str
    description: str
    color: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            'category_id': self.category_id,
            'name': self.name,
            'description': self.description,
            'color': self.color,
            'created_at': self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Category':
        return cls(
            category_id=data['category_id'],
            name=data['name'],
            description=data.get('description', ''),
            color=data.get('color', ''),
            created_at=parse_datetime(data['created_at'])
        )
