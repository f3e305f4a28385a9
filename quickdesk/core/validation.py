"""
Input coercion shared by the store, the query engine and the facade.
"""
from enum import Enum
from typing import Iterable, Optional, Set, Type, TypeVar, Union

from quickdesk.errors.exceptions import ValidationError
from quickdesk.models.ticket import TicketPriority, TicketStatus

E = TypeVar('E', bound=Enum)


def coerce_enum(enum_type: Type[E], value: Union[E, str], field: str) -> E:
    """
    Accept an enum member or its string value.

    Raises:
        ValidationError: If the value is not a member of ``enum_type``
    """
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(
            f"Invalid {field}: {value!r}. Must be one of: {allowed}",
            field=field,
            value=value
        )


def coerce_status(value: Union[TicketStatus, str]) -> TicketStatus:
    return coerce_enum(TicketStatus, value, 'status')


def coerce_priority(value: Union[TicketPriority, str]) -> TicketPriority:
    return coerce_enum(TicketPriority, value, 'priority')


def coerce_enum_set(enum_type: Type[E], values: Optional[Iterable[Union[E, str]]],
                    field: str) -> Optional[Set[E]]:
    """Coerce an optional collection of enum values; empty collections become None."""
    if not values:
        return None
    if isinstance(values, (str, Enum)):
        values = [values]
    return {coerce_enum(enum_type, value, field) for value in values}


def require_text(value: Optional[str], field: str) -> str:
    """
    Reject missing or blank text.

    Returns:
        str: The value stripped of surrounding whitespace
    """
    if value is None or not str(value).strip():
        raise ValidationError(
            f"{field} must not be empty",
            field=field,
            value=value,
            user_message=f"Please provide a {field.replace('_', ' ')}."
        )
    return str(value).strip()
