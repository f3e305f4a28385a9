"""Opaque record identifiers."""
import secrets
import string
from typing import Container

ID_ALPHABET = string.ascii_uppercase + string.digits
ID_LENGTH = 8
MAX_ID_ATTEMPTS = 5


def generate_id(length: int = ID_LENGTH) -> str:
    """
    Generate a random identifier.

    Returns:
        str: Identifier of ``length`` uppercase alphanumeric characters
    """
    return ''.join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_unique_id(existing: Container[str], length: int = ID_LENGTH) -> str:
    """
    Generate an identifier not present in ``existing``.

    Raises:
        RuntimeError: If no free identifier was found after a few attempts
    """
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = generate_id(length)
        if candidate not in existing:
            return candidate
    raise RuntimeError("Failed to generate unique identifier")
