"""Domain models for inbox-features.

This package is domain-only: people, messages and mailbox owners as the
encoders see them. Mail-store loading lives with the caller.
"""

from inbox_features.domain.contact import (
    UNKNOWN_PERSON,
    IdentityKey,
    Person,
    normalize_email,
    normalize_name,
)
from inbox_features.domain.message import Message, parse_words
from inbox_features.domain.user import User

__all__ = [
    "IdentityKey",
    "Message",
    "Person",
    "UNKNOWN_PERSON",
    "User",
    "normalize_email",
    "normalize_name",
    "parse_words",
]
