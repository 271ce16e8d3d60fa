"""People and identity keys.

This module provides:
- IdentityKey: normalized lookup string for a name or email alias
- normalize_name / normalize_email: the two normalization rules
- Person: a contact with a display name and zero or more email aliases
- UNKNOWN_PERSON: sentinel contact for senders with no usable identity
"""

from __future__ import annotations

from typing import NewType

from pydantic import BaseModel, ConfigDict, Field, field_validator

IdentityKey = NewType("IdentityKey", str)

UNKNOWN_LABEL = "Unknown"
ME_LABEL = "Me"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def normalize_name(name: str) -> IdentityKey:
    """Lower-case a display name and drop any trailing parenthetical.

    ``"Bob Jones (HR)"`` and ``"bob jones"`` normalize to the same key.
    """
    s = name.lower()
    k = s.find("(")
    if k > 0:
        s = s[:k].rstrip()
    return IdentityKey(s.strip())


def normalize_email(address: str) -> IdentityKey:
    return IdentityKey(address.strip().lower())


class Person(FrozenModel):
    """A contact as seen on a message header.

    One person can be reached by several identity keys: the normalized
    display name plus each normalized email alias.
    """

    name: str | None = Field(default=None, description="Display name, if known")
    emails: tuple[str, ...] = Field(default=(), description="Known email aliases")
    is_me: bool = Field(default=False, description="True for the mailbox owner")

    @field_validator("emails", mode="before")
    @classmethod
    def _coerce_emails(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        if isinstance(value, list):
            return tuple(value)
        return value

    @property
    def email(self) -> str | None:
        """Primary (first) email alias."""
        return self.emails[0] if self.emails else None

    @property
    def display_name(self) -> str:
        if self.is_me:
            return ME_LABEL
        if self.name and self.name.strip():
            return self.name.strip()
        if self.email:
            return self.email.strip()
        return UNKNOWN_LABEL

    def name_key(self) -> IdentityKey | None:
        if not self.name or not self.name.strip():
            return None
        key = normalize_name(self.name)
        return key or None

    def email_keys(self) -> list[IdentityKey]:
        keys: list[IdentityKey] = []
        for address in self.emails:
            key = normalize_email(address)
            if key and key not in keys:
                keys.append(key)
        return keys

    def identity_keys(self) -> list[IdentityKey]:
        """All lookup keys, name first, then aliases, without duplicates."""
        keys: list[IdentityKey] = []
        name_key = self.name_key()
        if name_key is not None:
            keys.append(name_key)
        for key in self.email_keys():
            if key not in keys:
                keys.append(key)
        return keys

    def shares_identity(self, other: Person) -> bool:
        return bool(set(self.identity_keys()) & set(other.identity_keys()))


UNKNOWN_PERSON = Person(name=UNKNOWN_LABEL, emails=(UNKNOWN_LABEL.lower(),))
