"""Mailbox owner model."""

from __future__ import annotations

from pydantic import Field

from inbox_features.domain.contact import FrozenModel, Person
from inbox_features.domain.message import Message


class User(FrozenModel):
    """The owner of a mailbox whose reply behaviour is being modelled.

    Per-user vocabularies are keyed by ``user_id``.
    """

    user_id: str = Field(min_length=1)
    name: str | None = None
    emails: tuple[str, ...] = ()
    contacts: tuple[Person, ...] | None = Field(
        default=None,
        description="Known contacts; derived from train_messages when omitted",
    )
    train_messages: tuple[Message, ...] = ()

    @property
    def key(self) -> str:
        return self.user_id

    def as_person(self) -> Person:
        return Person(name=self.name, emails=self.emails, is_me=True)

    @property
    def train_contacts(self) -> list[Person]:
        """Contacts to seed per-user vocabularies with.

        Explicit ``contacts`` win; otherwise the distinct senders of the
        training messages other than the owner, in first-seen order.
        """
        if self.contacts is not None:
            return list(self.contacts)
        seen: list[Person] = []
        for message in self.train_messages:
            sender = message.sender
            if sender.is_me or any(sender.shares_identity(p) for p in seen):
                continue
            seen.append(sender)
        return seen
