"""Email message model consumed by the feature encoders."""

from __future__ import annotations

import re

from pydantic import Field

from inbox_features.domain.contact import FrozenModel, Person

# A subject prefix such as "RE:" or "Fwd:" ends in a colon within this many characters
MAX_PREFIX_COLON_POSITION = 5

_WORD_RE = re.compile(r"[\w']+")


def parse_words(text: str) -> list[str]:
    """Split text into lower-cased word tokens."""
    if not text:
        return []
    return _WORD_RE.findall(text.strip().lower())


class Message(FrozenModel):
    """A single email message.

    ``preceding`` holds the earlier messages of the same conversation, oldest
    first; it is empty for the first message of a thread.
    """

    message_id: str
    sender: Person
    sent_to: tuple[Person, ...] = ()
    copied_to: tuple[Person, ...] = ()
    subject: str = ""
    body: str = Field(default="", description="New (non-quoted) body text")
    has_attachments: bool = False
    is_read: bool = False
    is_replied_to: bool = False
    preceding: tuple[Message, ...] = ()

    @property
    def subject_prefix(self) -> str | None:
        if not self.subject:
            return None
        s = self.subject.strip().lower()
        k = s.find(":")
        if k < 0 or k > MAX_PREFIX_COLON_POSITION:
            return None
        return s[:k].strip()

    @property
    def subject_without_prefix(self) -> str:
        if not self.subject:
            return ""
        s = self.subject.strip()
        while True:
            k = s.find(":")
            if k < 0 or k > MAX_PREFIX_COLON_POSITION:
                return s
            s = s[k + 1 :].strip()

    @property
    def subject_words(self) -> list[str]:
        return parse_words(self.subject_without_prefix)

    @property
    def body_words(self) -> list[str]:
        return parse_words(self.body)

    @property
    def recipients(self) -> list[Person]:
        return [*self.sent_to, *self.copied_to]


Message.model_rebuild()
