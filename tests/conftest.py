from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from inbox_features.domain import Message, Person, User


@pytest.fixture
def me() -> Person:
    return Person(name="Owner", emails=("owner@corp.com",), is_me=True)


@pytest.fixture
def alice() -> Person:
    return Person(name="Alice Smith", emails=("alice@corp.com", "asmith@home.net"))


@pytest.fixture
def bob() -> Person:
    return Person(name="Bob Jones", emails=("bob@corp.com",))


@pytest.fixture
def user(alice: Person) -> User:
    return User(user_id="u1", name="Owner", emails=("owner@corp.com",), contacts=(alice,))


@pytest.fixture
def make_message(me: Person) -> Callable[..., Message]:
    counter = iter(range(1, 10_000))

    def _make(sender: Person | None = None, **kwargs: Any) -> Message:
        kwargs.setdefault("message_id", f"m{next(counter)}")
        kwargs.setdefault("sent_to", (me,))
        return Message(sender=sender or Person(name="Someone"), **kwargs)

    return _make
