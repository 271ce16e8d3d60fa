from __future__ import annotations

import pytest
from pydantic import ValidationError

from inbox_features.domain import UNKNOWN_PERSON, Person, normalize_email, normalize_name


class TestNormalization:
    def test_name_drops_parenthetical_suffix(self) -> None:
        assert normalize_name("Bob Jones (HR)") == "bob jones"
        assert normalize_name("  Bob Jones ") == "bob jones"

    def test_leading_parenthesis_is_kept(self) -> None:
        assert normalize_name("(ext) Bob") == "(ext) bob"

    def test_email_is_trimmed_and_lowered(self) -> None:
        assert normalize_email(" Bob@Corp.COM ") == "bob@corp.com"


class TestPerson:
    def test_identity_keys_name_first_without_duplicates(self) -> None:
        person = Person(name="Alice (Sales)", emails=("ALICE@corp.com", "alice@corp.com", "a@home.net"))
        assert person.identity_keys() == ["alice", "alice@corp.com", "a@home.net"]

    def test_blank_name_has_no_name_key(self) -> None:
        person = Person(name="   ", emails=("x@y.z",))
        assert person.name_key() is None
        assert person.identity_keys() == ["x@y.z"]

    def test_keyless_person(self) -> None:
        assert Person().identity_keys() == []
        assert Person().display_name == "Unknown"

    def test_display_name(self) -> None:
        assert Person(name="Alice", is_me=True).display_name == "Me"
        assert Person(name=" Alice ").display_name == "Alice"
        assert Person(emails=("a@b.c",)).display_name == "a@b.c"

    def test_single_email_string_is_accepted(self) -> None:
        person = Person.model_validate({"name": "Alice", "emails": "alice@corp.com"})
        assert person.emails == ("alice@corp.com",)
        assert person.email == "alice@corp.com"

    def test_shares_identity_through_alias(self) -> None:
        a = Person(name="Alice Smith", emails=("alice@corp.com",))
        b = Person(emails=("Alice@Corp.com",))
        assert a.shares_identity(b)
        assert not a.shares_identity(Person(name="Bob"))

    def test_frozen_and_strict(self) -> None:
        person = Person(name="Alice")
        with pytest.raises(ValidationError):
            person.name = "Bob"  # type: ignore[misc]
        with pytest.raises(ValidationError):
            Person.model_validate({"name": "Alice", "phone": "123"})

    def test_unknown_sentinel(self) -> None:
        assert UNKNOWN_PERSON.display_name == "Unknown"
        assert UNKNOWN_PERSON.identity_keys() == ["unknown"]
