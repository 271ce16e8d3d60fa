from __future__ import annotations

import math

import pytest

from inbox_features.domain import Message, Person, User
from inbox_features.errors import NotConfiguredError
from inbox_features.features import (
    And,
    Bias,
    FromManager,
    FromMe,
    HasAttachments,
    IsAutomatedSender,
    ReplyToMe,
    SingleSender,
    ToCcLine,
    ToLine,
)


def _value(feature, user, message) -> float:
    (pair,) = feature.compute(user, message)
    assert pair.bucket is feature.buckets[0]
    return pair.value


class TestBinaryFeatures:
    def test_single_bucket_named_after_feature(self) -> None:
        feature = ToLine()
        feature.configure()
        assert feature.feature_names == ["ToLine"]
        assert str(feature.buckets[0]) == "ToLine"

    def test_compute_before_configure_raises(self, user, make_message) -> None:
        with pytest.raises(NotConfiguredError):
            ToLine().compute(user, make_message())

    def test_bucket_is_present_when_false(self, user, make_message) -> None:
        feature = HasAttachments()
        feature.configure()
        assert _value(feature, user, make_message(has_attachments=True)) == 1.0
        assert _value(feature, user, make_message()) == 0.0

    def test_to_and_cc_lines(self, user, me, make_message) -> None:
        to_line, to_cc = ToLine(), ToCcLine()
        to_line.configure()
        to_cc.configure()
        cc_only = make_message(sent_to=(), copied_to=(me,))
        assert _value(to_line, user, cc_only) == 0.0
        assert _value(to_cc, user, cc_only) == 1.0
        assert _value(to_line, user, make_message()) == 1.0

    def test_from_me(self, user, me, alice, make_message) -> None:
        feature = FromMe()
        feature.configure()
        assert _value(feature, user, make_message(me)) == 1.0
        assert _value(feature, user, make_message(alice)) == 0.0

    def test_from_manager_never_fires(self, user, alice, make_message) -> None:
        feature = FromManager()
        feature.configure()
        assert _value(feature, user, make_message(alice)) == 0.0

    @pytest.mark.parametrize(
        ("sender", "expected"),
        [
            (Person(emails=("NoReply@shop.example",)), 1.0),
            (Person(name="Auto Mailer"), 1.0),
            (Person(name="Alice", emails=("alice@corp.com",)), 0.0),
        ],
    )
    def test_automated_sender(self, user, make_message, sender: Person, expected: float) -> None:
        feature = IsAutomatedSender()
        feature.configure()
        assert _value(feature, user, make_message(sender)) == expected

    def test_reply_to_me(self, user, me, alice, bob, make_message) -> None:
        feature = ReplyToMe()
        feature.configure()
        mine = make_message(me, sent_to=(Person(emails=("alice@corp.com",)),))
        assert _value(feature, user, make_message(alice, preceding=(mine,))) == 1.0
        assert _value(feature, user, make_message(bob, preceding=(mine,))) == 0.0
        assert _value(feature, user, make_message(alice)) == 0.0

    def test_and(self, user, make_message) -> None:
        feature = And(ToLine(), HasAttachments())
        assert feature.name == "ToLineAndHasAttachments"
        assert feature.count == 1
        assert _value(feature, user, make_message(has_attachments=True)) == 1.0
        assert _value(feature, user, make_message(sent_to=(), has_attachments=True)) == 0.0


class TestBias:
    def test_default_value(self, user, make_message) -> None:
        feature = Bias()
        feature.configure()
        assert feature.feature_names == ["Bias"]
        assert _value(feature, user, make_message()) == pytest.approx(-math.sqrt(10))

    def test_custom_value(self, user, make_message) -> None:
        feature = Bias(2.5)
        feature.configure()
        assert _value(feature, user, make_message()) == 2.5


class TestSingleSender:
    def _user(self, me: Person, alice: Person, bob: Person) -> User:
        def msg(i: int, sender: Person, **kwargs) -> Message:
            return Message(message_id=str(i), sender=sender, **kwargs)

        return User(
            user_id="u1",
            name="Owner",
            train_messages=(
                msg(1, alice, sent_to=(me,), is_replied_to=True),
                msg(2, alice, sent_to=(me,)),
                msg(3, Person(emails=("alice@corp.com",)), copied_to=(me,)),
                # Bob scores higher but was never replied to
                msg(4, bob, sent_to=(me,), copied_to=(me,)),
                msg(5, bob, sent_to=(me,), copied_to=(me,)),
                msg(6, me, sent_to=(alice,), copied_to=(me,), is_replied_to=True),
            ),
        )

    def test_picks_most_mixed_replied_sender(self, me, alice, bob, make_message) -> None:
        user = self._user(me, alice, bob)
        feature = SingleSender()
        assert feature.per_user
        feature.configure(user)
        assert feature.feature_names == ["Alice Smith"]
        assert _value(feature, user, make_message(Person(emails=("asmith@home.net",)))) == 1.0
        assert _value(feature, user, make_message(bob)) == 0.0

    def test_no_candidate_never_fires(self, bob, make_message) -> None:
        user = User(user_id="u2", train_messages=(Message(message_id="1", sender=bob),))
        feature = SingleSender()
        feature.configure(user)
        assert feature.count == 1
        assert _value(feature, user, make_message(bob)) == 0.0

    def test_configure_without_user_is_noop(self) -> None:
        feature = SingleSender()
        feature.configure()
        assert not feature.is_configured
