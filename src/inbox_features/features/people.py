"""Dynamic-vocabulary (M-of-N) features keyed by who sent or received a message.

These features are per-user: each user has an identity table mapping
normalized names and email aliases to buckets. ``configure(user)`` seeds the
user's table with the always-present identities (the unknown person sentinel
and the user), followed by the user's known contacts. Table entries are never
removed, so configuring again only adds contacts not seen before and a table
rebuilt from the stored bucket payloads resolves exactly like the live one.

Resolution for a person is: the normalized display name, then each email alias
in order. On a total miss a new bucket is appended to the feature and
registered under every key of that person that is not already taken. A person
with no usable key resolves to the unknown-person bucket. All dynamic kinds
share this single policy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import ClassVar

from inbox_features.domain import UNKNOWN_PERSON, Message, Person, User
from inbox_features.features.base import CategoricalFeature, Feature
from inbox_features.features.bucket import FeatureBucket, FeatureBucketValuePair, IdentityPayload
from inbox_features.features.vocabulary import PerUserVocabulary

logger = logging.getLogger(__name__)


class IdentityFeature(Feature):
    """Base for features whose buckets are people, grown on first sight."""

    grows_vocabulary = True

    # one vocabulary per scope; the bucket name gets the scope's suffix
    scopes: ClassVar[dict[str, str]] = {"": ""}

    def __init__(self, *, description: str, string_format: str = "{0}") -> None:
        super().__init__(description=description, string_format=string_format, is_shared=False)
        self.vocabularies: dict[str, PerUserVocabulary] = {
            scope: PerUserVocabulary() for scope in self.scopes
        }

    @property
    def per_user(self) -> bool:
        return True

    def is_configured_for(self, user: User) -> bool:
        return all(user.key in vocabulary for vocabulary in self.vocabularies.values())

    def configure(self, user: User | None = None) -> None:
        """Seed ``user``'s identity tables; without a user this is a no-op."""
        if user is None:
            return
        contacts = user.train_contacts
        with self._lock:
            self._seed(user, contacts)
        logger.debug(
            "Configured %s for user %s with %d contacts (%d buckets)",
            self.name,
            user.key,
            len(contacts),
            self.count,
        )

    def _seed(self, user: User, contacts: Iterable[Person]) -> None:
        for person in [UNKNOWN_PERSON, user.as_person(), *contacts]:
            for scope in self.scopes:
                self._resolve_or_allocate_locked(user.key, person, scope)

    def _ensure_user(self, user: User) -> None:
        """Seed the always-present identities for a user never configured."""
        if self.is_configured_for(user):
            return
        logger.debug("Seeding %s for unconfigured user %s", self.name, user.key)
        self._seed(user, ())

    def resolve_or_allocate(self, user: User, person: Person, scope: str = "") -> FeatureBucket:
        """Return ``person``'s bucket for ``user``, appending a new one on a miss."""
        with self._lock:
            self._ensure_user(user)
            return self._resolve_or_allocate_locked(user.key, person, scope)

    def unknown_bucket(self, user: User, scope: str = "") -> FeatureBucket:
        return self.resolve_or_allocate(user, UNKNOWN_PERSON, scope)

    def _resolve_or_allocate_locked(self, user_key: str, person: Person, scope: str) -> FeatureBucket:
        vocabulary = self.vocabularies[scope]
        keys = person.identity_keys() or UNKNOWN_PERSON.identity_keys()
        bucket = vocabulary.resolve(user_key, keys)
        if bucket is not None:
            return bucket
        claimed = vocabulary.unclaimed_keys(user_key, keys)
        label = person.display_name if person.identity_keys() else UNKNOWN_PERSON.display_name
        bucket = self._append_bucket(
            label + self.scopes[scope],
            IdentityPayload(user=user_key, keys=claimed, scope=scope),
        )
        vocabulary.register(user_key, claimed, bucket)
        logger.debug(
            "%s: new bucket %d %r for user %s", self.name, bucket.index, bucket.name, user_key
        )
        return bucket

    def _rebuild_indexes(self) -> None:
        for scope, vocabulary in self.vocabularies.items():
            vocabulary.rebuild(self.buckets, scope=scope)


class Sender(IdentityFeature, CategoricalFeature):
    def __init__(self) -> None:
        super().__init__(description="Who the message is from")

    def select_bucket(self, user: User, message: Message) -> FeatureBucket:
        return self.resolve_or_allocate(user, message.sender)


class Recipient(IdentityFeature):
    """Who the message is to.

    Every recipient on the To and Cc lines contributes weight ``1/k`` for
    ``k`` recipients, so the weights of one message always sum to 1.0.
    Recipients resolving to the same bucket are merged into one pair. A
    message with no recipients activates the unknown-person bucket.
    """

    def __init__(self) -> None:
        super().__init__(description="Who the message is to")

    def compute(self, user: User, message: Message) -> list[FeatureBucketValuePair]:
        recipients = message.recipients
        if not recipients:
            return [FeatureBucketValuePair(self.unknown_bucket(user), 1.0)]
        counts: dict[FeatureBucket, int] = {}
        for person in recipients:
            bucket = self.resolve_or_allocate(user, person)
            counts[bucket] = counts.get(bucket, 0) + 1
        k = len(recipients)
        return [FeatureBucketValuePair(bucket, n / k) for bucket, n in counts.items()]


class SenderToCc(IdentityFeature, CategoricalFeature):
    """Who the message is from, split by whether the owner is on the To line.

    Messages with the owner on the To line resolve in the ``to`` vocabulary;
    all others resolve in the ``cc`` vocabulary, whose bucket names carry a
    ``(Cc)`` suffix.
    """

    scopes = {"to": "", "cc": "(Cc)"}

    def __init__(self) -> None:
        super().__init__(description="Who the message is from (To or Cc)")

    def select_bucket(self, user: User, message: Message) -> FeatureBucket:
        scope = "to" if any(p.is_me for p in message.sent_to) else "cc"
        return self.resolve_or_allocate(user, message.sender, scope)

    def unknown_bucket(self, user: User, scope: str = "to") -> FeatureBucket:
        return super().unknown_bucket(user, scope)
