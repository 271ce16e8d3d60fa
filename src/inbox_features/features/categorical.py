"""Fixed-vocabulary (one-of-N) categorical features.

The vocabulary is an ordered list of categories given at construction. Each
category is a tuple of strings whose first entry is the bucket name; the whole
tuple is kept as the bucket payload so that matchers can test aliases (for
example the ``("fw", "fwd")`` subject prefix group). An optional ``Other``
bucket is appended last.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from enum import IntEnum

from inbox_features.domain import Message, User
from inbox_features.features.base import CategoricalFeature
from inbox_features.features.binary import FromManager, ToLine
from inbox_features.features.bucket import FeatureBucket
from inbox_features.features.config import DEFAULT_FEATURE_CONFIG, FeatureConfig

OTHER = "Other"


def _as_category(entry: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(entry, str):
        return (entry,)
    category = tuple(entry)
    if not category:
        raise ValueError("Category must have at least one name")
    return category


class OneOfNFeature(CategoricalFeature):
    def __init__(
        self,
        categories: Sequence[str | Sequence[str]],
        *,
        include_other: bool = False,
        description: str = "",
        string_format: str = "{0}",
        is_shared: bool = True,
        name: str | None = None,
    ) -> None:
        super().__init__(
            description=description, string_format=string_format, is_shared=is_shared, name=name
        )
        self.categories = tuple(_as_category(c) for c in categories)
        self.include_other = include_other

    def configure(self, user: User | None = None) -> None:
        buckets = [self._make_bucket(i, c[0], c) for i, c in enumerate(self.categories)]
        if self.include_other:
            buckets.append(self._make_bucket(len(buckets), OTHER))
        with self._lock:
            self.buckets = buckets

    def select_bucket(self, user: User, message: Message) -> FeatureBucket:
        self._require_configured()
        return self.match(user, message)

    @abstractmethod
    def match(self, user: User, message: Message) -> FeatureBucket:
        """First-match search over the configured buckets."""

    def bucket_named(self, name: str) -> FeatureBucket:
        for bucket in self.buckets:
            if bucket.name == name:
                return bucket
        raise KeyError(name)

    def _rebuild_indexes(self) -> None:
        self.categories = tuple(b.payload for b in self.buckets if isinstance(b.payload, tuple))
        self.include_other = bool(self.buckets) and self.buckets[-1].payload is None


class SubjectPrefix(OneOfNFeature):
    """Subject prefix: bucket 0 is "no prefix", then prefix groups, then Other."""

    def __init__(
        self, prefixes: Sequence[Sequence[str]] = DEFAULT_FEATURE_CONFIG.subject_prefixes
    ) -> None:
        super().__init__(prefixes, include_other=True, description="Subject starts with <{0}>")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> SubjectPrefix:
        return cls(config.subject_prefixes)

    def match(self, user: User, message: Message) -> FeatureBucket:
        prefix = message.subject_prefix
        if not prefix:
            return self.buckets[0]
        # first matching group wins
        for bucket in self.buckets[1:-1]:
            if prefix in bucket.payload:
                return bucket
        return self.buckets[-1]

    def __str__(self) -> str:
        names = ", ".join(self.feature_names[1:]) if self.buckets else "..."
        return self.description.format(names)


class ToCcNeither(OneOfNFeature):
    def __init__(self) -> None:
        super().__init__(("Neither", "To", "Cc"), description="You are on the To or Cc lines")

    def match(self, user: User, message: Message) -> FeatureBucket:
        if any(p.is_me for p in message.sent_to):
            return self.buckets[1]
        if any(p.is_me for p in message.copied_to):
            return self.buckets[2]
        return self.buckets[0]


class Position(IntEnum):
    PART_OF_LIST = 0
    FIRST_IN_TO_LINE = 1
    SECOND_IN_TO_LINE = 2
    THIRD_OR_MORE_IN_TO_LINE = 3
    FIRST_IN_CC_LINE = 4
    NOT_FIRST_IN_CC_LINE = 5


def get_position(message: Message) -> Position:
    """The owner's position on the To/Cc lines; a Cc placement overrides To."""
    position = Position.PART_OF_LIST
    for i, person in enumerate(message.sent_to):
        if person.is_me:
            if i == 0:
                position = Position.FIRST_IN_TO_LINE
            elif i == 1:
                position = Position.SECOND_IN_TO_LINE
            else:
                position = Position.THIRD_OR_MORE_IN_TO_LINE
            break
    for i, person in enumerate(message.copied_to):
        if person.is_me:
            position = Position.FIRST_IN_CC_LINE if i == 0 else Position.NOT_FIRST_IN_CC_LINE
            break
    return position


class ToCcPosition(OneOfNFeature):
    def __init__(self, positions: Sequence[str] = DEFAULT_FEATURE_CONFIG.positions) -> None:
        if len(positions) != len(Position):
            raise ValueError(f"ToCcPosition needs {len(Position)} position labels, got {len(positions)}")
        super().__init__(positions, description="Your position on the To or Cc lines")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> ToCcPosition:
        return cls(config.positions)

    def match(self, user: User, message: Message) -> FeatureBucket:
        return self.buckets[int(get_position(message))]


class PreviousUnread(OneOfNFeature):
    """Unread messages earlier in the conversation that were not sent by the owner.

    Buckets: no earlier messages, then 0, 1, 2, ... unread, the last bucket
    absorbing every larger count.
    """

    def __init__(self, labels: Sequence[str] = DEFAULT_FEATURE_CONFIG.previous_unread) -> None:
        if len(labels) < 3:
            raise ValueError("PreviousUnread needs at least three labels")
        super().__init__(labels, description="The number of unread messages prior to this one")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> PreviousUnread:
        return cls(config.previous_unread)

    def match(self, user: User, message: Message) -> FeatureBucket:
        if not message.preceding:
            return self.buckets[0]
        unread = sum(1 for m in message.preceding if not m.sender.is_me and not m.is_read)
        if unread < self.count - 2:
            return self.buckets[unread + 1]
        return self.buckets[-1]


class ToLineAndFromManager(OneOfNFeature):
    """Fixed four-cell product of the ToLine and FromManager flags."""

    def __init__(self) -> None:
        super().__init__(
            ("False, False", "False, True", "True, False", "True, True"),
            description="On the To line, and from your manager",
        )
        self.feature1 = ToLine()
        self.feature2 = FromManager()

    def match(self, user: User, message: Message) -> FeatureBucket:
        b1 = self.feature1.compute_flag(message)
        b2 = self.feature2.compute_flag(message)
        return self.buckets[2 * int(b1) + int(b2)]
