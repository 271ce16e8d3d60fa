"""Binary features and the constant bias.

A binary feature has exactly one bucket, named after the feature. ``compute``
always emits that bucket, weighted 1.0 when the predicate holds and 0.0 when
it does not, so the coordinate is present in every vector.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Sequence

from inbox_features.domain import Message, Person, User
from inbox_features.features.base import Feature
from inbox_features.features.bucket import FeatureBucketValuePair
from inbox_features.features.config import DEFAULT_FEATURE_CONFIG, FeatureConfig

logger = logging.getLogger(__name__)


class BinaryFeature(Feature):
    @abstractmethod
    def compute_flag(self, message: Message) -> bool:
        """Evaluate the predicate for ``message``."""

    def configure(self, user: User | None = None) -> None:
        with self._lock:
            self.buckets = [self._make_bucket(0, self.name)]

    def compute(self, user: User, message: Message) -> list[FeatureBucketValuePair]:
        self._require_configured()
        value = 1.0 if self.compute_flag(message) else 0.0
        return [FeatureBucketValuePair(self.buckets[0], value)]


class FromMe(BinaryFeature):
    def __init__(self) -> None:
        super().__init__(description="Whether the message is from you")

    def compute_flag(self, message: Message) -> bool:
        return message.sender.is_me


class ToLine(BinaryFeature):
    def __init__(self) -> None:
        super().__init__(description="Whether or not you are on the To line")

    def compute_flag(self, message: Message) -> bool:
        return any(p.is_me for p in message.sent_to)


class ToCcLine(BinaryFeature):
    def __init__(self) -> None:
        super().__init__(description="Whether or not you are on the To line or Cc line")

    def compute_flag(self, message: Message) -> bool:
        return any(p.is_me for p in message.sent_to) or any(p.is_me for p in message.copied_to)


class FromManager(BinaryFeature):
    """Whether the sender manages the mailbox owner.

    No organisation chart is available to the encoders, so this never fires.
    """

    def __init__(self) -> None:
        super().__init__(description="Whether the message is from your manager")

    def compute_flag(self, message: Message) -> bool:
        return False


class HasAttachments(BinaryFeature):
    def __init__(self) -> None:
        super().__init__(description="Whether the message has attachments")

    def compute_flag(self, message: Message) -> bool:
        return message.has_attachments


class IsAutomatedSender(BinaryFeature):
    def __init__(self, markers: Sequence[str] = DEFAULT_FEATURE_CONFIG.automated_sender_markers) -> None:
        super().__init__(description="Whether the message appears to be from an automated sender")
        self.markers = tuple(m.lower() for m in markers)

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> IsAutomatedSender:
        return cls(config.automated_sender_markers)

    def compute_flag(self, message: Message) -> bool:
        sender = message.sender
        texts = [(sender.email or "").lower(), (sender.name or "").lower()]
        return any(marker in text for text in texts for marker in self.markers)


class ReplyToMe(BinaryFeature):
    def __init__(self) -> None:
        super().__init__(description="Whether this message is a reply to an earlier message from you")

    def compute_flag(self, message: Message) -> bool:
        if message.sender.is_me:
            return False
        return any(
            earlier.sender.is_me and any(r.shares_identity(message.sender) for r in earlier.recipients)
            for earlier in message.preceding
        )


class And(BinaryFeature):
    """Logical AND of two binary features."""

    def __init__(self, feature1: BinaryFeature, feature2: BinaryFeature) -> None:
        super().__init__(
            description=f"{feature1.description} AND {feature2.description}",
            name=f"{feature1.name}And{feature2.name}",
        )
        self.feature1 = feature1
        self.feature2 = feature2
        self.configure()

    def configure(self, user: User | None = None) -> None:
        with self._lock:
            self.feature1.configure(user)
            self.feature2.configure(user)
            self.buckets = [self._make_bucket(0, self.name)]

    def compute_flag(self, message: Message) -> bool:
        return self.feature1.compute_flag(message) and self.feature2.compute_flag(message)


class SingleSender(BinaryFeature):
    """Whether the message is from one particular sender chosen per user.

    ``configure(user)`` picks, among senders of the user's training messages
    who have been replied to at least once, the one maximising
    (messages with the owner on To) x (messages with the owner on Cc).
    """

    def __init__(self) -> None:
        super().__init__(description="The message is from")
        self._target_keys: frozenset[str] = frozenset()

    @property
    def per_user(self) -> bool:
        return True

    def configure(self, user: User | None = None) -> None:
        if user is None:
            return
        target = _pick_single_sender(user)
        with self._lock:
            self._target_keys = frozenset(target.identity_keys()) if target else frozenset()
            if target is None:
                logger.warning("No replied-to sender found for user %s", user.key)
                self.buckets = [self._make_bucket(0, self.name, ())]
            else:
                self.buckets = [
                    self._make_bucket(0, target.display_name, tuple(target.identity_keys()))
                ]

    def _rebuild_indexes(self) -> None:
        keys = self.buckets[0].payload if self.buckets else None
        self._target_keys = frozenset(keys) if isinstance(keys, tuple) else frozenset()

    def compute_flag(self, message: Message) -> bool:
        return bool(self._target_keys.intersection(message.sender.identity_keys()))


def _pick_single_sender(user: User) -> Person | None:
    groups: list[tuple[Person, list[Message]]] = []
    for message in user.train_messages:
        sender = message.sender
        for person, messages in groups:
            if person.shares_identity(sender):
                messages.append(message)
                break
        else:
            groups.append((sender, [message]))

    best: Person | None = None
    best_score = -1
    for person, messages in groups:
        if person.is_me or not any(m.is_replied_to for m in messages):
            continue
        to_count = sum(1 for m in messages if any(p.is_me for p in m.sent_to))
        cc_count = sum(1 for m in messages if any(p.is_me for p in m.copied_to))
        score = to_count * cc_count
        if score > best_score:
            best, best_score = person, score
    return best


class Bias(Feature):
    """Shared constant feature; its single bucket carries the bias value."""

    def __init__(self, value: float = DEFAULT_FEATURE_CONFIG.bias_value) -> None:
        super().__init__(description="Bias", is_shared=True)
        self.value = float(value)

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> Bias:
        return cls(config.bias_value)

    def configure(self, user: User | None = None) -> None:
        with self._lock:
            self.buckets = [self._make_bucket(0, "Bias", self.value)]

    def _rebuild_indexes(self) -> None:
        if self.buckets and isinstance(self.buckets[0].payload, float):
            self.value = self.buckets[0].payload

    def compute(self, user: User, message: Message) -> list[FeatureBucketValuePair]:
        self._require_configured()
        bucket = self.buckets[0]
        return [FeatureBucketValuePair(bucket, float(bucket.payload))]
