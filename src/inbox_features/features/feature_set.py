"""Named collections of features and sparse vector assembly.

A feature set concatenates its features' buckets into one coordinate space:
feature ``k`` occupies indices ``offset[k] .. offset[k] + count_k - 1``. The
offsets depend on the current bucket counts, so a vector's indices are only
meaningful together with the vocabulary state it was computed against.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from inbox_features.domain import Message, User
from inbox_features.errors import FeatureMismatchError, StateFormatError
from inbox_features.features.base import Feature
from inbox_features.features.binary import (
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
from inbox_features.features.bucket import FeatureBucket, FeatureBucketValuePair
from inbox_features.features.categorical import (
    PreviousUnread,
    SubjectPrefix,
    ToCcNeither,
    ToCcPosition,
    ToLineAndFromManager,
)
from inbox_features.features.compound import SenderAndPosition
from inbox_features.features.config import DEFAULT_FEATURE_CONFIG, FeatureConfig
from inbox_features.features.numeric import BodyLength, BodyWordCount, SubjectLength, SubjectWordCount
from inbox_features.features.people import Recipient, Sender, SenderToCc
from inbox_features.features.state import FeatureSetState

logger = logging.getLogger(__name__)


class FeatureSetType(str, Enum):
    SINGLE = "Single"
    SEPARATE = "Separate"
    COMPOUND = "Compound"
    INITIAL = "Initial"
    WITH_SUBJECT_PREFIX = "WithSubjectPrefix"
    WITH_RECIPIENT = "WithRecipient"
    WITH_RECIPIENT2 = "WithRecipient2"
    COMBINED = "Combined"


_INITIAL: tuple[type[Feature], ...] = (
    FromMe,
    ToCcPosition,
    HasAttachments,
    BodyLength,
    SubjectLength,
    Sender,
)

FEATURE_SETS: dict[FeatureSetType, tuple[type[Feature], ...]] = {
    FeatureSetType.SINGLE: (ToLine,),
    FeatureSetType.SEPARATE: (ToLine, FromManager),
    FeatureSetType.COMPOUND: (ToLineAndFromManager,),
    FeatureSetType.INITIAL: _INITIAL,
    FeatureSetType.WITH_SUBJECT_PREFIX: (*_INITIAL[:-1], SubjectPrefix, Sender),
    FeatureSetType.WITH_RECIPIENT: (*_INITIAL[:-1], SubjectPrefix, Sender, Recipient),
    FeatureSetType.WITH_RECIPIENT2: (*_INITIAL[:-1], SubjectPrefix, Sender, Recipient, Bias),
}
FEATURE_SETS[FeatureSetType.COMBINED] = tuple(
    dict.fromkeys(cls for classes in list(FEATURE_SETS.values()) for cls in classes)
)

# Every kind that can be rebuilt from a stored state without constructor arguments
FEATURE_CLASSES: dict[str, type[Feature]] = {
    cls.__name__: cls
    for cls in (
        Bias,
        BodyLength,
        BodyWordCount,
        FromManager,
        FromMe,
        HasAttachments,
        IsAutomatedSender,
        PreviousUnread,
        Recipient,
        ReplyToMe,
        Sender,
        SenderAndPosition,
        SenderToCc,
        SingleSender,
        SubjectLength,
        SubjectPrefix,
        SubjectWordCount,
        ToCcLine,
        ToCcNeither,
        ToCcPosition,
        ToLine,
        ToLineAndFromManager,
    )
}


@dataclass(frozen=True)
class SparseVector:
    """Active coordinates of one message in a feature set's index space."""

    indices: np.ndarray
    values: np.ndarray
    length: int

    def to_dense(self) -> np.ndarray:
        dense = np.zeros(self.length, dtype=np.float64)
        dense[self.indices] = self.values
        return dense

    def to_dict(self) -> dict[str, Any]:
        return {
            "indices": self.indices.tolist(),
            "values": self.values.tolist(),
            "length": self.length,
        }


class FeatureSet:
    """An ordered, named list of features sharing one coordinate space."""

    def __init__(self, name: str, features: Sequence[Feature]) -> None:
        names = [f.name for f in features]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Feature names must be unique within a set: {duplicates}")
        self.name = name
        self.features: list[Feature] = list(features)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        feature_set_type: FeatureSetType | str,
        user: User | None = None,
        config: FeatureConfig = DEFAULT_FEATURE_CONFIG,
    ) -> FeatureSet:
        """Instantiate and configure every feature of ``feature_set_type``."""
        set_type = FeatureSetType(feature_set_type)
        feature_set = cls(set_type.value, [c.from_config(config) for c in FEATURE_SETS[set_type]])
        feature_set.configure(user)
        return feature_set

    @classmethod
    def community(
        cls,
        feature_set_type: FeatureSetType | str,
        config: FeatureConfig = DEFAULT_FEATURE_CONFIG,
    ) -> FeatureSet:
        """Only the features of ``feature_set_type`` that need no user to configure."""
        set_type = FeatureSetType(feature_set_type)
        features = [c.from_config(config) for c in FEATURE_SETS[set_type]]
        features = [f for f in features if not f.per_user]
        for feature in features:
            feature.configure()
        return cls(set_type.value, features)

    @classmethod
    def personal(
        cls,
        community: FeatureSet,
        user: User,
        feature_set_type: FeatureSetType | str,
        config: FeatureConfig = DEFAULT_FEATURE_CONFIG,
    ) -> FeatureSet:
        """The community features followed by ``user``'s configured per-user features."""
        set_type = FeatureSetType(feature_set_type)
        features = [c.from_config(config) for c in FEATURE_SETS[set_type]]
        personal = [f for f in features if f.per_user]
        for feature in personal:
            feature.configure(user)
        return cls(set_type.value, [*community.features, *personal])

    def configure(self, user: User | None = None, *, reset: bool = False) -> None:
        """Configure every feature.

        Features already configured (per-user ones for ``user``, for example
        after a restore) are left alone unless ``reset`` is true. Reconfiguring
        a per-user feature only adds contacts it has not seen before.
        """
        for feature in self.features:
            if feature.per_user:
                if user is None or (feature.is_configured_for(user) and not reset):
                    continue
                feature.configure(user)
            elif reset or not feature.is_configured:
                feature.configure()

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def __getitem__(self, name: str) -> Feature:
        for feature in self.features:
            if feature.name == name:
                return feature
        raise KeyError(name)

    @property
    def shared_features(self) -> list[Feature]:
        return [f for f in self.features if f.is_shared]

    @property
    def non_shared_features(self) -> list[Feature]:
        return [f for f in self.features if not f.is_shared]

    @property
    def feature_vector_length(self) -> int:
        return sum(f.count for f in self.features)

    @property
    def shared_feature_vector_length(self) -> int:
        return sum(f.count for f in self.shared_features)

    @property
    def non_shared_feature_vector_length(self) -> int:
        return sum(f.count for f in self.non_shared_features)

    def offsets(self) -> dict[str, int]:
        """Global index of each feature's bucket 0, in feature order."""
        out: dict[str, int] = {}
        base = 0
        for feature in self.features:
            out[feature.name] = base
            base += feature.count
        return out

    def feature_buckets(self) -> list[FeatureBucket]:
        return [b for f in self.features for b in f.buckets]

    def descriptions(self) -> list[dict[str, Any]]:
        return [
            {
                "feature": f.name,
                "description": str(f),
                "shared": f.is_shared,
                "buckets": "(varies)" if f.per_user else f.count,
            }
            for f in self.features
        ]

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def compute_pairs(
        self, user: User, message: Message, *, include_non_shared: bool = True
    ) -> list[tuple[Feature, list[FeatureBucketValuePair]]]:
        return [
            (f, f.compute(user, message))
            for f in self.features
            if include_non_shared or f.is_shared
        ]

    def compute_feature_values(
        self, user: User, message: Message, *, include_non_shared: bool = True
    ) -> dict[FeatureBucket, float]:
        values: dict[FeatureBucket, float] = {}
        for _, pairs in self.compute_pairs(user, message, include_non_shared=include_non_shared):
            for bucket, value in pairs:
                values[bucket] = value
        return values

    def to_sparse(self, user: User, message: Message) -> SparseVector:
        """Compute every feature, then index the pairs against the grown offsets."""
        computed = self.compute_pairs(user, message)
        offsets = self.offsets()
        indices: list[int] = []
        values: list[float] = []
        for feature, pairs in computed:
            base = offsets[feature.name]
            for bucket, value in pairs:
                indices.append(base + bucket.index)
                values.append(value)
        return SparseVector(
            indices=np.asarray(indices, dtype=np.int64),
            values=np.asarray(values, dtype=np.float64),
            length=self.feature_vector_length,
        )

    # ------------------------------------------------------------------
    # Equality and persistence
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureSet):
            return NotImplemented
        return self.name == other.name and self.features == other.features

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return self.name or ",".join(f.name for f in self.features)

    def check_compatible(self, other: FeatureSet) -> None:
        """Raise FeatureMismatchError unless ``other`` enumerates the same buckets."""
        if self.name != other.name or len(self.features) != len(other.features):
            logger.warning("Feature set mismatch: %s/%d vs %s/%d",
                           self.name, len(self), other.name, len(other))
            raise FeatureMismatchError(
                f"Feature set {other.name} ({len(other)} features) does not match "
                f"{self.name} ({len(self)} features)"
            )
        for mine, theirs in zip(self.features, other.features):
            if mine != theirs:
                logger.warning("Feature mismatch in set %s: %r vs %r", self.name, mine, theirs)
                raise FeatureMismatchError(
                    f"Feature {mine.name} differs ({mine.count} vs {theirs.count} buckets)",
                    feature=mine.name,
                )

    def export_state(self) -> FeatureSetState:
        return FeatureSetState(name=self.name, features=tuple(f.export_state() for f in self.features))

    def restore_state(self, state: FeatureSetState) -> None:
        stored = [f.name for f in state.features]
        mine = [f.name for f in self.features]
        if state.name != self.name or stored != mine:
            raise FeatureMismatchError(
                f"Stored feature set {state.name} {stored} does not match {self.name} {mine}"
            )
        for feature, feature_state in zip(self.features, state.features):
            feature.restore_state(feature_state)

    @classmethod
    def from_state(
        cls, state: FeatureSetState, config: FeatureConfig = DEFAULT_FEATURE_CONFIG
    ) -> FeatureSet:
        """Rebuild a feature set from its stored state.

        Raises:
            StateFormatError: a stored kind cannot be constructed without arguments.
        """
        features: list[Feature] = []
        for feature_state in state.features:
            cls_ = FEATURE_CLASSES.get(feature_state.kind)
            if cls_ is None:
                raise StateFormatError(
                    f"Cannot rebuild feature kind {feature_state.kind!r}; "
                    "restore it onto an existing instance instead",
                    feature=feature_state.name,
                )
            feature = cls_.from_config(config)
            feature.restore_state(feature_state)
            features.append(feature)
        return cls(state.name, features)
