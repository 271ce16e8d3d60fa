"""Numeric features binned by ascending upper bounds.

Each bound becomes one bucket whose payload is the bound; an open-ended
feature adds a final overflow bucket. The active bucket is found by a
first-match linear scan over the bounds. By default boundary values belong to
the lower bucket (``value <= bound``); a feature that sets
``upper_inclusive = False`` uses ``value < bound`` instead.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import ClassVar

import numpy as np

from inbox_features.domain import Message, User
from inbox_features.errors import InvalidBinConfigurationError
from inbox_features.features.base import CategoricalFeature
from inbox_features.features.bucket import FeatureBucket
from inbox_features.features.config import DEFAULT_FEATURE_CONFIG, FeatureConfig


def validate_bins(bins: Sequence[int] | np.ndarray, *, feature: str | None = None) -> tuple[int, ...]:
    """Check that bins are a non-empty, strictly ascending sequence of integers.

    Raises:
        InvalidBinConfigurationError: if the bins are empty, not one-dimensional,
            not integral, or not strictly ascending.
    """
    arr = np.asarray(bins)
    if arr.ndim != 1 or arr.size == 0:
        raise InvalidBinConfigurationError("Bins must be a non-empty 1-D sequence", feature=feature)
    if not np.issubdtype(arr.dtype, np.number) or not np.all(np.isfinite(arr)):
        raise InvalidBinConfigurationError("Bins must be finite numbers", feature=feature)
    if not np.all(np.mod(arr, 1) == 0):
        raise InvalidBinConfigurationError("Bins must be integers", feature=feature)
    if arr.size > 1 and np.any(np.diff(arr) <= 0):
        raise InvalidBinConfigurationError(
            f"Bins must be strictly ascending: {arr.tolist()}", feature=feature
        )
    return tuple(int(b) for b in arr)


def bin_label(bins: Sequence[int], i: int, *, upper_inclusive: bool = True) -> str:
    """Human-readable label for bucket ``i``; ``i == len(bins)`` is the overflow bucket.

    For bins ``(5, 10, 100)``: ``"5"``, ``"6-10"``, ``"11-100"``, ``">100"``.
    """
    uppers = list(bins) if upper_inclusive else [b - 1 for b in bins]
    if i == len(uppers):
        return f">{uppers[-1]}"
    if i == 0:
        return str(uppers[0])
    if uppers[i] - uppers[i - 1] == 1:
        return str(uppers[i])
    return f"{uppers[i - 1] + 1}-{uppers[i]}"


class NumericFeature(CategoricalFeature):
    upper_inclusive: ClassVar[bool] = True

    def __init__(
        self,
        bins: Sequence[int],
        *,
        open_ended: bool = True,
        description: str = "",
        string_format: str = "{0}",
        is_shared: bool = True,
        name: str | None = None,
    ) -> None:
        super().__init__(
            description=description, string_format=string_format, is_shared=is_shared, name=name
        )
        self.bins = validate_bins(bins, feature=self.name)
        self.open_ended = open_ended

    @abstractmethod
    def measure(self, message: Message) -> int:
        """The numeric quantity being binned."""

    def configure(self, user: User | None = None) -> None:
        inclusive = self.upper_inclusive
        buckets = [
            self._make_bucket(i, bin_label(self.bins, i, upper_inclusive=inclusive), b)
            for i, b in enumerate(self.bins)
        ]
        if self.open_ended:
            n = len(self.bins)
            buckets.append(self._make_bucket(n, bin_label(self.bins, n, upper_inclusive=inclusive)))
        with self._lock:
            self.buckets = buckets

    def bucket_index(self, value: float) -> int:
        """First bucket whose bound admits ``value``; the last bucket otherwise."""
        self._require_configured()
        for bucket in self.buckets:
            bound = bucket.payload
            if bound is None:
                continue
            if value <= bound if self.upper_inclusive else value < bound:
                return bucket.index
        return len(self.buckets) - 1

    def select_bucket(self, user: User, message: Message) -> FeatureBucket:
        return self.buckets[self.bucket_index(self.measure(message))]

    def _rebuild_indexes(self) -> None:
        bounds = [b.payload for b in self.buckets if isinstance(b.payload, int)]
        if bounds:
            self.bins = validate_bins(bounds, feature=self.name)
        self.open_ended = bool(self.buckets) and self.buckets[-1].payload is None


class SubjectLength(NumericFeature):
    def __init__(self, bins: Sequence[int] = DEFAULT_FEATURE_CONFIG.subject_char_length_bins) -> None:
        super().__init__(bins, description="The number of characters in the subject")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> SubjectLength:
        return cls(config.subject_char_length_bins)

    def measure(self, message: Message) -> int:
        return len(message.subject_without_prefix)


class SubjectWordCount(NumericFeature):
    def __init__(self, bins: Sequence[int] = DEFAULT_FEATURE_CONFIG.subject_word_count_bins) -> None:
        super().__init__(bins, description="The number of words in the subject")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> SubjectWordCount:
        return cls(config.subject_word_count_bins)

    def measure(self, message: Message) -> int:
        return len(message.subject_words)


class BodyLength(NumericFeature):
    def __init__(self, bins: Sequence[int] = DEFAULT_FEATURE_CONFIG.body_char_length_bins) -> None:
        super().__init__(bins, description="The number of new characters in the body text")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> BodyLength:
        return cls(config.body_char_length_bins)

    def measure(self, message: Message) -> int:
        return len(message.body)


class BodyWordCount(NumericFeature):
    def __init__(self, bins: Sequence[int] = DEFAULT_FEATURE_CONFIG.body_word_count_bins) -> None:
        super().__init__(bins, description="The number of new words in the body text")

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> BodyWordCount:
        return cls(config.body_word_count_bins)

    def measure(self, message: Message) -> int:
        return len(message.body_words)
