"""Shared contract for all feature kinds.

A feature owns an ordered, append-only list of buckets. ``buckets[i].index``
always equals ``i`` and a bucket's ``(index, name)`` never changes once
created, because trained weight vectors are keyed by position.

``compute`` is not a pure query for every kind: dynamic-vocabulary and
compound features append buckets the first time they observe a new identity or
component combination. Kinds that do so set ``grows_vocabulary`` and guard the
check-then-append sequence with the feature's lock.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import ClassVar

from inbox_features.domain import Message, User
from inbox_features.errors import FeatureMismatchError, NotConfiguredError
from inbox_features.features.bucket import BucketPayload, FeatureBucket, FeatureBucketValuePair
from inbox_features.features.config import DEFAULT_FEATURE_CONFIG, FeatureConfig
from inbox_features.features.state import (
    BucketRecord,
    FeatureState,
    PayloadRecord,
    check_contiguous,
    payload_to_record,
    record_to_payload,
)

logger = logging.getLogger(__name__)


class Feature(ABC):
    """Base class for a named encoder producing bucket activations per message."""

    grows_vocabulary: ClassVar[bool] = False

    def __init__(
        self,
        *,
        description: str = "",
        string_format: str = "{0}",
        is_shared: bool = True,
        first_description: str | None = None,
        name: str | None = None,
    ) -> None:
        self.buckets: list[FeatureBucket] = []
        self.description = description
        self.string_format = string_format
        self.is_shared = is_shared
        self.first_description = first_description
        self._name = name
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> Feature:
        """Build the feature with its default parameters."""
        return cls()

    @property
    def name(self) -> str:
        return self._name or type(self).__name__

    @property
    def per_user(self) -> bool:
        """True when ``configure`` needs a user to build the vocabulary."""
        return False

    @property
    def count(self) -> int:
        return len(self.buckets)

    @property
    def is_configured(self) -> bool:
        return bool(self.buckets)

    def is_configured_for(self, user: User) -> bool:
        return self.is_configured

    @property
    def feature_names(self) -> list[str]:
        return [bucket.name for bucket in self.buckets]

    def get_description(self, i: int) -> str:
        if i == 0 and self.first_description is not None:
            return self.first_description
        if self.count > 1:
            return self.string_format.format(self.buckets[i].name)
        return self.string_format

    @abstractmethod
    def configure(self, user: User | None = None) -> None:
        """(Re)build the buckets, from static parameters or for ``user``."""

    @abstractmethod
    def compute(self, user: User, message: Message) -> list[FeatureBucketValuePair]:
        """Return the active buckets and their weights for ``message``.

        May append buckets to this feature as a side effect.
        """

    def _require_configured(self) -> None:
        if not self.buckets:
            raise NotConfiguredError(self.name)

    def _make_bucket(self, index: int, name: str, payload: BucketPayload = None) -> FeatureBucket:
        return FeatureBucket(index=index, name=name, owner=self.name, payload=payload)

    def _append_bucket(self, name: str, payload: BucketPayload = None) -> FeatureBucket:
        bucket = self._make_bucket(len(self.buckets), name, payload)
        self.buckets.append(bucket)
        return bucket

    # ------------------------------------------------------------------
    # Equality
    # ------------------------------------------------------------------

    def equality_key(self) -> tuple:
        return (
            self.is_shared,
            self.description,
            self.first_description,
            self.string_format,
            tuple(self.buckets),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        if self is other:
            return True
        return self.equality_key() == other.equality_key()

    def __hash__(self) -> int:
        return hash(self.equality_key())

    def __str__(self) -> str:
        return self.description

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, buckets={self.count})"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_state(self) -> FeatureState:
        with self._lock:
            buckets = tuple(
                BucketRecord(index=b.index, name=b.name, payload=payload_to_record(b.payload))
                for b in self.buckets
            )
        return FeatureState(
            kind=type(self).__name__,
            name=self.name,
            description=self.description,
            first_description=self.first_description,
            is_shared=self.is_shared,
            string_format=self.string_format,
            buckets=buckets,
            components=tuple(c.export_state() for c in self.components()),
        )

    def restore_state(self, state: FeatureState) -> None:
        """Replace the buckets with ``state``'s, in stored order.

        Raises:
            FeatureMismatchError: kind or metadata differs from this feature.
            StateFormatError: stored indices are not contiguous.
        """
        self._check_state_matches(state)
        check_contiguous(state)
        components = self.components()
        if len(components) != len(state.components):
            raise FeatureMismatchError(
                f"{self.name} has {len(components)} components, state has {len(state.components)}",
                feature=self.name,
            )
        with self._lock:
            for component, component_state in zip(components, state.components):
                component.restore_state(component_state)
            self.buckets = [
                self._make_bucket(r.index, r.name, self._payload_from_record(r.payload))
                for r in state.buckets
            ]
            self._rebuild_indexes()
        logger.info("Restored %d buckets for feature %s", len(self.buckets), self.name)

    def components(self) -> list[Feature]:
        """Sub-features whose buckets this feature's payloads refer to."""
        return []

    def _payload_from_record(self, record: PayloadRecord | None) -> BucketPayload:
        return record_to_payload(record)

    def _rebuild_indexes(self) -> None:
        """Rebuild lookup tables derived from ``buckets`` after a restore."""

    def _check_state_matches(self, state: FeatureState) -> None:
        expected = (type(self).__name__, self.name, self.description, self.is_shared, self.string_format)
        stored = (state.kind, state.name, state.description, state.is_shared, state.string_format)
        if expected != stored:
            logger.warning("Feature state mismatch for %s: %r != %r", self.name, stored, expected)
            raise FeatureMismatchError(
                f"Stored state {state.kind}/{state.name} does not match feature "
                f"{type(self).__name__}/{self.name}",
                feature=self.name,
            )


class CategoricalFeature(Feature):
    """A feature with exactly one active bucket per message, weighted 1.0."""

    @abstractmethod
    def select_bucket(self, user: User, message: Message) -> FeatureBucket:
        """Return the single active bucket for ``message``."""

    def compute(self, user: User, message: Message) -> list[FeatureBucketValuePair]:
        return [FeatureBucketValuePair(self.select_bucket(user, message), 1.0)]
