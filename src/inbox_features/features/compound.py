"""Cross-product (compound) features.

A compound feature wraps two single-bucket features. Its buckets are cells
``(bucket1, bucket2)`` of the cross product of their vocabularies, in
row-major order (outer loop over ``feature1``) for the cells enumerated by
``configure``. Cells for component buckets that appear later (a component's
vocabulary grew) are appended the first time they are observed. Cells are
never reordered or removed.
"""

from __future__ import annotations

import logging

from inbox_features.domain import Message, User
from inbox_features.errors import FeatureMismatchError, StateFormatError
from inbox_features.features.base import CategoricalFeature, Feature
from inbox_features.features.bucket import BucketPayload, CompoundPayload, FeatureBucket
from inbox_features.features.categorical import ToCcNeither
from inbox_features.features.people import Sender
from inbox_features.features.state import CompoundPayloadRecord, PayloadRecord

logger = logging.getLogger(__name__)


class CompoundFeature(CategoricalFeature):
    grows_vocabulary = True

    def __init__(
        self,
        feature1: CategoricalFeature,
        feature2: CategoricalFeature,
        *,
        description: str | None = None,
        name: str | None = None,
    ) -> None:
        for feature in (feature1, feature2):
            if not isinstance(feature, CategoricalFeature):
                raise TypeError(
                    f"Compound components must select a single bucket, got {type(feature).__name__}"
                )
        super().__init__(
            description=description or f"{feature1.description}, {feature2.description}",
            is_shared=feature1.is_shared and feature2.is_shared,
            name=name or f"{feature1.name}x{feature2.name}",
        )
        self.feature1 = feature1
        self.feature2 = feature2
        self._cells: dict[tuple[int, int], FeatureBucket] = {}

    @property
    def per_user(self) -> bool:
        return self.feature1.per_user or self.feature2.per_user

    def is_configured_for(self, user: User) -> bool:
        return self.feature1.is_configured_for(user) and self.feature2.is_configured_for(user)

    def components(self) -> list[Feature]:
        return [self.feature1, self.feature2]

    def configure(self, user: User | None = None) -> None:
        """Configure both components, then add every cell of their current product.

        Cells that already exist keep their index, so configuring twice adds
        nothing.
        """
        with self._lock:
            self.feature1.configure(user)
            self.feature2.configure(user)
            for bucket1 in self.feature1.buckets:
                for bucket2 in self.feature2.buckets:
                    self._cell(bucket1, bucket2)

    def select_bucket(self, user: User, message: Message) -> FeatureBucket:
        bucket1 = self.feature1.select_bucket(user, message)
        bucket2 = self.feature2.select_bucket(user, message)
        with self._lock:
            return self._cell(bucket1, bucket2)

    def _cell(self, bucket1: FeatureBucket, bucket2: FeatureBucket) -> FeatureBucket:
        key = (bucket1.index, bucket2.index)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = self._append_bucket(
                f"{bucket1.name}, {bucket2.name}", CompoundPayload(bucket1, bucket2)
            )
            self._cells[key] = bucket
            logger.debug("%s: new cell %d %r", self.name, bucket.index, bucket.name)
        return bucket

    def _payload_from_record(self, record: PayloadRecord | None) -> BucketPayload:
        if not isinstance(record, CompoundPayloadRecord):
            raise StateFormatError(f"{self.name} buckets need compound payloads", feature=self.name)
        try:
            bucket1 = self.feature1.buckets[record.bucket1]
            bucket2 = self.feature2.buckets[record.bucket2]
        except IndexError as exc:
            raise FeatureMismatchError(
                f"{self.name} refers to component buckets that were not restored",
                feature=self.name,
                bucket1=record.bucket1,
                bucket2=record.bucket2,
            ) from exc
        return CompoundPayload(bucket1, bucket2)

    def _rebuild_indexes(self) -> None:
        self._cells = {
            (b.payload.bucket1.index, b.payload.bucket2.index): b
            for b in self.buckets
            if isinstance(b.payload, CompoundPayload)
        }


class SenderAndPosition(CompoundFeature):
    """Who the message is from, crossed with where the owner appears on it."""

    def __init__(self) -> None:
        super().__init__(
            Sender(),
            ToCcNeither(),
            description="Who the message is from, and whether you are on the To or Cc lines",
            name="SenderAndPosition",
        )
