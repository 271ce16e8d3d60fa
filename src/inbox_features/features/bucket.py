"""Feature buckets: the coordinates of the sparse feature vector.

This module provides:
- IdentityPayload / CompoundPayload: the structured per-kind bucket payloads
- FeatureBucket: immutable (index, name, owner, payload) coordinate
- FeatureBucketValuePair: one active coordinate and its weight
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, TypeAlias


@dataclass(frozen=True)
class IdentityPayload:
    """Identity keys that resolve to a per-user bucket.

    ``scope`` names the vocabulary the keys live in when a feature keeps more
    than one per user.
    """

    user: str
    keys: tuple[str, ...]
    scope: str = ""


@dataclass(frozen=True)
class CompoundPayload:
    """One cell of a cross product; references the two component buckets."""

    bucket1: FeatureBucket
    bucket2: FeatureBucket


BucketPayload: TypeAlias = (
    int | float | tuple[str, ...] | IdentityPayload | CompoundPayload | None
)


@dataclass(frozen=True, eq=False)
class FeatureBucket:
    """One discrete coordinate owned by a feature.

    ``owner`` is the owning feature's name. Equality and hashing use
    ``(owner, name, index)`` and ignore the payload.
    """

    index: int
    name: str
    owner: str
    payload: BucketPayload = field(default=None, repr=False)

    def _key(self) -> tuple[str, str, int]:
        return (self.owner, self.name, self.index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureBucket):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.name == self.owner:
            return self.owner
        return f"{self.owner}[{self.name}]"


class FeatureBucketValuePair(NamedTuple):
    bucket: FeatureBucket
    value: float
