"""Per-user identity -> bucket tables for dynamic-vocabulary features.

Each user gets a table mapping normalized identity keys (a display name and
any number of email aliases) to the bucket that represents that person.
Entries are created lazily and never removed; several keys may point at the
same bucket.
"""

from __future__ import annotations

from collections.abc import Iterable

from inbox_features.domain import IdentityKey, Person
from inbox_features.features.bucket import FeatureBucket, IdentityPayload


class PerUserVocabulary:
    """Identity resolver for one feature (and one scope within it)."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[IdentityKey, FeatureBucket]] = {}

    def __contains__(self, user_key: str) -> bool:
        return user_key in self._tables

    def users(self) -> list[str]:
        return list(self._tables)

    def table(self, user_key: str) -> dict[IdentityKey, FeatureBucket]:
        return self._tables.setdefault(user_key, {})

    def clear(self) -> None:
        self._tables.clear()

    def resolve(self, user_key: str, keys: Iterable[IdentityKey]) -> FeatureBucket | None:
        """Return the bucket of the first key that is known, name key first."""
        table = self._tables.get(user_key)
        if not table:
            return None
        for key in keys:
            bucket = table.get(key)
            if bucket is not None:
                return bucket
        return None

    def resolve_person(self, user_key: str, person: Person) -> FeatureBucket | None:
        return self.resolve(user_key, person.identity_keys())

    def unclaimed_keys(self, user_key: str, keys: Iterable[IdentityKey]) -> tuple[IdentityKey, ...]:
        """The subset of ``keys`` not yet mapped for this user, in order."""
        table = self._tables.get(user_key, {})
        out: list[IdentityKey] = []
        for key in keys:
            if key not in table and key not in out:
                out.append(key)
        return tuple(out)

    def register(self, user_key: str, keys: Iterable[IdentityKey], bucket: FeatureBucket) -> None:
        table = self.table(user_key)
        for key in keys:
            table.setdefault(key, bucket)

    def rebuild(self, buckets: Iterable[FeatureBucket], *, scope: str = "") -> None:
        """Recreate every table from the identity payloads stored on ``buckets``.

        ``buckets`` must be in index order: a key claimed by an earlier bucket
        keeps that bucket, as it did when the keys were first registered.
        """
        self._tables.clear()
        for bucket in buckets:
            payload = bucket.payload
            if isinstance(payload, IdentityPayload) and payload.scope == scope:
                self.register(payload.user, (IdentityKey(k) for k in payload.keys), bucket)
