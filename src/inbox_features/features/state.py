"""Serializable records for feature vocabularies.

A trained weight vector is addressed by bucket index, so a feature's buckets
must round-trip in exactly the stored order, including vocabulary grown in an
earlier session. These pydantic records are the persisted form; payloads are a
closed, discriminated union.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field

from inbox_features.domain.contact import FrozenModel
from inbox_features.errors import StateFormatError
from inbox_features.features.bucket import BucketPayload, CompoundPayload, IdentityPayload

# Bump on any change to the record layout
STATE_SCHEMA_VERSION = "1.0.0"


class IntPayloadRecord(FrozenModel):
    kind: Literal["int"] = "int"
    value: int


class FloatPayloadRecord(FrozenModel):
    kind: Literal["float"] = "float"
    value: float


class StringsPayloadRecord(FrozenModel):
    kind: Literal["strings"] = "strings"
    values: tuple[str, ...]


class IdentityPayloadRecord(FrozenModel):
    kind: Literal["identity"] = "identity"
    user: str
    keys: tuple[str, ...]
    scope: str = ""


class CompoundPayloadRecord(FrozenModel):
    kind: Literal["compound"] = "compound"
    bucket1: int = Field(ge=0, description="Index of the bucket in feature1")
    bucket2: int = Field(ge=0, description="Index of the bucket in feature2")


PayloadRecord = Annotated[
    Union[
        IntPayloadRecord,
        FloatPayloadRecord,
        StringsPayloadRecord,
        IdentityPayloadRecord,
        CompoundPayloadRecord,
    ],
    Field(discriminator="kind"),
]


class BucketRecord(FrozenModel):
    index: int = Field(ge=0)
    name: str
    payload: PayloadRecord | None = None


class FeatureState(FrozenModel):
    """Persisted form of one feature, components first for compound kinds."""

    kind: str
    name: str
    description: str
    first_description: str | None = None
    is_shared: bool
    string_format: str
    buckets: tuple[BucketRecord, ...] = ()
    components: tuple[FeatureState, ...] = ()


class FeatureSetState(FrozenModel):
    schema_version: str = STATE_SCHEMA_VERSION
    name: str
    features: tuple[FeatureState, ...] = ()


FeatureState.model_rebuild()


def payload_to_record(payload: BucketPayload) -> PayloadRecord | None:
    if payload is None:
        return None
    if isinstance(payload, CompoundPayload):
        return CompoundPayloadRecord(bucket1=payload.bucket1.index, bucket2=payload.bucket2.index)
    if isinstance(payload, IdentityPayload):
        return IdentityPayloadRecord(user=payload.user, keys=payload.keys, scope=payload.scope)
    if isinstance(payload, tuple):
        return StringsPayloadRecord(values=payload)
    if isinstance(payload, int):
        return IntPayloadRecord(value=payload)
    if isinstance(payload, float):
        return FloatPayloadRecord(value=payload)
    raise StateFormatError(f"Unsupported bucket payload type: {type(payload).__name__}")


def record_to_payload(record: PayloadRecord | None) -> BucketPayload:
    """Convert a stored payload back; compound payloads need their owner's components."""
    if record is None:
        return None
    if isinstance(record, IntPayloadRecord):
        return record.value
    if isinstance(record, FloatPayloadRecord):
        return record.value
    if isinstance(record, StringsPayloadRecord):
        return tuple(record.values)
    if isinstance(record, IdentityPayloadRecord):
        return IdentityPayload(user=record.user, keys=tuple(record.keys), scope=record.scope)
    raise StateFormatError(f"Payload kind {record.kind!r} must be restored by its owning feature")


def check_contiguous(state: FeatureState) -> None:
    """Stored bucket indices must equal their positions."""
    for position, record in enumerate(state.buckets):
        if record.index != position:
            raise StateFormatError(
                f"Bucket {record.name!r} of {state.name} stored at position {position} "
                f"has index {record.index}",
                feature=state.name,
                position=position,
                index=record.index,
            )
