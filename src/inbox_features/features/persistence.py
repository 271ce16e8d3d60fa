"""Saving and loading feature set vocabularies as JSON."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from inbox_features.errors import StateFormatError
from inbox_features.features.config import DEFAULT_FEATURE_CONFIG, FeatureConfig
from inbox_features.features.feature_set import FeatureSet
from inbox_features.features.state import STATE_SCHEMA_VERSION, FeatureSetState

logger = logging.getLogger(__name__)


def save_feature_set(path: Path, feature_set: FeatureSet) -> None:
    """Write ``feature_set``'s buckets, in index order, to ``path``."""
    state = feature_set.export_state()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(state.model_dump_json(indent=2) + "\n", encoding="utf-8")
    logger.info(
        "Saved feature set %s (%d buckets) to %s",
        feature_set.name,
        feature_set.feature_vector_length,
        path,
    )


def read_feature_set_state(path: Path) -> FeatureSetState:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise StateFormatError(f"Cannot read feature state {path}: {exc}") from exc
    try:
        state = FeatureSetState.model_validate_json(text)
    except ValidationError as exc:
        raise StateFormatError(f"Malformed feature state {path}: {exc}") from exc
    if state.schema_version != STATE_SCHEMA_VERSION:
        raise StateFormatError(
            f"Feature state {path} has schema {state.schema_version}, "
            f"expected {STATE_SCHEMA_VERSION}"
        )
    return state


def load_feature_set(path: Path, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> FeatureSet:
    """Rebuild a feature set saved with :func:`save_feature_set`."""
    feature_set = FeatureSet.from_state(read_feature_set_state(path), config)
    logger.info("Loaded feature set %s from %s", feature_set.name, path)
    return feature_set
