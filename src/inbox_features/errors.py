"""Local error taxonomy for inbox-features.

The encoders are domain-only: they never retry and never depend on a runtime
framework. Exceptions carry a small, stable error enum so a training driver can
translate them into its own error formats.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    NOT_CONFIGURED = "NOT_CONFIGURED"
    INVALID_CONFIG = "INVALID_CONFIG"
    CONFIG_MISMATCH = "CONFIG_MISMATCH"
    INVALID_STATE = "INVALID_STATE"


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ErrorType
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


def make_error(error_type: ErrorType, message: str, **context: Any) -> ErrorEnvelope:
    return ErrorEnvelope(type=error_type, message=message, context=dict(context))


class FeatureError(Exception):
    """Base class for feature encoding errors.

    Attributes:
        feature: Name of the feature that raised, if known.
        context: Extra key/value details for the envelope.
    """

    error_type: ErrorType = ErrorType.INVALID_CONFIG

    def __init__(self, message: str, *, feature: str | None = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.feature = feature
        self.context = dict(context)

    def to_envelope(self) -> ErrorEnvelope:
        context = dict(self.context)
        if self.feature is not None:
            context["feature"] = self.feature
        return make_error(self.error_type, self.message, **context)


class NotConfiguredError(FeatureError):
    """Raised when a fixed-vocabulary feature is computed before ``configure``."""

    error_type = ErrorType.NOT_CONFIGURED

    def __init__(self, feature: str) -> None:
        super().__init__(f"Feature {feature} was not configured", feature=feature)


class InvalidBinConfigurationError(FeatureError, ValueError):
    """Raised for empty or non-ascending numeric bin thresholds."""

    error_type = ErrorType.INVALID_CONFIG


class FeatureMismatchError(FeatureError):
    """Raised when two features (or feature sets) expected to be interchangeable differ."""

    error_type = ErrorType.CONFIG_MISMATCH


class StateFormatError(FeatureError):
    """Raised when persisted bucket state cannot be restored losslessly."""

    error_type = ErrorType.INVALID_STATE
