"""Feature encoders: email message -> indexed sparse coordinates.

Public API:
- Feature, CategoricalFeature: the shared contract
- FeatureBucket, FeatureBucketValuePair: coordinates and activations
- BinaryFeature, NumericFeature, OneOfNFeature, IdentityFeature, CompoundFeature:
  the feature kinds, with the built-in catalogue below each
- FeatureSet, FeatureSetType, SparseVector: collections and vector assembly
- save_feature_set / load_feature_set: vocabulary persistence
"""

from .base import CategoricalFeature, Feature
from .binary import (
    And,
    BinaryFeature,
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
from .bucket import CompoundPayload, FeatureBucket, FeatureBucketValuePair, IdentityPayload
from .categorical import (
    OneOfNFeature,
    Position,
    PreviousUnread,
    SubjectPrefix,
    ToCcNeither,
    ToCcPosition,
    ToLineAndFromManager,
    get_position,
)
from .compound import CompoundFeature, SenderAndPosition
from .config import DEFAULT_FEATURE_CONFIG, FeatureConfig
from .feature_set import FEATURE_CLASSES, FEATURE_SETS, FeatureSet, FeatureSetType, SparseVector
from .numeric import (
    BodyLength,
    BodyWordCount,
    NumericFeature,
    SubjectLength,
    SubjectWordCount,
    bin_label,
    validate_bins,
)
from .people import IdentityFeature, Recipient, Sender, SenderToCc
from .persistence import load_feature_set, read_feature_set_state, save_feature_set
from .state import STATE_SCHEMA_VERSION, BucketRecord, FeatureSetState, FeatureState
from .vocabulary import PerUserVocabulary

__all__ = [
    # Contract
    "CategoricalFeature",
    "Feature",
    "FeatureBucket",
    "FeatureBucketValuePair",
    "CompoundPayload",
    "IdentityPayload",
    # Kinds
    "BinaryFeature",
    "NumericFeature",
    "OneOfNFeature",
    "IdentityFeature",
    "CompoundFeature",
    "PerUserVocabulary",
    # Catalogue
    "And",
    "Bias",
    "BodyLength",
    "BodyWordCount",
    "FromManager",
    "FromMe",
    "HasAttachments",
    "IsAutomatedSender",
    "Position",
    "PreviousUnread",
    "Recipient",
    "ReplyToMe",
    "Sender",
    "SenderAndPosition",
    "SenderToCc",
    "SingleSender",
    "SubjectLength",
    "SubjectPrefix",
    "SubjectWordCount",
    "ToCcLine",
    "ToCcNeither",
    "ToCcPosition",
    "ToLine",
    "ToLineAndFromManager",
    "bin_label",
    "get_position",
    "validate_bins",
    # Config
    "DEFAULT_FEATURE_CONFIG",
    "FeatureConfig",
    # Sets
    "FEATURE_CLASSES",
    "FEATURE_SETS",
    "FeatureSet",
    "FeatureSetType",
    "SparseVector",
    # Persistence
    "STATE_SCHEMA_VERSION",
    "BucketRecord",
    "FeatureSetState",
    "FeatureState",
    "load_feature_set",
    "read_feature_set_state",
    "save_feature_set",
]
