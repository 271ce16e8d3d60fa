"""Feature catalogue configuration."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class FeatureConfig:
    """
    Constants used by the built-in feature catalogue.

    This dataclass is frozen (immutable) so that every feature built from it
    enumerates the same buckets in the same order, which keeps trained weight
    vectors addressable across sessions.

    Attributes
    ----------
    body_word_count_bins : tuple[int, ...]
        Ascending upper bounds for the number of new words in the body.
    body_char_length_bins : tuple[int, ...]
        Ascending upper bounds for the number of new characters in the body.
    subject_word_count_bins : tuple[int, ...]
        Ascending upper bounds for the number of words in the subject.
    subject_char_length_bins : tuple[int, ...]
        Ascending upper bounds for the number of characters in the subject.
    subject_prefixes : tuple[tuple[str, ...], ...]
        Prefix groups; the first entry of each group is the bucket name. The
        first group is the "no prefix" bucket.
    positions : tuple[str, ...]
        Labels for the owner's position on the To/Cc lines.
    previous_unread : tuple[str, ...]
        Labels for the count of earlier unread messages in a conversation.
    automated_sender_markers : tuple[str, ...]
        Substrings that mark a sender as automated.
    bias_value : float
        Constant emitted by the bias feature.
    """

    body_word_count_bins: tuple[int, ...] = (0, 1, 2, 3, 4, 6, 8, 16, 32, 64, 128)
    body_char_length_bins: tuple[int, ...] = (0, 4, 8, 16, 32, 64, 128, 256, 512, 1023)
    subject_word_count_bins: tuple[int, ...] = (0, 1, 2, 4, 8)
    subject_char_length_bins: tuple[int, ...] = (0, 2, 4, 8, 16, 32, 64)

    subject_prefixes: tuple[tuple[str, ...], ...] = (
        ("no prefix",),
        ("re",),
        ("fw", "fwd"),
    )
    positions: tuple[str, ...] = (
        "NotOnToOrCcLine",
        "FirstOnToLine",
        "SecondOnToLine",
        "ThirdOrLaterOnToLine",
        "FirstOnCcLine",
        "SecondOrLaterOnCcLine",
    )
    previous_unread: tuple[str, ...] = (
        "NoPrevious",
        "NoUnread",
        "OneUnread",
        "TwoUnread",
        "ThreeOrMoreUnread",
    )
    automated_sender_markers: tuple[str, ...] = (
        "noreply",
        "no-reply",
        "notreply",
        "not-reply",
        "auto",
    )
    bias_value: float = -math.sqrt(10)


DEFAULT_FEATURE_CONFIG = FeatureConfig()
