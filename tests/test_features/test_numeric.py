from __future__ import annotations

import numpy as np
import pytest

from inbox_features.errors import InvalidBinConfigurationError, NotConfiguredError
from inbox_features.features import (
    BodyLength,
    BodyWordCount,
    SubjectLength,
    SubjectWordCount,
    bin_label,
    validate_bins,
)


class TestValidateBins:
    def test_accepts_ascending_integers(self) -> None:
        assert validate_bins([5, 10, 100]) == (5, 10, 100)
        assert validate_bins(np.array([0.0, 2.0])) == (0, 2)

    @pytest.mark.parametrize(
        "bins",
        [[], [3, 2], [1, 1], [1.5, 3], [[1, 2], [3, 4]], [0, float("inf")]],
    )
    def test_rejects(self, bins) -> None:
        with pytest.raises(InvalidBinConfigurationError):
            validate_bins(bins, feature="BodyLength")

    def test_constructor_validates(self) -> None:
        with pytest.raises(ValueError):
            BodyLength(bins=[10, 5])


class TestBinLabels:
    def test_ranges(self) -> None:
        labels = [bin_label((5, 10, 100), i) for i in range(4)]
        assert labels == ["5", "6-10", "11-100", ">100"]

    def test_consecutive_bounds_collapse(self) -> None:
        labels = [bin_label((0, 1, 2, 4), i) for i in range(5)]
        assert labels == ["0", "1", "2", "3-4", ">4"]

    def test_exclusive_bounds(self) -> None:
        labels = [bin_label((5, 10), i, upper_inclusive=False) for i in range(3)]
        assert labels == ["4", "5-9", ">9"]


class TestNumericFeature:
    def test_buckets_include_overflow(self) -> None:
        feature = BodyLength(bins=[5, 10, 100])
        feature.configure()
        assert feature.feature_names == ["5", "6-10", "11-100", ">100"]
        assert [b.payload for b in feature.buckets] == [5, 10, 100, None]

    @pytest.mark.parametrize(
        ("length", "index"),
        [(0, 0), (5, 0), (6, 1), (7, 1), (10, 1), (11, 2), (100, 2), (101, 3), (1000, 3)],
    )
    def test_first_match(self, user, make_message, length: int, index: int) -> None:
        feature = BodyLength(bins=[5, 10, 100])
        feature.configure()
        (pair,) = feature.compute(user, make_message(body="x" * length))
        assert pair.bucket.index == index
        assert pair.value == 1.0

    def test_default_bins(self) -> None:
        feature = BodyWordCount()
        feature.configure()
        assert feature.count == 12
        assert feature.feature_names[:7] == ["0", "1", "2", "3", "4", "5-6", "7-8"]
        assert feature.feature_names[-1] == ">128"

    def test_subject_measures_ignore_prefix(self, user, make_message) -> None:
        length, words = SubjectLength(), SubjectWordCount()
        length.configure()
        words.configure()
        message = make_message(subject="RE: Lunch plans")
        assert length.measure(message) == len("Lunch plans")
        assert words.measure(message) == 2
        assert words.select_bucket(user, message).name == "2"
        assert length.select_bucket(user, message).name == "9-16"

    def test_not_configured(self) -> None:
        with pytest.raises(NotConfiguredError):
            BodyLength().bucket_index(3)


class _BodyLengthBelow(BodyLength):
    upper_inclusive = False


class TestExclusiveBounds:
    @pytest.mark.parametrize(
        ("length", "name"),
        [(0, "4"), (4, "4"), (5, "5-9"), (9, "5-9"), (10, ">9"), (50, ">9")],
    )
    def test_value_below_bound(self, user, make_message, length: int, name: str) -> None:
        feature = _BodyLengthBelow(bins=[5, 10])
        feature.configure()
        assert feature.feature_names == ["4", "5-9", ">9"]
        assert feature.select_bucket(user, make_message(body="x" * length)).name == name

    def test_direction_survives_restore(self) -> None:
        feature = _BodyLengthBelow(bins=[5, 10])
        feature.configure()
        copy = _BodyLengthBelow()
        copy.restore_state(feature.export_state())
        assert copy.bucket_index(5) == 1
        assert copy.bucket_index(10) == 2


class TestConfigureIdempotence:
    def test_configure_twice(self) -> None:
        feature = BodyLength()
        feature.configure()
        before = [(b.index, b.name) for b in feature.buckets]
        feature.configure()
        assert [(b.index, b.name) for b in feature.buckets] == before
        assert [b.index for b in feature.buckets] == list(range(feature.count))
