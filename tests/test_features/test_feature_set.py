from __future__ import annotations

import numpy as np
import pytest

from inbox_features.domain import Person
from inbox_features.errors import FeatureMismatchError
from inbox_features.features import (
    FEATURE_SETS,
    FeatureConfig,
    FeatureSet,
    FeatureSetType,
    Recipient,
    Sender,
    ToLine,
)


class TestCatalogue:
    def test_single_and_separate(self) -> None:
        assert [f.name for f in FeatureSet.build("Single")] == ["ToLine"]
        assert [f.name for f in FeatureSet.build(FeatureSetType.SEPARATE)] == ["ToLine", "FromManager"]

    def test_with_recipient2_order(self) -> None:
        names = [f.name for f in FeatureSet.build(FeatureSetType.WITH_RECIPIENT2)]
        assert names == [
            "FromMe",
            "ToCcPosition",
            "HasAttachments",
            "BodyLength",
            "SubjectLength",
            "SubjectPrefix",
            "Sender",
            "Recipient",
            "Bias",
        ]

    def test_combined_is_distinct_union(self) -> None:
        combined = FEATURE_SETS[FeatureSetType.COMBINED]
        assert len(combined) == len(set(combined)) == 12
        for set_type, classes in FEATURE_SETS.items():
            assert set(classes) <= set(combined), set_type

    def test_config_overrides_bins(self) -> None:
        config = FeatureConfig(body_char_length_bins=(5, 10, 100))
        feature_set = FeatureSet.build(FeatureSetType.INITIAL, config=config)
        assert feature_set["BodyLength"].feature_names == ["5", "6-10", "11-100", ">100"]

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ValueError):
            FeatureSet("dup", [ToLine(), ToLine()])

    def test_unknown_name(self) -> None:
        with pytest.raises(KeyError):
            FeatureSet.build("Single")["Sender"]


class TestShape:
    def test_offsets_and_lengths(self, user) -> None:
        feature_set = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        offsets = feature_set.offsets()
        assert offsets == {
            "FromMe": 0,
            "ToCcPosition": 1,
            "HasAttachments": 7,
            "BodyLength": 8,
            "SubjectLength": 19,
            "SubjectPrefix": 27,
            "Sender": 31,
            "Recipient": 34,
        }
        assert feature_set.feature_vector_length == 37
        assert feature_set.non_shared_feature_vector_length == 6
        assert feature_set.shared_feature_vector_length == 31
        assert len(feature_set.feature_buckets()) == 37

    def test_describe(self) -> None:
        rows = FeatureSet.build(FeatureSetType.WITH_SUBJECT_PREFIX).descriptions()
        by_name = {row["feature"]: row for row in rows}
        assert by_name["FromMe"]["buckets"] == 1
        assert by_name["Sender"]["buckets"] == "(varies)"
        assert by_name["Sender"]["shared"] is False


class TestToSparse:
    def test_known_message(self, user, alice, make_message) -> None:
        feature_set = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        message = make_message(alice, subject="RE: Lunch", body="x" * 20, has_attachments=True)
        vector = feature_set.to_sparse(user, message)
        assert vector.length == 37
        assert vector.indices.tolist() == [0, 2, 7, 8 + 4, 19 + 3, 27 + 1, 31 + 2, 34 + 1]
        assert vector.values.tolist() == [0.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0]
        dense = vector.to_dense()
        assert dense.shape == (37,)
        assert np.count_nonzero(dense) == 7

    def test_growth_shifts_later_offsets(self, user, bob, make_message) -> None:
        feature_set = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        vector = feature_set.to_sparse(user, make_message(bob))
        offsets = feature_set.offsets()
        assert offsets["Recipient"] == 35
        assert vector.length == 38
        assert 31 + 3 in vector.indices.tolist()
        # Recipient (the owner) is indexed against the grown offsets
        assert vector.indices.tolist()[-1] == 35 + 1

    def test_to_dict(self, user, make_message) -> None:
        vector = FeatureSet.build("Single").to_sparse(user, make_message())
        assert vector.to_dict() == {"indices": [0], "values": [1.0], "length": 1}

    def test_compute_feature_values_shared_only(self, user, make_message) -> None:
        feature_set = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        values = feature_set.compute_feature_values(user, make_message(), include_non_shared=False)
        assert {b.owner for b in values} == {
            "FromMe", "ToCcPosition", "HasAttachments", "BodyLength", "SubjectLength", "SubjectPrefix",
        }


class TestCommunityAndPersonal:
    def test_split(self, user) -> None:
        community = FeatureSet.community(FeatureSetType.WITH_RECIPIENT)
        assert all(not f.per_user for f in community)
        personal = FeatureSet.personal(community, user, FeatureSetType.WITH_RECIPIENT)
        assert [f.name for f in personal][-2:] == ["Sender", "Recipient"]
        assert personal["Sender"].count == 3


class TestCompatibility:
    def test_same_vocabulary_is_compatible(self, user) -> None:
        a = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        b = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        a.check_compatible(b)
        assert a == b

    def test_grown_vocabulary_is_not(self, user, make_message) -> None:
        a = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        b = FeatureSet.build(FeatureSetType.WITH_RECIPIENT, user)
        b.to_sparse(user, make_message(Person(name="Stranger")))
        with pytest.raises(FeatureMismatchError) as exc_info:
            a.check_compatible(b)
        assert exc_info.value.feature == "Sender"
        assert a != b

    def test_different_sets(self) -> None:
        with pytest.raises(FeatureMismatchError):
            FeatureSet.build("Single").check_compatible(FeatureSet.build("Separate"))

    def test_configure_keeps_restored_vocabulary(self, user, bob, make_message) -> None:
        feature_set = FeatureSet("people", [Sender(), Recipient()])
        feature_set.configure(user)
        feature_set.to_sparse(user, make_message(bob))
        feature_set.configure(user)
        assert feature_set["Sender"].count == 4

        carol = Person(name="Carol")
        grown = user.model_copy(update={"contacts": (*user.contacts, carol)})
        feature_set.configure(grown)
        assert feature_set["Sender"].count == 4
        feature_set.configure(grown, reset=True)
        assert feature_set["Sender"].feature_names[-1] == "Carol"
        assert feature_set["Sender"].count == 5
