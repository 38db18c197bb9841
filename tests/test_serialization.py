"""
Tests for the dictionary representation of process models.
"""

import json

import numpy as np
import pytest

from process_algebra.exceptions import ActivityNotFoundError, ModelValidationError
from process_algebra.model import CausalModel, DirectlyFollowsGraph, FidelityFlag, PetriNet
from process_algebra.serialization import convert_for_json, model_from_dict, model_to_dict
from process_algebra.translate import causal_net_to_causal_matrix, causal_net_to_petri_net


class TestModelDocuments:
    """Tests for writing and reading model documents."""

    @pytest.mark.parametrize("fixture_name, model_type", [
        ("diamond_dfg", DirectlyFollowsGraph),
        ("loop_dfg", DirectlyFollowsGraph),
        ("mixed_causal_net", CausalModel),
        ("choice_causal_matrix", CausalModel),
        ("skip_petri_net", PetriNet),
    ])
    def test_survives_json(self, fixture_name, model_type, request):
        model = request.getfixturevalue(fixture_name)

        document = json.loads(json.dumps(model_to_dict(model)))
        restored = model_from_dict(document)

        assert isinstance(restored, model_type)
        assert restored == model

    def test_type_field(self, diamond_dfg, parallel_causal_net, choice_causal_matrix, skip_petri_net):
        assert model_to_dict(diamond_dfg)["type"] == "dfg"
        assert model_to_dict(parallel_causal_net)["type"] == "causal_net"
        assert model_to_dict(choice_causal_matrix)["type"] == "causal_matrix"
        assert model_to_dict(skip_petri_net)["type"] == "petri_net"

    def test_translated_net(self, mixed_causal_net):
        net = causal_net_to_petri_net(mixed_causal_net)
        assert model_from_dict(model_to_dict(net)) == net

    def test_fidelity_restored(self):
        document = {
            "type": "causal_matrix",
            "id": "lossy",
            "activities": [
                {"id": "A", "outputs": [["B", "C"]]},
                {"id": "B", "inputs": [["A"]]},
                {"id": "C", "inputs": [["A"]]},
            ],
            "fidelity": ["behavior_lost"],
        }

        model = model_from_dict(document)

        assert model.fidelity == frozenset({FidelityFlag.BEHAVIOR_LOST})
        assert model_to_dict(model)["fidelity"] == ["behavior_lost"]

    def test_conversion_flags_written(self, mixed_causal_net):
        matrix = causal_net_to_causal_matrix(mixed_causal_net)
        assert model_to_dict(matrix)["fidelity"] == []

    def test_defaults(self):
        dfg = model_from_dict({
            "type": "dfg",
            "activities": [{"id": "A"}, {"id": "B"}],
            "arcs": [{"source": "A", "target": "B"}],
        })

        assert dfg.id == "dfg"
        assert dfg.get_activity("A").name == "A"
        assert dfg.total_weight == 1.0


class TestInvalidDocuments:
    """Tests for rejected documents."""

    def test_unknown_type(self):
        with pytest.raises(ModelValidationError) as exc_info:
            model_from_dict({"type": "bpmn"})
        assert "bpmn" in str(exc_info.value)

    def test_missing_type(self):
        with pytest.raises(ModelValidationError):
            model_from_dict({"activities": []})

    def test_not_a_dict(self):
        with pytest.raises(ModelValidationError):
            model_from_dict(["dfg"])

    def test_missing_field(self):
        with pytest.raises(ModelValidationError) as exc_info:
            model_from_dict({
                "type": "dfg",
                "activities": [{"id": "A"}, {"id": "B"}],
                "arcs": [{"source": "A"}],
            })
        assert "target" in str(exc_info.value)

    def test_invalid_weight(self):
        with pytest.raises(ModelValidationError):
            model_from_dict({
                "type": "dfg",
                "activities": [{"id": "A"}, {"id": "B"}],
                "arcs": [{"source": "A", "target": "B", "weight": "heavy"}],
            })

    def test_invalid_fidelity_flag(self):
        with pytest.raises(ModelValidationError):
            model_from_dict({
                "type": "causal_net",
                "activities": [{"id": "A"}],
                "fidelity": ["approximate"],
            })

    def test_undefined_activity(self):
        with pytest.raises(ActivityNotFoundError):
            model_from_dict({
                "type": "dfg",
                "activities": [{"id": "A"}],
                "arcs": [{"source": "A", "target": "Z"}],
            })

    def test_serialize_non_model(self):
        with pytest.raises(ModelValidationError):
            model_to_dict({"type": "dfg"})


class TestConvertForJson:
    """Tests for JSON conversion of numpy and container types."""

    def test_numpy_scalars(self):
        data = convert_for_json({"count": np.int64(3), "ratio": np.float32(0.5), "ok": np.bool_(True)})

        assert data == {"count": 3, "ratio": 0.5, "ok": True}
        assert type(data["count"]) is int
        assert type(data["ok"]) is bool

    def test_arrays_and_sets(self):
        data = convert_for_json({"weights": np.array([1.0, 2.0]), "ids": frozenset({"A"})})
        assert data == {"weights": [1.0, 2.0], "ids": ["A"]}

    def test_keys_become_strings(self):
        assert convert_for_json({1: ("a", "b")}) == {"1": ["a", "b"]}
