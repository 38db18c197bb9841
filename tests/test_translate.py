"""
Tests for translations between process model formalisms.

Tests cover:
- Directly-follows graph -> Petri net
- Causal Net <-> Petri net
- Causal Net <-> Causal Matrix, with fidelity flags
- Dispatch between formalisms
"""

import logging

import pytest

from process_algebra.exceptions import TranslationNotAvailableError
from process_algebra.model import (
    CausalModelBuilder,
    DFGBuilder,
    DirectlyFollowsGraph,
    FidelityFlag,
    PetriNet,
    PetriNetBuilder,
    Semantics,
    causal_connections,
)
from process_algebra.model.base import ConnectionType
from process_algebra.translate import (
    BindingResolver,
    causal_matrix_to_causal_net,
    causal_model_to_dfg,
    causal_net_to_causal_matrix,
    causal_net_to_petri_net,
    dfg_to_petri_net,
    petri_net_to_causal_net,
    to_causal_matrix,
    to_causal_net,
    to_directly_follows_graph,
    to_petri_net,
    translate,
)


def c(*subsets):
    return causal_connections(subsets)


def _connections(model):
    return {a.id: (a.inputs, a.outputs) for a in model.activities}


class TestDFGToPetriNet:
    """Tests for directly-follows graph translation."""

    def test_sequence(self, sequence_dfg):
        net = dfg_to_petri_net(sequence_dfg)

        assert {t.id for t in net.transitions} == {"A", "B", "C"}
        assert {p.id for p in net.initial_places} == {"StartPlace"}
        assert {p.id for p in net.final_places} == {"EndPlace"}
        assert {n.id for n in net.postset("StartPlace")} == {"A"}

    def test_choice_keeps_visible_transitions(self, diamond_dfg):
        net = dfg_to_petri_net(diamond_dfg)

        assert {a.id for a in net.activities} == {"A", "B", "C", "D"}
        assert net.id == diamond_dfg.id

    def test_names_preserved(self):
        dfg = DFGBuilder("named").add_activity("A", "Register").build()

        net = dfg_to_petri_net(dfg)
        assert net.get_transition("A").name == "Register"


class TestCausalNetToPetriNet:
    """Tests for Causal Net -> Petri net translation."""

    def test_parallel_structure(self, parallel_causal_net):
        net = causal_net_to_petri_net(parallel_causal_net)

        assert {t.id for t in net.visible_transitions} == {"A", "B", "C", "D"}
        assert {p.id for p in net.initial_places} == {"IN_A"}
        assert {p.id for p in net.final_places} == {"OUT_D"}
        # The AND split of A produces a token for both branches
        assert len(net.postset("A")) == 2

    @pytest.mark.parametrize("fixture_name", [
        "parallel_causal_net",
        "choice_causal_net",
        "mixed_causal_net",
    ])
    def test_round_trip(self, fixture_name, request):
        model = request.getfixturevalue(fixture_name)
        assert petri_net_to_causal_net(causal_net_to_petri_net(model)) == model


class TestPetriNetToCausalNet:
    """Tests for binding resolution through silent transitions."""

    def test_skip_through_silent_transition(self, skip_petri_net):
        model = petri_net_to_causal_net(skip_petri_net)

        assert model.semantics == Semantics.NET
        assert {a.id for a in model.activities} == {"A", "B", "C"}
        assert model.get_activity("A").outputs == c("B", "C")
        assert model.get_activity("C").inputs == c("B", "A")
        assert model.get_activity("B").inputs == c("A")

    def test_silent_loop_terminates(self):
        net = (PetriNetBuilder("silent-loop")
               .add_place("start", initial=True)
               .add_place("p1")
               .add_place("p2")
               .add_place("end", final=True)
               .add_transition("A")
               .add_transition("B")
               .add_transition("tau1", silent=True)
               .add_transition("tau2", silent=True)
               .connect_place("start", "A")
               .connect_transition("A", "p1")
               .connect_place("p1", "tau1")
               .connect_transition("tau1", "p2")
               .connect_place("p2", "tau2", "B")
               .connect_transition("tau2", "p1")
               .connect_transition("B", "end")
               .build())

        model = petri_net_to_causal_net(net)

        assert model.get_activity("A").outputs == c("B")
        assert model.get_activity("B").inputs == c("A")

    def test_resolver_memoizes(self, skip_petri_net):
        resolver = BindingResolver(skip_petri_net)

        first = resolver.connections(ConnectionType.OUTPUT, "A")
        assert resolver.connections(ConnectionType.OUTPUT, "A") is first


class TestCausalConversions:
    """Tests for Causal Net <-> Causal Matrix translation."""

    def test_net_to_matrix(self, mixed_causal_net):
        matrix = causal_net_to_causal_matrix(mixed_causal_net)

        assert matrix.semantics == Semantics.MATRIX
        assert matrix.get_activity("A").outputs == c("BD", "CD")
        assert matrix.get_activity("E").inputs == c("BD", "CD")
        assert not matrix.fidelity

    def test_matrix_to_net(self, choice_causal_matrix, choice_causal_net):
        net = causal_matrix_to_causal_net(choice_causal_matrix)

        assert net.semantics == Semantics.NET
        assert _connections(net) == _connections(choice_causal_net)

    @pytest.mark.parametrize("fixture_name", [
        "parallel_causal_net",
        "choice_causal_net",
        "mixed_causal_net",
    ])
    def test_round_trip_preserves_disjoint_connections(self, fixture_name, request):
        model = request.getfixturevalue(fixture_name)
        round_trip = causal_matrix_to_causal_net(causal_net_to_causal_matrix(model))

        assert {a.id for a in round_trip.activities} == {a.id for a in model.activities}
        assert round_trip == model

    def test_lossy_conversion_flags_and_warns(self, caplog):
        model = (CausalModelBuilder("lossy")
                 .add_activity("A", outputs=[["B"], ["B", "C"]])
                 .add_activity("B", inputs=[["A"]])
                 .add_activity("C", inputs=[["A"]])
                 .build())

        with caplog.at_level(logging.WARNING, logger="process_algebra.translate.causal"):
            matrix = causal_net_to_causal_matrix(model)

        assert FidelityFlag.BEHAVIOR_LOST in matrix.fidelity
        assert any("not exact" in record.message for record in caplog.records)

    def test_flags_carry_over(self):
        model = (CausalModelBuilder("lossy")
                 .add_activity("A", outputs=[["B"], ["B", "C"]])
                 .add_activity("B", inputs=[["A"]])
                 .add_activity("C", inputs=[["A"]])
                 .build())

        back = causal_matrix_to_causal_net(causal_net_to_causal_matrix(model))
        assert FidelityFlag.BEHAVIOR_LOST in back.fidelity


class TestDispatch:
    """Tests for formalism dispatch."""

    def test_identity(self, diamond_dfg, parallel_causal_net, skip_petri_net):
        assert to_directly_follows_graph(diamond_dfg) is diamond_dfg
        assert to_causal_net(parallel_causal_net) is parallel_causal_net
        assert to_petri_net(skip_petri_net) is skip_petri_net

    def test_every_pair(self, diamond_dfg, parallel_causal_net, choice_causal_matrix, skip_petri_net):
        expected_types = {
            "dfg": DirectlyFollowsGraph,
            "petri_net": PetriNet,
        }
        for model in (diamond_dfg, parallel_causal_net, choice_causal_matrix, skip_petri_net):
            for target in ("dfg", "petri_net", "causal_net", "causal_matrix"):
                result = translate(model, target)

                if target in expected_types:
                    assert isinstance(result, expected_types[target])
                else:
                    assert result.semantics.value == target

    def test_causal_model_to_dfg(self, parallel_causal_net):
        dfg = causal_model_to_dfg(parallel_causal_net)

        assert {(a.source.id, a.target.id) for a in dfg.arcs} == {
            ("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"),
        }
        assert all(arc.weight == 1.0 for arc in dfg.arcs)

    def test_petri_net_to_dfg(self, skip_petri_net):
        dfg = to_directly_follows_graph(skip_petri_net)
        assert {(a.source.id, a.target.id) for a in dfg.arcs} == {
            ("A", "B"), ("A", "C"), ("B", "C"),
        }

    def test_matrix_passthrough(self, choice_causal_matrix):
        assert to_causal_matrix(choice_causal_matrix) is choice_causal_matrix

    def test_unsupported_model(self):
        with pytest.raises(TranslationNotAvailableError) as exc_info:
            to_petri_net("not a model")
        assert "str" in str(exc_info.value)

    def test_unknown_target(self, diamond_dfg):
        with pytest.raises(TranslationNotAvailableError):
            translate(diamond_dfg, "bpmn")
