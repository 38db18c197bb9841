"""
Tests for structural reduction of Petri nets.
"""

import pytest

from process_algebra.model import PetriNetBuilder
from process_algebra.reduce import NetReducer, reduce_net
from process_algebra.replay import ReplayEngine
from process_algebra.translate import causal_net_to_petri_net, dfg_to_petri_net


def _arcs(net):
    return {(arc.source.id, arc.target.id) for arc in net.arcs}


@pytest.fixture
def self_loop_net():
    """start -> T -> end, with a place P both fed and drained by T."""
    return (PetriNetBuilder("self-loop")
            .add_place("start", initial=True)
            .add_place("end", final=True)
            .add_place("P")
            .add_transition("T")
            .connect_place("start", "T")
            .connect_transition("T", "end", "P")
            .connect_place("P", "T")
            .build())


@pytest.fixture
def parallel_silent_net():
    """Two silent transitions between the same places P1 and P2."""
    return (PetriNetBuilder("parallel")
            .add_place("start", initial=True)
            .add_place("P1")
            .add_place("P2")
            .add_place("end", final=True)
            .add_transition("A")
            .add_transition("B")
            .add_transition("t1", silent=True)
            .add_transition("t2", silent=True)
            .connect_place("start", "A")
            .connect_transition("A", "P1")
            .connect_place("P1", "t1", "t2")
            .connect_transition("t1", "P2")
            .connect_transition("t2", "P2")
            .connect_place("P2", "B")
            .connect_transition("B", "end")
            .build())


@pytest.fixture
def silent_chain_net():
    """start -> s1 -> p1 -> A -> p2 -> s2 -> p3 -> s3 -> end, plus a duplicate of p2."""
    return (PetriNetBuilder("chain")
            .add_place("start", initial=True)
            .add_place("p1")
            .add_place("p2")
            .add_place("p2bis")
            .add_place("p3")
            .add_place("end", final=True)
            .add_transition("A")
            .add_transition("s1", silent=True)
            .add_transition("s2", silent=True)
            .add_transition("s3", silent=True)
            .connect_place("start", "s1")
            .connect_transition("s1", "p1")
            .connect_place("p1", "A")
            .connect_transition("A", "p2", "p2bis")
            .connect_place("p2", "s2")
            .connect_place("p2bis", "s2")
            .connect_transition("s2", "p3")
            .connect_place("p3", "s3")
            .connect_transition("s3", "end")
            .build())


class TestReductionRules:
    """Tests for the individual reduction rules."""

    def test_self_loop_place_removed(self, self_loop_net):
        reducer = NetReducer(self_loop_net)

        assert reducer.reduce_self_loops() == 1

        reduced = reducer.build()
        assert "P" not in reduced
        assert _arcs(reduced) == {("start", "T"), ("T", "end")}

    def test_visible_self_loop_kept(self):
        net = (PetriNetBuilder()
               .add_place("p", initial=True)
               .add_transition("T")
               .connect_place("p", "T")
               .connect_transition("T", "p")
               .build())

        assert NetReducer(net).reduce_self_loops() == 0

    def test_silent_self_loop_removed(self):
        net = (PetriNetBuilder()
               .add_place("p", initial=True)
               .add_transition("tau", silent=True)
               .connect_place("p", "tau")
               .connect_transition("tau", "p")
               .build())

        reduced = reduce_net(net)
        assert not reduced.transitions
        assert {p.id for p in reduced.places} == {"p"}

    def test_parallel_silent_transitions_merged(self, parallel_silent_net):
        reducer = NetReducer(parallel_silent_net)

        assert reducer.reduce_parallel() == 1

        reduced = reducer.build()
        assert {t.id for t in reduced.silent_transitions} == {"t1"}
        assert ("P1", "t1") in _arcs(reduced)

    def test_parallel_places_merged(self, silent_chain_net):
        reducer = NetReducer(silent_chain_net)

        assert reducer.reduce_parallel() == 1
        assert "p2bis" not in reducer.build()

    def test_serial_rules(self):
        net = (PetriNetBuilder()
               .add_place("start", initial=True)
               .add_place("p")
               .add_place("end", final=True)
               .add_transition("A")
               .add_transition("tau", silent=True)
               .connect_place("start", "A")
               .connect_transition("A", "p")
               .connect_place("p", "tau")
               .connect_transition("tau", "end")
               .build())

        reducer = NetReducer(net)
        assert reducer.reduce_serial() == 2
        assert _arcs(reducer.build()) == {("start", "A"), ("A", "end")}

    def test_marked_places_never_removed(self):
        net = (PetriNetBuilder()
               .add_place("start", initial=True)
               .add_place("end", final=True)
               .add_transition("tau", silent=True)
               .connect_place("start", "tau")
               .connect_transition("tau", "end")
               .build())

        reduced = reduce_net(net)
        assert {p.id for p in reduced.places} == {"start", "end"}


class TestReduceNet:
    """Tests for reduction to a fixpoint."""

    def test_silent_chain_collapses(self, silent_chain_net):
        reduced = reduce_net(silent_chain_net)

        assert not reduced.silent_transitions
        assert _arcs(reduced) == {("start", "A"), ("A", "end")}

    def test_input_not_modified(self, silent_chain_net):
        before = silent_chain_net.to_dict()
        reduce_net(silent_chain_net)
        assert silent_chain_net.to_dict() == before

    def test_idempotent(self, self_loop_net, parallel_silent_net, silent_chain_net,
                        skip_petri_net, parallel_causal_net, mixed_causal_net, loop_dfg):
        nets = [
            self_loop_net,
            parallel_silent_net,
            silent_chain_net,
            skip_petri_net,
            causal_net_to_petri_net(parallel_causal_net),
            causal_net_to_petri_net(mixed_causal_net),
            dfg_to_petri_net(loop_dfg),
        ]
        for net in nets:
            once = reduce_net(net)
            assert reduce_net(once) == once

    def test_preserves_replay(self, parallel_silent_net):
        reduced = reduce_net(parallel_silent_net)

        for trace, expected in ((["A", "B"], True), (["A"], False), (["B", "A"], False)):
            assert ReplayEngine(parallel_silent_net).fits(trace) is expected
            assert ReplayEngine(reduced).fits(trace) is expected
