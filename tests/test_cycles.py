"""
Tests for cycle detection and collapsing on directly-follows graphs.
"""

import pytest

from process_algebra.model import Activity, DFGBuilder
from process_algebra.optimize import (
    collapse_all_cycles,
    collapse_cycle,
    find_cycle,
    get_cycle,
    has_cycle,
)


@pytest.fixture
def nested_loops_dfg():
    """Two loops sharing B, a loop D <-> E and a self-loop on F."""
    return (DFGBuilder("nested")
            .add_activities(["A", "B", "C", "D", "E", "F", "G"])
            .add_arc("A", "B")
            .add_arc("B", "C")
            .add_arc("C", "B")
            .add_arc("C", "A")
            .add_arc("C", "D")
            .add_arc("D", "E")
            .add_arc("E", "D")
            .add_arc("E", "F")
            .add_arc("F", "F")
            .add_arc("F", "G")
            .build())


def _long_chain(length):
    ids = [f"a{i:05d}" for i in range(length)]
    return DFGBuilder("chain").add_activities(ids).add_sequence(ids), ids


class TestFindCycle:
    """Tests for cycle extraction."""

    def test_acyclic_graph(self, diamond_dfg):
        assert get_cycle(diamond_dfg) is None
        assert not has_cycle(diamond_dfg)

    def test_finds_forward_cycle(self, loop_dfg):
        cycle = find_cycle(loop_dfg.remove_self_loops(), loop_dfg.get_activity("A"))

        assert {a.id for a in cycle.activities} == {"B", "C"}
        assert {(arc.source.id, arc.target.id) for arc in cycle.arcs} == {("B", "C"), ("C", "B")}

    def test_finds_cycle_reaching_start(self, loop_dfg):
        # D only reaches itself forward once self-loops are gone; B <-> C is found backwards
        cycle = find_cycle(loop_dfg.remove_self_loops(), loop_dfg.get_activity("D"))
        assert {a.id for a in cycle.activities} == {"B", "C"}

    def test_self_loop_is_a_cycle(self):
        dfg = DFGBuilder().add_activity("A").add_arc("A", "A").build()

        assert has_cycle(dfg)
        assert {a.id for a in get_cycle(dfg).activities} == {"A"}

    def test_cycle_keeps_weights(self, loop_dfg):
        cycle = get_cycle(loop_dfg.remove_self_loops())
        assert sorted(arc.weight for arc in cycle.arcs) == [2.0, 4.0]

    def test_deterministic(self, nested_loops_dfg):
        assert get_cycle(nested_loops_dfg) == get_cycle(nested_loops_dfg)

    def test_long_chain_does_not_recurse(self):
        builder, ids = _long_chain(5000)
        dfg = builder.add_arc(ids[-1], ids[0]).build()

        cycle = get_cycle(dfg)
        assert len(cycle.activities) == 5000


class TestCollapseCycles:
    """Tests for cycle collapsing."""

    def test_collapse_cycle_rewires_boundary_arcs(self, loop_dfg):
        dfg = loop_dfg.remove_self_loops()
        cycle = get_cycle(dfg)
        collapsed = collapse_cycle(dfg, cycle, Activity("loop"))

        pairs = {(arc.source.id, arc.target.id) for arc in collapsed.arcs}
        assert pairs == {("A", "loop"), ("loop", "D")}
        assert {a.id for a in collapsed.activities} == {"A", "loop", "D"}

    def test_collapse_all_cycles_is_acyclic(self, loop_dfg, nested_loops_dfg):
        for dfg in (loop_dfg, nested_loops_dfg):
            collapsed = collapse_all_cycles(dfg)

            assert not has_cycle(collapsed)
            assert len(collapsed.activities) <= len(dfg.activities)

    def test_collapse_all_cycles_names(self, nested_loops_dfg):
        collapsed = collapse_all_cycles(nested_loops_dfg)
        ids = {a.id for a in collapsed.activities}

        assert ids == {"cycle-0", "cycle-1", "F", "G"}

    def test_synthetic_ids_avoid_existing_ones(self):
        dfg = (DFGBuilder()
               .add_activities(["cycle-0", "X"])
               .add_arc("cycle-0", "X")
               .add_arc("X", "cycle-0")
               .build())

        collapsed = collapse_all_cycles(dfg)
        assert {a.id for a in collapsed.activities} == {"cycle-1"}

    def test_acyclic_graph_unchanged(self, diamond_dfg):
        assert collapse_all_cycles(diamond_dfg) == diamond_dfg
