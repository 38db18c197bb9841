"""
Rooted spanning arborescences with Edmonds' algorithm.

An arborescence is a directed tree where every activity except the root has
exactly one incoming arc. The maximum spanning arborescence keeps, among all
arborescences rooted at the given activity, the one with the largest total
weight.

Algorithm:
1. Every activity except the root selects its heaviest incoming arc.
2. If the selection is acyclic it is optimal. Otherwise every cycle of the
   selection is contracted into a synthetic activity. Arcs entering the
   cycle are re-weighted with ``w + min_cycle_arc - w(cycle arc into the
   same target)``, arcs leaving it keep their weight and arcs inside it are
   dropped. The contraction and its arc rewrites are pushed on a stack.
3. Steps 1-2 repeat on the contracted graph.
4. Contractions are undone in reverse order: rewritten arcs are mapped back
   to the originals, and the cycle arcs are re-inserted except the one
   whose target already receives an arc from outside the cycle.
"""

import logging
from typing import Dict, List, Set, Tuple, Union

from ..model.base import Activity, WeightedArc
from ..model.dfg import DirectlyFollowsGraph

logger = logging.getLogger(__name__)

# (synthetic activity, contracted cycle, rewritten arc -> original arc)
Contraction = Tuple[Activity, DirectlyFollowsGraph, Dict[WeightedArc, WeightedArc]]


def _lightest_first(arc: WeightedArc) -> Tuple[float, Activity, Activity]:
    return arc.weight, arc.source, arc.target


def _heaviest_first(arc: WeightedArc) -> Tuple[float, Activity, Activity]:
    return -arc.weight, arc.source, arc.target


def _select_heaviest_incoming(
    digraph: DirectlyFollowsGraph,
    root: Activity
) -> DirectlyFollowsGraph:
    """Keep the heaviest incoming arc of every activity but the root."""
    selected = set()
    for activity in digraph.activities:
        if activity == root:
            continue
        incoming = [arc for arc in digraph.incoming_arcs(activity) if not arc.is_self_loop]
        if incoming:
            # Ties resolve to the lowest source
            selected.add(min(incoming, key=_heaviest_first))
    return digraph.copy(arcs=frozenset(selected))


def arborescence_cycles(arborescence: DirectlyFollowsGraph) -> List[DirectlyFollowsGraph]:
    """
    Get the cycles of a graph where every activity has at most one incoming arc.

    Activities lacking an incoming or an outgoing arc are pruned until none
    is left; every remaining weakly connected component is a cycle.

    Args:
        arborescence: Candidate arborescence

    Returns:
        The cycles, ordered by their lowest activity
    """
    graph = arborescence
    while True:
        sources = {arc.source for arc in graph.arcs}
        targets = {arc.target for arc in graph.arcs}
        kept = sources & targets
        if kept == graph.activities:
            break
        graph = DirectlyFollowsGraph(
            id=graph.id,
            activities=frozenset(kept),
            arcs=frozenset(
                arc for arc in graph.arcs
                if arc.source in kept and arc.target in kept
            ),
        )

    cycles: List[DirectlyFollowsGraph] = []
    visited: Set[Activity] = set()
    for activity in sorted(graph.activities):
        if activity in visited:
            continue
        cycle = graph.connected_subgraph(activity)
        visited |= cycle.activities
        cycles.append(cycle)
    return cycles


def _contract(
    digraph: DirectlyFollowsGraph,
    cycle: DirectlyFollowsGraph,
    collapsed: Activity
) -> Tuple[DirectlyFollowsGraph, Dict[WeightedArc, WeightedArc]]:
    members = cycle.activities
    min_arc = min(cycle.arcs, key=_lightest_first)
    feeding = {arc.target: arc for arc in cycle.arcs}

    history: Dict[WeightedArc, WeightedArc] = {}
    arcs = set()
    for arc in sorted(digraph.arcs):
        source_inside = arc.source in members
        target_inside = arc.target in members

        if not source_inside and not target_inside:
            arcs.add(arc)
        elif target_inside and not source_inside:
            new_arc = WeightedArc(
                arc.source,
                collapsed,
                arc.weight + min_arc.weight - feeding[arc.target].weight
            )
            history[new_arc] = arc
            arcs.add(new_arc)
        elif source_inside and not target_inside:
            new_arc = WeightedArc(collapsed, arc.target, arc.weight)
            history[new_arc] = arc
            arcs.add(new_arc)

    contracted = DirectlyFollowsGraph(
        id=digraph.id,
        activities=(digraph.activities - members) | {collapsed},
        arcs=frozenset(arcs),
    )
    return contracted, history


def spanning_arborescence(
    dfg: DirectlyFollowsGraph,
    root: Union[Activity, str],
    minimum: bool = False
) -> DirectlyFollowsGraph:
    """
    Get the spanning arborescence of maximum total weight rooted at ``root``.

    Args:
        dfg: The graph to span
        root: Root activity (or its id)
        minimum: Search for the arborescence of minimum total weight instead

    Returns:
        The arborescence, with the activities of ``dfg`` and a subset of its arcs

    Raises:
        ActivityNotFoundError: If the root is not in the graph
    """
    root = dfg.get_activity(root if isinstance(root, str) else root.id)
    digraph = dfg.invert_weights() if minimum else dfg

    contractions: List[Contraction] = []
    taken_ids = {a.id for a in dfg.activities}
    counter = 0

    arborescence = _select_heaviest_incoming(digraph, root)
    cycles = arborescence_cycles(arborescence)
    while cycles:
        for cycle in cycles:
            while f"cycle{counter}" in taken_ids:
                counter += 1
            collapsed = Activity(f"cycle{counter}")
            taken_ids.add(collapsed.id)

            digraph, history = _contract(digraph, cycle, collapsed)
            contractions.append((collapsed, cycle, history))
            logger.debug(
                f"Contracted cycle {sorted(a.id for a in cycle.activities)} "
                f"into '{collapsed.id}' ({len(history)} arcs rewritten)"
            )

        arborescence = _select_heaviest_incoming(digraph, root)
        cycles = arborescence_cycles(arborescence)

    # Expand the contracted cycles, last contracted first
    for collapsed, cycle, history in reversed(contractions):
        arcs = {history.get(arc, arc) for arc in arborescence.arcs}
        targets = {arc.target for arc in arcs}
        arcs |= {arc for arc in cycle.arcs if arc.target not in targets}
        arborescence = arborescence.copy(
            activities=(arborescence.activities - {collapsed}) | cycle.activities,
            arcs=frozenset(arcs),
        )

    return arborescence.invert_weights() if minimum else arborescence
