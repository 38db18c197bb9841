"""
Cycle detection, extraction and collapsing on directly-follows graphs.

Searches are iterative depth-first walks with an explicit stack, so graphs
of any size can be explored without hitting the recursion limit. Activities
are always explored in their natural order, which makes every result
reproducible.
"""

import logging
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..model.base import Activity, WeightedArc
from ..model.dfg import DirectlyFollowsGraph

logger = logging.getLogger(__name__)


def _forward_cycle(
    dfg: DirectlyFollowsGraph,
    start: Activity
) -> Optional[List[WeightedArc]]:
    """
    Walk forward from ``start`` and return the arcs of the first cycle met.

    Returns:
        The arcs of the closed loop in traversal order, or None
    """
    path: List[WeightedArc] = []
    # Activity -> index in ``path`` of the first arc leaving it
    on_path: Dict[Activity, int] = {start: 0}
    finished: Set[Activity] = set()
    stack: List[Tuple[Activity, Iterator[WeightedArc]]] = [
        (start, iter(dfg.outgoing_arcs(start)))
    ]

    while stack:
        node, pending = stack[-1]
        arc = next(pending, None)

        if arc is None:
            stack.pop()
            del on_path[node]
            finished.add(node)
            if stack:
                path.pop()
            continue

        if arc.target in on_path:
            return path[on_path[arc.target]:] + [arc]
        if arc.target in finished:
            continue

        path.append(arc)
        on_path[arc.target] = len(path)
        stack.append((arc.target, iter(dfg.outgoing_arcs(arc.target))))

    return None


def find_cycle(
    dfg: DirectlyFollowsGraph,
    start: Activity
) -> Optional[DirectlyFollowsGraph]:
    """
    Find a cycle reachable from, or reaching, an activity.

    The walk goes forward first. When no cycle is found that way, the same
    walk runs on the reversed graph and the result is reversed back.

    Args:
        dfg: The graph to explore
        start: Activity where the walk begins

    Returns:
        The cycle as a graph with its activities and arcs, or None
    """
    arcs = _forward_cycle(dfg, start)
    if arcs is None:
        backward = _forward_cycle(dfg.reverse(), start)
        if backward is None:
            return None
        arcs = [arc.reversed() for arc in backward]

    return DirectlyFollowsGraph(
        id=f"{dfg.id}-cycle",
        activities=frozenset(arc.source for arc in arcs),
        arcs=frozenset(arcs),
    )


def get_cycle(dfg: DirectlyFollowsGraph) -> Optional[DirectlyFollowsGraph]:
    """
    Get the first cycle of a graph, trying activities in order.

    Returns:
        A cycle of the graph, or None if the graph is acyclic
    """
    for activity in sorted(dfg.activities):
        cycle = find_cycle(dfg, activity)
        if cycle is not None:
            return cycle
    return None


def has_cycle(dfg: DirectlyFollowsGraph) -> bool:
    """Check whether the graph has any cycle, self-loops included."""
    return get_cycle(dfg) is not None


def collapse_cycle(
    dfg: DirectlyFollowsGraph,
    cycle: DirectlyFollowsGraph,
    activity: Activity
) -> DirectlyFollowsGraph:
    """
    Replace the activities of a cycle with a single activity.

    Arcs with one endpoint inside the cycle are rewired to ``activity``,
    arcs with both endpoints inside are dropped and the rest are kept.

    Args:
        dfg: The graph containing the cycle
        cycle: The cycle to collapse
        activity: The activity replacing the cycle

    Returns:
        The graph with the cycle collapsed
    """
    members = cycle.activities
    arcs = set()
    for arc in dfg.arcs:
        source_inside = arc.source in members
        target_inside = arc.target in members
        if source_inside and target_inside:
            continue
        if source_inside:
            arc = WeightedArc(activity, arc.target, arc.weight)
        elif target_inside:
            arc = WeightedArc(arc.source, activity, arc.weight)
        arcs.add(arc)

    return dfg.copy(
        activities=(dfg.activities - members) | {activity},
        arcs=frozenset(arcs),
    )


def collapse_all_cycles(dfg: DirectlyFollowsGraph) -> DirectlyFollowsGraph:
    """
    Collapse every cycle of a graph into synthetic activities.

    Self-loops are removed first. Each collapse strictly reduces the number
    of activities, so the loop always ends with an acyclic graph.

    Args:
        dfg: The graph to make acyclic

    Returns:
        An acyclic graph with at most as many activities as ``dfg``
    """
    reduced = dfg.remove_self_loops()
    taken_ids = {a.id for a in dfg.activities}
    counter = 0

    cycle = get_cycle(reduced)
    while cycle is not None:
        while f"cycle-{counter}" in taken_ids:
            counter += 1
        collapsed = Activity(f"cycle-{counter}")
        taken_ids.add(collapsed.id)

        logger.debug(
            f"Collapsing cycle {sorted(a.id for a in cycle.activities)} "
            f"into '{collapsed.id}'"
        )
        reduced = collapse_cycle(reduced, cycle, collapsed).remove_self_loops()
        cycle = get_cycle(reduced)

    return reduced
