"""
Arc filtering of directly-follows graphs.

Every filter approximates the maximally-filtered DFG: the subset of arcs
with maximum (or minimum) total weight that still keeps every activity on a
path from the unique source to the unique sink.

Strategies:
- TWE (two-way Edmonds): union of the maximum spanning arborescence rooted
  at the source and the one rooted at the sink on the reversed graph.
- Greedy: drop arcs one by one, lightest first, while soundness holds.
- TWEG: TWE followed by Greedy on its result.
"""

import logging
from collections import Counter
from enum import Enum
from typing import Tuple, Union

from ..exceptions import DFGValidationError
from ..model.base import Activity, WeightedArc
from ..model.dfg import DirectlyFollowsGraph
from .arborescence import spanning_arborescence

logger = logging.getLogger(__name__)


class FilterStrategy(Enum):
    """Available arc filtering strategies."""

    TWE = "twe"
    GREEDY = "greedy"
    TWEG = "tweg"


def _is_sound(dfg: DirectlyFollowsGraph, root: Activity, sink: Activity) -> bool:
    """Every activity is reachable from ``root`` and reaches ``sink``."""
    return (
        dfg.reachable_from(root) == dfg.activities - {root}
        and dfg.reverse().reachable_from(sink) == dfg.activities - {sink}
    )


def check_dfg_correctness(
    dfg: DirectlyFollowsGraph,
    name: str = "DFG"
) -> Tuple[Activity, Activity]:
    """
    Check that a graph can be filtered.

    Properties are checked in order: weak connectivity, a single root, a
    single sink and soundness. Self-loops are ignored.

    Args:
        dfg: The graph to check
        name: Name used in error messages

    Returns:
        The ``(root, sink)`` pair of the graph

    Raises:
        DFGValidationError: Naming the first violated property
    """
    if not dfg.is_connected():
        raise DFGValidationError(f"The {name} is not connected", DFGValidationError.CONNECTED)

    sources = dfg.sources()
    if len(sources) != 1:
        raise DFGValidationError(
            f"The {name} must have exactly one start activity, found "
            f"{[a.id for a in sources]}",
            DFGValidationError.SINGLE_ROOT
        )

    sinks = dfg.sinks()
    if len(sinks) != 1:
        raise DFGValidationError(
            f"The {name} must have exactly one end activity, found "
            f"{[a.id for a in sinks]}",
            DFGValidationError.SINGLE_SINK
        )

    root, sink = sources[0], sinks[0]
    digraph = dfg.remove_self_loops()
    if not _is_sound(digraph, root, sink):
        stranded = sorted(
            (digraph.activities - {root} - digraph.reachable_from(root))
            | (digraph.activities - {sink} - digraph.reverse().reachable_from(sink))
        )
        raise DFGValidationError(
            f"The {name} is not sound: {[a.id for a in stranded]} are not on a "
            f"path from '{root.id}' to '{sink.id}'",
            DFGValidationError.SOUND,
            stranded[0].id
        )

    return root, sink


def filter_edges_twe(dfg: DirectlyFollowsGraph, minimum: bool = False) -> DirectlyFollowsGraph:
    """
    Filter arcs with the two-way Edmonds technique.

    Args:
        dfg: A sound graph with a single root and a single sink
        minimum: Keep the arcs of minimum total weight instead

    Returns:
        The filtered graph, without self-loops

    Raises:
        DFGValidationError: If the graph cannot be filtered
    """
    root, sink = check_dfg_correctness(dfg)
    digraph = dfg.remove_self_loops()
    if minimum:
        digraph = digraph.invert_weights()

    forward = spanning_arborescence(digraph, root)
    backward = spanning_arborescence(digraph.reverse(), sink).reverse()

    filtered = digraph.copy(arcs=forward.arcs | backward.arcs)
    logger.debug(f"TWE kept {len(filtered.arcs)} of {len(dfg.arcs)} arcs of '{dfg.id}'")
    return filtered.invert_weights() if minimum else filtered


def filter_edges_greedy(dfg: DirectlyFollowsGraph, minimum: bool = False) -> DirectlyFollowsGraph:
    """
    Filter arcs greedily, trying the lightest arcs first.

    An arc is dropped only when its source keeps another outgoing arc, its
    target keeps another incoming arc and the graph stays sound without it.

    Args:
        dfg: A sound graph with a single root and a single sink
        minimum: Try the heaviest arcs first, keeping a light graph

    Returns:
        The filtered graph, without self-loops

    Raises:
        DFGValidationError: If the graph cannot be filtered
    """
    root, sink = check_dfg_correctness(dfg)
    digraph = dfg.remove_self_loops()

    def order(arc: WeightedArc):
        return (-arc.weight if minimum else arc.weight, arc.source, arc.target)

    kept = set(digraph.arcs)
    out_degree = Counter(arc.source for arc in kept)
    in_degree = Counter(arc.target for arc in kept)

    for arc in sorted(digraph.arcs, key=order):
        if out_degree[arc.source] <= 1 or in_degree[arc.target] <= 1:
            continue
        candidate = digraph.copy(arcs=frozenset(kept - {arc}))
        if _is_sound(candidate, root, sink):
            kept.discard(arc)
            out_degree[arc.source] -= 1
            in_degree[arc.target] -= 1

    logger.debug(f"Greedy kept {len(kept)} of {len(dfg.arcs)} arcs of '{dfg.id}'")
    return digraph.copy(arcs=frozenset(kept))


def filter_edges_tweg(dfg: DirectlyFollowsGraph, minimum: bool = False) -> DirectlyFollowsGraph:
    """Filter arcs with TWE and then greedily on its result."""
    return filter_edges_greedy(filter_edges_twe(dfg, minimum), minimum)


def filter_edges(
    dfg: DirectlyFollowsGraph,
    strategy: Union[FilterStrategy, str] = FilterStrategy.TWEG,
    minimum: bool = False
) -> DirectlyFollowsGraph:
    """
    Filter the arcs of a graph with the given strategy.

    Args:
        dfg: A sound graph with a single root and a single sink
        strategy: One of ``twe``, ``greedy`` or ``tweg``
        minimum: Keep the arcs of minimum total weight instead

    Returns:
        The filtered graph

    Raises:
        ValueError: If the strategy is unknown
        DFGValidationError: If the graph cannot be filtered
    """
    strategy = FilterStrategy(strategy)
    if strategy == FilterStrategy.TWE:
        return filter_edges_twe(dfg, minimum)
    if strategy == FilterStrategy.GREEDY:
        return filter_edges_greedy(dfg, minimum)
    return filter_edges_tweg(dfg, minimum)
