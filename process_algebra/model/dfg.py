"""
Directly-Follows Graph (DFG) definitions.

A directly-follows graph is a weighted directed graph where an arc ``A -> B``
records that ``B`` immediately followed ``A`` in some observed trace, weighted
by how often it happened.

The filtering algorithms in :mod:`process_algebra.optimize` require DFGs where:
- Exactly one activity has no incoming arc (the root or source)
- Exactly one activity has no outgoing arc (the sink)
- Every activity lies on a directed path from the root to the sink

Graphs themselves do not enforce those properties; they only guarantee that
every arc references activities present in the same graph.
"""

import logging
from collections import deque
from dataclasses import dataclass, replace
from functools import cached_property
from typing import Any, Deque, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from ..exceptions import ActivityNotFoundError, ModelValidationError
from .base import Activity, WeightedArc

logger = logging.getLogger(__name__)

ActivityRef = Union[Activity, str]


@dataclass(frozen=True)
class DirectlyFollowsGraph:
    """
    An immutable weighted directly-follows graph.

    Attributes:
        id: Identifier of the graph
        activities: Activities (vertices) of the graph
        arcs: Weighted arcs between activities of this graph
    """
    id: str
    activities: FrozenSet[Activity]
    arcs: FrozenSet[WeightedArc]

    def __post_init__(self):
        object.__setattr__(self, "activities", frozenset(self.activities))
        object.__setattr__(self, "arcs", frozenset(self.arcs))

        for arc in self.arcs:
            for endpoint in (arc.source, arc.target):
                if endpoint not in self.activities:
                    raise ModelValidationError(
                        f"Arc '{arc}' references activity '{endpoint.id}' "
                        f"which is not in DFG '{self.id}'",
                        endpoint.id
                    )

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Activity):
            return item in self.activities
        if isinstance(item, WeightedArc):
            return item in self.arcs
        if isinstance(item, str):
            return item in self._activities_by_id
        return False

    def __str__(self) -> str:
        lines = [a.id for a in sorted(self.activities)]
        lines += [str(arc) for arc in sorted(self.arcs)]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Indices (computed lazily, the graph never changes)
    # ------------------------------------------------------------------

    @cached_property
    def _activities_by_id(self) -> Dict[str, Activity]:
        return {a.id: a for a in self.activities}

    @cached_property
    def _outgoing(self) -> Dict[Activity, Tuple[WeightedArc, ...]]:
        outgoing: Dict[Activity, List[WeightedArc]] = {a: [] for a in self.activities}
        for arc in sorted(self.arcs):
            outgoing[arc.source].append(arc)
        return {a: tuple(arcs) for a, arcs in outgoing.items()}

    @cached_property
    def _incoming(self) -> Dict[Activity, Tuple[WeightedArc, ...]]:
        incoming: Dict[Activity, List[WeightedArc]] = {a: [] for a in self.activities}
        for arc in sorted(self.arcs):
            incoming[arc.target].append(arc)
        return {a: tuple(arcs) for a, arcs in incoming.items()}

    def _resolve(self, activity: ActivityRef) -> Activity:
        if isinstance(activity, Activity):
            if activity not in self.activities:
                raise ActivityNotFoundError(activity.id, self.id)
            return activity
        return self.get_activity(activity)

    # ------------------------------------------------------------------
    # Lookup and navigation
    # ------------------------------------------------------------------

    def get_activity(self, activity_id: str) -> Activity:
        """
        Get an activity by id.

        Args:
            activity_id: Activity identifier

        Returns:
            The activity

        Raises:
            ActivityNotFoundError: If no activity has that id
        """
        try:
            return self._activities_by_id[activity_id]
        except KeyError:
            raise ActivityNotFoundError(activity_id, self.id) from None

    def outgoing_arcs(self, activity: ActivityRef) -> Tuple[WeightedArc, ...]:
        """Get the arcs leaving an activity, in deterministic order."""
        return self._outgoing[self._resolve(activity)]

    def incoming_arcs(self, activity: ActivityRef) -> Tuple[WeightedArc, ...]:
        """Get the arcs entering an activity, in deterministic order."""
        return self._incoming[self._resolve(activity)]

    def successors(self, activity: ActivityRef) -> Set[Activity]:
        """
        Get the activities with an incoming arc from the given activity.

        Args:
            activity: The activity or its id

        Returns:
            Set of successor activities
        """
        return {arc.target for arc in self.outgoing_arcs(activity)}

    def predecessors(self, activity: ActivityRef) -> Set[Activity]:
        """
        Get the activities with an outgoing arc to the given activity.

        Args:
            activity: The activity or its id

        Returns:
            Set of predecessor activities
        """
        return {arc.source for arc in self.incoming_arcs(activity)}

    def sources(self) -> List[Activity]:
        """
        Get the activities without incoming arcs, ignoring self-loops.

        Returns:
            Sorted list of source activities
        """
        return sorted(
            a for a in self.activities
            if all(arc.is_self_loop for arc in self._incoming[a])
        )

    def sinks(self) -> List[Activity]:
        """
        Get the activities without outgoing arcs, ignoring self-loops.

        Returns:
            Sorted list of sink activities
        """
        return sorted(
            a for a in self.activities
            if all(arc.is_self_loop for arc in self._outgoing[a])
        )

    @property
    def total_weight(self) -> float:
        """Sum of the weights of all arcs."""
        return sum(arc.weight for arc in self.arcs)

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def copy(self, **changes: Any) -> "DirectlyFollowsGraph":
        """Get a copy of this graph with some fields replaced."""
        return replace(self, **changes)

    def invert_weights(self) -> "DirectlyFollowsGraph":
        """Get this graph with the sign of every arc weight flipped."""
        return self.copy(arcs=frozenset(arc.inverted() for arc in self.arcs))

    def reverse(self) -> "DirectlyFollowsGraph":
        """Get this graph with the direction of every arc reversed."""
        return self.copy(arcs=frozenset(arc.reversed() for arc in self.arcs))

    def remove_self_loops(self) -> "DirectlyFollowsGraph":
        """Get this graph without arcs from an activity to itself."""
        return self.copy(
            arcs=frozenset(arc for arc in self.arcs if not arc.is_self_loop)
        )

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def is_connected(self) -> bool:
        """
        Check whether the graph is weakly connected.

        The expansion starts from the lowest activity and follows arcs in
        both directions.

        Returns:
            True if every activity is reached from the seed
        """
        if not self.activities:
            return True
        seed = min(self.activities)
        return self.connected_subgraph(seed).activities == self.activities

    def connected_subgraph(self, start: ActivityRef) -> "DirectlyFollowsGraph":
        """
        Get the weakly connected component containing an activity.

        Args:
            start: The activity the component must contain

        Returns:
            The sub-graph with the reached activities and the arcs among them
        """
        start = self._resolve(start)
        visited: Set[Activity] = {start}
        queue: Deque[Activity] = deque([start])
        while queue:
            node = queue.popleft()
            neighbours = [arc.target for arc in self._outgoing[node]]
            neighbours += [arc.source for arc in self._incoming[node]]
            for neighbour in neighbours:
                if neighbour not in visited:
                    visited.add(neighbour)
                    queue.append(neighbour)

        return DirectlyFollowsGraph(
            id=f"{self.id}-subgraph",
            activities=frozenset(visited),
            arcs=frozenset(
                arc for arc in self.arcs
                if arc.source in visited and arc.target in visited
            ),
        )

    def reachable_from(self, start: ActivityRef) -> FrozenSet[Activity]:
        """
        Get the activities reachable from ``start`` through a directed path.

        ``start`` itself is only included if it lies on a cycle.

        Args:
            start: Activity where the paths begin

        Returns:
            The set of reached activities
        """
        start = self._resolve(start)
        visited: Set[Activity] = set()
        queue: Deque[Activity] = deque([start])
        while queue:
            node = queue.popleft()
            for arc in self._outgoing[node]:
                if arc.target not in visited:
                    visited.add(arc.target)
                    queue.append(arc.target)
        return frozenset(visited)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the graph to a dictionary representation.

        Returns:
            Dictionary representation of the graph
        """
        return {
            "type": "dfg",
            "id": self.id,
            "activities": [a.to_dict() for a in sorted(self.activities)],
            "arcs": [arc.to_dict() for arc in sorted(self.arcs)],
        }


class DFGBuilder:
    """
    Builder for constructing directly-follows graphs.

    Example:
        dfg = (DFGBuilder("orders")
            .add_activity("A", "Register")
            .add_activity("B", "Check")
            .add_activity("C", "Ship")
            .add_arc("A", "B", 10)
            .add_arc("B", "C", 8)
            .build())
    """

    def __init__(self, dfg_id: str = "dfg"):
        """
        Initialize the builder.

        Args:
            dfg_id: Identifier of the graph to build
        """
        self._id = dfg_id
        self._activities: Dict[str, Activity] = {}
        self._arcs: Dict[Tuple[str, str], WeightedArc] = {}

    def add_activity(self, activity_id: str, name: str = "") -> "DFGBuilder":
        """
        Add an activity to the graph.

        Args:
            activity_id: Activity identifier
            name: Human-readable name (defaults to the id)

        Returns:
            Self for method chaining
        """
        self._activities[activity_id] = Activity(activity_id, name)
        return self

    def add_activities(self, activity_ids: Iterable[str]) -> "DFGBuilder":
        """Add several activities named after their ids."""
        for activity_id in activity_ids:
            self.add_activity(activity_id)
        return self

    def add_arc(
        self,
        source_id: str,
        target_id: str,
        weight: float = 1.0
    ) -> "DFGBuilder":
        """
        Add a weighted arc. Adding the same pair again replaces its weight.

        Args:
            source_id: Source activity id
            target_id: Target activity id
            weight: Arc weight

        Returns:
            Self for method chaining

        Raises:
            ActivityNotFoundError: If either activity has not been added
        """
        source = self._activities.get(source_id)
        target = self._activities.get(target_id)

        if source is None:
            raise ActivityNotFoundError(source_id, self._id)
        if target is None:
            raise ActivityNotFoundError(target_id, self._id)

        self._arcs[(source_id, target_id)] = WeightedArc(source, target, weight)
        return self

    def add_sequence(
        self,
        activity_ids: List[str],
        weight: float = 1.0
    ) -> "DFGBuilder":
        """
        Add arcs connecting activities in order: A -> B -> C.

        Args:
            activity_ids: Activity ids in order
            weight: Weight of every created arc

        Returns:
            Self for method chaining
        """
        for source_id, target_id in zip(activity_ids, activity_ids[1:]):
            self.add_arc(source_id, target_id, weight)
        return self

    def build(self, dfg_id: Optional[str] = None) -> DirectlyFollowsGraph:
        """
        Build and return the graph.

        Returns:
            The constructed DirectlyFollowsGraph
        """
        return DirectlyFollowsGraph(
            id=dfg_id or self._id,
            activities=frozenset(self._activities.values()),
            arcs=frozenset(self._arcs.values()),
        )
