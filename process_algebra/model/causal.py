"""
Causal model definitions.

A causal model describes, for every activity, which activities it depends on
(inputs) and which depend on it (outputs). Connections are stored as a set of
subsets of activity ids. The same shape has two dual readings:

- Causal Net (``Semantics.NET``): OR of ANDs. Outputs ``{{B, C}, {D}}`` mean
  "fire B and C together, or fire D".
- Causal Matrix (``Semantics.MATRIX``): AND of ORs. Outputs ``{{B, C}, {D}}``
  mean "fire one of B or C, and also D".

An empty set of connections marks the start activity (no inputs) or the end
activity (no outputs).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from functools import cached_property
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from ..exceptions import ActivityNotFoundError, ArcNotFoundError, ModelValidationError
from .base import Activity, Arc, ConnectionType

CausalConnections = FrozenSet[FrozenSet[str]]


class Semantics(Enum):
    """Interpretation of the causal connections of a model."""

    NET = "causal_net"        # OR of ANDs
    MATRIX = "causal_matrix"  # AND of ORs


class FidelityFlag(Enum):
    """Non-fatal approximation introduced by a conversion between formalisms."""

    BEHAVIOR_LOST = "behavior_lost"
    BEHAVIOR_ADDED = "behavior_added"


def causal_connections(subsets: Iterable[Iterable[str]] = ()) -> CausalConnections:
    """
    Build causal connections from any iterable of iterables of ids.

    Args:
        subsets: The subsets of activity ids

    Returns:
        Connections as a frozenset of frozensets
    """
    return frozenset(frozenset(subset) for subset in subsets)


def subset_key(subset: Iterable[str]) -> Tuple[int, Tuple[str, ...]]:
    """Deterministic ordering of connection subsets: smaller first, then lexicographic."""
    items = tuple(sorted(subset))
    return (len(items), items)


def sorted_connections(connections: Iterable[Iterable[str]]) -> List[FrozenSet[str]]:
    """Get the subsets of some connections in deterministic order."""
    return sorted((frozenset(s) for s in connections), key=subset_key)


def flatten(connections: Iterable[Iterable[str]]) -> FrozenSet[str]:
    """Get every id present in any subset."""
    return frozenset(element for subset in connections for element in subset)


@dataclass(frozen=True)
class CausalActivity:
    """
    An activity of a causal model with its input and output connections.

    Attributes:
        id: Identifier, unique within a model
        inputs: Subsets of ids of the activities this one depends on
        outputs: Subsets of ids of the activities depending on this one
        name: Human-readable name (defaults to the id)
    """
    id: str
    inputs: CausalConnections = frozenset()
    outputs: CausalConnections = frozenset()
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "inputs", causal_connections(self.inputs))
        object.__setattr__(self, "outputs", causal_connections(self.outputs))
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def __lt__(self, other: "CausalActivity") -> bool:
        return (self.id, self.name) < (other.id, other.name)

    @property
    def activity(self) -> Activity:
        """The plain activity behind this causal activity."""
        return Activity(self.id, self.name)

    def connections(self, direction: ConnectionType) -> CausalConnections:
        """Get the inputs or the outputs of the activity."""
        return self.inputs if direction == ConnectionType.INPUT else self.outputs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "inputs": [sorted(s) for s in sorted_connections(self.inputs)],
            "outputs": [sorted(s) for s in sorted_connections(self.outputs)],
        }


@dataclass(frozen=True)
class CausalModel:
    """
    An immutable causal model.

    The semantics tag only changes how the connections are read; the stored
    shape is the same for nets and matrices.

    Attributes:
        id: Identifier of the model
        activities: Causal activities of the model
        semantics: Whether connections are read as a Causal Net or a Causal Matrix
        fidelity: Approximations introduced when this model was produced by a
            conversion (not part of equality)
    """
    id: str
    activities: FrozenSet[CausalActivity]
    semantics: Semantics = Semantics.NET
    fidelity: FrozenSet[FidelityFlag] = field(default=frozenset(), compare=False)

    def __post_init__(self):
        object.__setattr__(self, "activities", frozenset(self.activities))
        object.__setattr__(self, "fidelity", frozenset(self.fidelity))
        self._validate()

    def _validate(self) -> None:
        ids: Set[str] = set()
        for activity in self.activities:
            if activity.id in ids:
                raise ModelValidationError(
                    f"Duplicate activity id '{activity.id}' in causal model '{self.id}'",
                    activity.id
                )
            ids.add(activity.id)

        for activity in self.activities:
            referenced = flatten(activity.inputs) | flatten(activity.outputs)
            unknown = sorted(referenced - ids)
            if unknown:
                raise ModelValidationError(
                    f"Activity '{activity.id}' references unknown activity "
                    f"'{unknown[0]}' in causal model '{self.id}'",
                    unknown[0]
                )

    @property
    def is_net(self) -> bool:
        return self.semantics == Semantics.NET

    @property
    def is_matrix(self) -> bool:
        return self.semantics == Semantics.MATRIX

    @cached_property
    def _activities_by_id(self) -> Dict[str, CausalActivity]:
        return {a.id: a for a in self.activities}

    # ------------------------------------------------------------------
    # Derived structure
    # ------------------------------------------------------------------

    @property
    def start_activity(self) -> CausalActivity:
        """
        The activity without inputs.

        Raises:
            ModelValidationError: If no activity lacks inputs
        """
        candidates = sorted(a for a in self.activities if not a.inputs)
        if not candidates:
            raise ModelValidationError(f"Causal model '{self.id}' has no start activity")
        return candidates[0]

    @property
    def end_activity(self) -> CausalActivity:
        """
        The activity without outputs.

        Raises:
            ModelValidationError: If no activity lacks outputs
        """
        candidates = sorted(a for a in self.activities if not a.outputs)
        if not candidates:
            raise ModelValidationError(f"Causal model '{self.id}' has no end activity")
        return candidates[0]

    @cached_property
    def arcs(self) -> FrozenSet[Arc]:
        """One arc from each input activity to the activity declaring it."""
        arcs = set()
        for activity in self.activities:
            for input_id in flatten(activity.inputs):
                source = self._activities_by_id[input_id]
                arcs.add(Arc(source.activity, activity.activity))
        return frozenset(arcs)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._activities_by_id
        if isinstance(item, (Activity, CausalActivity)):
            return item.id in self._activities_by_id
        if isinstance(item, Arc):
            return (item.source.id, item.target.id) in self
        if isinstance(item, tuple) and len(item) == 2:
            source_id, target_id = item
            return (
                source_id in self._activities_by_id
                and target_id in self._activities_by_id
                and target_id in flatten(self._activities_by_id[source_id].outputs)
                and source_id in flatten(self._activities_by_id[target_id].inputs)
            )
        return False

    def get_activity(self, activity: Union[str, Activity]) -> CausalActivity:
        """
        Get a causal activity by id.

        Args:
            activity: Activity id or an activity with that id

        Returns:
            The causal activity

        Raises:
            ActivityNotFoundError: If the model has no such activity
        """
        activity_id = activity if isinstance(activity, str) else activity.id
        try:
            return self._activities_by_id[activity_id]
        except KeyError:
            raise ActivityNotFoundError(activity_id, self.id) from None

    def get_arc(self, arc: Union[Tuple[str, str], Arc]) -> Arc:
        """
        Get the arc between two activities.

        Both ends must list each other: the source in the inputs of the
        target and the target in the outputs of the source.

        Args:
            arc: ``(source_id, target_id)`` pair or an Arc

        Returns:
            The arc between both activities

        Raises:
            ArcNotFoundError: If the arc is not present in the model
        """
        if isinstance(arc, Arc):
            arc = (arc.source.id, arc.target.id)
        if arc not in self:
            raise ArcNotFoundError(f"{arc[0]} -> {arc[1]}", self.id)
        source_id, target_id = arc
        return Arc(
            self._activities_by_id[source_id].activity,
            self._activities_by_id[target_id].activity
        )

    def is_connected(self) -> bool:
        """
        Check if every activity is linked to every other one through inputs
        or outputs, starting the expansion from the lowest activity.

        Returns:
            True if the model is connected
        """
        if not self.activities:
            return True

        seed = min(self.activities)
        reached = {seed.id}
        to_explore = [seed]
        while to_explore:
            current = to_explore.pop()
            for connection_id in sorted(flatten(current.inputs) | flatten(current.outputs)):
                if connection_id not in reached:
                    reached.add(connection_id)
                    to_explore.append(self._activities_by_id[connection_id])

        return len(reached) == len(self.activities)

    def copy(self, **changes: Any) -> "CausalModel":
        """Get a copy of this model with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the model to a dictionary representation.

        Returns:
            Dictionary representation of the model
        """
        return {
            "type": self.semantics.value,
            "id": self.id,
            "activities": [a.to_dict() for a in sorted(self.activities)],
            "fidelity": sorted(flag.value for flag in self.fidelity),
        }


class CausalModelBuilder:
    """
    Builder for constructing causal models.

    Example:
        net = (CausalModelBuilder("orders")
            .add_activity("A", outputs=[["B", "C"], ["D"]])
            .add_activity("B", inputs=[["A"]], outputs=[["E"]])
            ...
            .build())
    """

    def __init__(self, model_id: str = "causal", semantics: Semantics = Semantics.NET):
        self._id = model_id
        self._semantics = semantics
        self._activities: Dict[str, CausalActivity] = {}

    def add_activity(
        self,
        activity_id: str,
        inputs: Iterable[Iterable[str]] = (),
        outputs: Iterable[Iterable[str]] = (),
        name: str = ""
    ) -> "CausalModelBuilder":
        """
        Add an activity with its connections.

        Args:
            activity_id: Activity identifier
            inputs: Subsets of ids of input activities
            outputs: Subsets of ids of output activities
            name: Human-readable name (defaults to the id)

        Returns:
            Self for method chaining
        """
        self._activities[activity_id] = CausalActivity(
            activity_id,
            causal_connections(inputs),
            causal_connections(outputs),
            name
        )
        return self

    def build(self, model_id: Optional[str] = None) -> CausalModel:
        """
        Build and return the causal model.

        Returns:
            The constructed CausalModel

        Raises:
            ModelValidationError: If a connection references an activity
                that was never added
        """
        return CausalModel(
            id=model_id or self._id,
            activities=frozenset(self._activities.values()),
            semantics=self._semantics,
        )
