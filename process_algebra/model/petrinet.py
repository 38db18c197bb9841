"""
Petri net (bipartite place/transition graph) definitions.

Arcs always connect a place with a transition, never two nodes of the same
kind. Transitions are either visible (labeled with an activity) or silent
(routing only). The initial marking puts one token in every initial place;
the net completes when exactly the final places hold a token.
"""

from dataclasses import dataclass, replace
from functools import cached_property
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple, Union

from ..exceptions import (
    ElementNotFoundError,
    ModelValidationError,
    PlaceNotFoundError,
    TransitionNotFoundError,
)
from .base import Activity


@dataclass(frozen=True, order=True)
class Place:
    """
    A place of a Petri net.

    Attributes:
        id: Identifier, unique among the places of a net
        name: Human-readable name (defaults to the id)
        is_initial: Whether the place holds a token in the initial marking
        is_final: Whether the place holds a token in the final marking
    """
    id: str
    name: str = ""
    is_initial: bool = False
    is_final: bool = False

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "initial": self.is_initial,
            "final": self.is_final,
        }


@dataclass(frozen=True, order=True)
class Transition:
    """
    A transition of a Petri net.

    Attributes:
        id: Identifier, unique among the transitions of a net
        name: Human-readable name (defaults to the id)
        is_silent: Whether the transition has no observable activity
    """
    id: str
    name: str = ""
    is_silent: bool = False

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "silent": self.is_silent}


Node = Union[Place, Transition]


@dataclass(frozen=True)
class PlaceToTransitionArc:
    """An arc consuming a token from a place."""
    source: Place
    target: Transition

    def __post_init__(self):
        if not isinstance(self.source, Place) or not isinstance(self.target, Transition):
            raise ModelValidationError(
                f"Arc {self.source!r} -> {self.target!r} must go from a place to a transition"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source.id, "target": self.target.id}


@dataclass(frozen=True)
class TransitionToPlaceArc:
    """An arc producing a token in a place."""
    source: Transition
    target: Place

    def __post_init__(self):
        if not isinstance(self.source, Transition) or not isinstance(self.target, Place):
            raise ModelValidationError(
                f"Arc {self.source!r} -> {self.target!r} must go from a transition to a place"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source.id, "target": self.target.id}


PetriArc = Union[PlaceToTransitionArc, TransitionToPlaceArc]


def arc_key(arc: PetriArc) -> Tuple[str, str, str]:
    """Deterministic ordering of Petri net arcs."""
    kind = "pt" if isinstance(arc, PlaceToTransitionArc) else "tp"
    return (kind, arc.source.id, arc.target.id)


def make_arc(source: Node, target: Node) -> PetriArc:
    """
    Create the arc matching the kinds of both nodes.

    Raises:
        ModelValidationError: If both nodes are of the same kind
    """
    if isinstance(source, Place):
        return PlaceToTransitionArc(source, target)
    return TransitionToPlaceArc(source, target)


@dataclass(frozen=True)
class PetriNet:
    """
    An immutable Petri net.

    Attributes:
        id: Identifier of the net
        places: Places of the net
        transitions: Visible and silent transitions of the net
        arcs: Arcs between places and transitions of this net
    """
    id: str
    places: FrozenSet[Place]
    transitions: FrozenSet[Transition]
    arcs: FrozenSet[PetriArc]

    def __post_init__(self):
        object.__setattr__(self, "places", frozenset(self.places))
        object.__setattr__(self, "transitions", frozenset(self.transitions))
        object.__setattr__(self, "arcs", frozenset(self.arcs))
        self._validate()

    def _validate(self) -> None:
        for nodes, kind in ((self.places, "place"), (self.transitions, "transition")):
            ids = [node.id for node in nodes]
            if len(ids) != len(set(ids)):
                duplicated = sorted(i for i in set(ids) if ids.count(i) > 1)[0]
                raise ModelValidationError(
                    f"Duplicate {kind} id '{duplicated}' in Petri net '{self.id}'",
                    duplicated
                )

        for arc in self.arcs:
            if not isinstance(arc, (PlaceToTransitionArc, TransitionToPlaceArc)):
                raise ModelValidationError(f"Unsupported arc {arc!r} in Petri net '{self.id}'")
            for node in (arc.source, arc.target):
                if node not in self.places and node not in self.transitions:
                    raise ModelValidationError(
                        f"Arc {arc.source.id} -> {arc.target.id} references node "
                        f"'{node.id}' which is not in Petri net '{self.id}'",
                        node.id
                    )

    # ------------------------------------------------------------------
    # Indices
    # ------------------------------------------------------------------

    @cached_property
    def _places_by_id(self) -> Dict[str, Place]:
        return {p.id: p for p in self.places}

    @cached_property
    def _transitions_by_id(self) -> Dict[str, Transition]:
        return {t.id: t for t in self.transitions}

    @cached_property
    def _presets(self) -> Dict[Node, FrozenSet[Node]]:
        presets: Dict[Node, set] = {n: set() for n in self.places | self.transitions}
        for arc in self.arcs:
            presets[arc.target].add(arc.source)
        return {n: frozenset(s) for n, s in presets.items()}

    @cached_property
    def _postsets(self) -> Dict[Node, FrozenSet[Node]]:
        postsets: Dict[Node, set] = {n: set() for n in self.places | self.transitions}
        for arc in self.arcs:
            postsets[arc.source].add(arc.target)
        return {n: frozenset(s) for n, s in postsets.items()}

    def _resolve(self, node: Union[Node, str]) -> Node:
        if isinstance(node, Place):
            if node not in self.places:
                raise PlaceNotFoundError(node.id, self.id)
            return node
        if isinstance(node, Transition):
            if node not in self.transitions:
                raise TransitionNotFoundError(node.id, self.id)
            return node
        if node in self._places_by_id:
            return self._places_by_id[node]
        if node in self._transitions_by_id:
            return self._transitions_by_id[node]
        raise ElementNotFoundError(node, self.id)

    # ------------------------------------------------------------------
    # Derived structure
    # ------------------------------------------------------------------

    @cached_property
    def activities(self) -> FrozenSet[Activity]:
        """The visible transitions, as activities."""
        return frozenset(
            Activity(t.id, t.name) for t in self.transitions if not t.is_silent
        )

    @property
    def visible_transitions(self) -> FrozenSet[Transition]:
        return frozenset(t for t in self.transitions if not t.is_silent)

    @property
    def silent_transitions(self) -> FrozenSet[Transition]:
        return frozenset(t for t in self.transitions if t.is_silent)

    @property
    def initial_places(self) -> FrozenSet[Place]:
        return frozenset(p for p in self.places if p.is_initial)

    @property
    def final_places(self) -> FrozenSet[Place]:
        return frozenset(p for p in self.places if p.is_final)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Place):
            return item in self.places
        if isinstance(item, Transition):
            return item in self.transitions
        if isinstance(item, (PlaceToTransitionArc, TransitionToPlaceArc)):
            return item in self.arcs
        if isinstance(item, str):
            return item in self._places_by_id or item in self._transitions_by_id
        return False

    def get_place(self, place_id: str) -> Place:
        """
        Get a place by id.

        Raises:
            PlaceNotFoundError: If the net has no such place
        """
        try:
            return self._places_by_id[place_id]
        except KeyError:
            raise PlaceNotFoundError(place_id, self.id) from None

    def get_transition(self, transition_id: str) -> Transition:
        """
        Get a transition by id.

        Raises:
            TransitionNotFoundError: If the net has no such transition
        """
        try:
            return self._transitions_by_id[transition_id]
        except KeyError:
            raise TransitionNotFoundError(transition_id, self.id) from None

    def preset(self, node: Union[Node, str]) -> FrozenSet[Node]:
        """
        Get the nodes with an arc towards the given node.

        Args:
            node: A place, a transition or an id (places are looked up first)

        Returns:
            The predecessors of the node
        """
        return self._presets[self._resolve(node)]

    def postset(self, node: Union[Node, str]) -> FrozenSet[Node]:
        """
        Get the nodes with an arc from the given node.

        Args:
            node: A place, a transition or an id (places are looked up first)

        Returns:
            The successors of the node
        """
        return self._postsets[self._resolve(node)]

    def copy(self, **changes: Any) -> "PetriNet":
        """Get a copy of this net with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the net to a dictionary representation.

        Returns:
            Dictionary representation of the net
        """
        return {
            "type": "petri_net",
            "id": self.id,
            "places": [p.to_dict() for p in sorted(self.places)],
            "transitions": [t.to_dict() for t in sorted(self.transitions)],
            "arcs": [arc.to_dict() for arc in sorted(self.arcs, key=arc_key)],
        }


class PetriNetBuilder:
    """
    Builder for constructing Petri nets.

    Arcs are recorded by node id and resolved on ``build()``, so a node can
    be redefined (e.g. marked as initial) after being connected.

    Example:
        net = (PetriNetBuilder("orders")
            .add_place("start", initial=True)
            .add_place("end", final=True)
            .add_transition("A")
            .connect_place("start", "A")
            .connect_transition("A", "end")
            .build())
    """

    def __init__(self, net_id: str = "petri_net"):
        self._id = net_id
        self._places: Dict[str, Place] = {}
        self._transitions: Dict[str, Transition] = {}
        self._arcs: Dict[Tuple[str, str, str], None] = {}

    def add_place(
        self,
        place_id: str,
        name: str = "",
        initial: bool = False,
        final: bool = False
    ) -> "PetriNetBuilder":
        """
        Add (or redefine) a place.

        Args:
            place_id: Place identifier
            name: Human-readable name (defaults to the id)
            initial: Whether the place is marked initially
            final: Whether the place is marked in the final marking

        Returns:
            Self for method chaining
        """
        self._places[place_id] = Place(place_id, name, initial, final)
        return self

    def add_transition(
        self,
        transition_id: str,
        name: str = "",
        silent: bool = False
    ) -> "PetriNetBuilder":
        """
        Add (or redefine) a transition.

        Args:
            transition_id: Transition identifier
            name: Human-readable name (defaults to the id)
            silent: Whether the transition is silent

        Returns:
            Self for method chaining
        """
        self._transitions[transition_id] = Transition(transition_id, name, silent)
        return self

    def has_place(self, place_id: str) -> bool:
        return place_id in self._places

    def has_transition(self, transition_id: str) -> bool:
        return transition_id in self._transitions

    def connect_place(self, place_id: str, *transition_ids: str) -> "PetriNetBuilder":
        """
        Add arcs from a place to one or more transitions.

        Raises:
            PlaceNotFoundError: If the place has not been added
            TransitionNotFoundError: If a transition has not been added
        """
        if place_id not in self._places:
            raise PlaceNotFoundError(place_id, self._id)
        for transition_id in transition_ids:
            if transition_id not in self._transitions:
                raise TransitionNotFoundError(transition_id, self._id)
            self._arcs[("pt", place_id, transition_id)] = None
        return self

    def connect_transition(self, transition_id: str, *place_ids: str) -> "PetriNetBuilder":
        """
        Add arcs from a transition to one or more places.

        Raises:
            TransitionNotFoundError: If the transition has not been added
            PlaceNotFoundError: If a place has not been added
        """
        if transition_id not in self._transitions:
            raise TransitionNotFoundError(transition_id, self._id)
        for place_id in place_ids:
            if place_id not in self._places:
                raise PlaceNotFoundError(place_id, self._id)
            self._arcs[("tp", transition_id, place_id)] = None
        return self

    def add_arc(self, source_id: str, target_id: str) -> "PetriNetBuilder":
        """
        Add an arc, deciding its kind from the source node.

        The source is looked up among the places first, then among the
        transitions.

        Raises:
            ElementNotFoundError: If the source is neither a place nor a transition
        """
        if source_id in self._places:
            return self.connect_place(source_id, target_id)
        if source_id in self._transitions:
            return self.connect_transition(source_id, target_id)
        raise ElementNotFoundError(source_id, self._id)

    def add_arcs(self, pairs: Iterable[Tuple[str, str]]) -> "PetriNetBuilder":
        """Add several ``(source_id, target_id)`` arcs."""
        for source_id, target_id in pairs:
            self.add_arc(source_id, target_id)
        return self

    def build(self, net_id: str = "") -> PetriNet:
        """
        Build and return the Petri net.

        Returns:
            The constructed PetriNet
        """
        arcs: List[PetriArc] = []
        for kind, source_id, target_id in self._arcs:
            if kind == "pt":
                arcs.append(PlaceToTransitionArc(
                    self._places[source_id], self._transitions[target_id]
                ))
            else:
                arcs.append(TransitionToPlaceArc(
                    self._transitions[source_id], self._places[target_id]
                ))

        return PetriNet(
            id=net_id or self._id,
            places=frozenset(self._places.values()),
            transitions=frozenset(self._transitions.values()),
            arcs=frozenset(arcs),
        )
