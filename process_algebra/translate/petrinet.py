"""
Translation of Petri nets to Causal Nets.

The bindings of a visible transition are read from the places around it. A
place is an OR between the transitions on its other side, and the places
of a transition are combined with an AND (cartesian product) to form the
causal net subsets.

Silent transitions are first treated as regular ones and then replaced by
their own bindings, obtained recursively. For a transition with one input
place fed by ``A`` and another fed by the silent ``S1``, the combination is
``{{A, S1}}``. If ``S1`` resolves to ``{{B}, {C}}`` the final bindings are
``{{A, B}, {A, C}}``.

A chain of silent transitions can close a loop. Every recursive call
receives the silent ids already being resolved by its callers; those ids
are neither resolved again nor added to the bindings, since the loop is
already accounted for by the caller.
"""

import logging
from typing import Dict, FrozenSet, List, Set, Tuple

from ..model.base import ConnectionType
from ..model.causal import CausalActivity, CausalConnections, CausalModel, Semantics
from ..model.petrinet import PetriNet, Place, Transition

logger = logging.getLogger(__name__)

ResolutionKey = Tuple[ConnectionType, str, FrozenSet[str]]


class BindingResolver:
    """
    Resolves the causal net bindings of the transitions of a Petri net.

    Results are memoized by direction, transition id and the set of silent
    transitions being resolved by the callers.
    """

    def __init__(self, net: PetriNet):
        """
        Initialize the resolver.

        Args:
            net: The Petri net to read bindings from
        """
        self.net = net
        self._cache: Dict[ResolutionKey, CausalConnections] = {}

    def _places(self, direction: ConnectionType, transition: Transition) -> List[Place]:
        if direction == ConnectionType.INPUT:
            return sorted(self.net.preset(transition))
        return sorted(self.net.postset(transition))

    def _transitions(self, direction: ConnectionType, place: Place) -> List[Transition]:
        if direction == ConnectionType.INPUT:
            return sorted(self.net.preset(place))
        return sorted(self.net.postset(place))

    def connections(
        self,
        direction: ConnectionType,
        transition_id: str,
        explored: FrozenSet[str] = frozenset()
    ) -> CausalConnections:
        """
        Get the causal net bindings of a transition.

        Args:
            direction: Inputs or outputs
            transition_id: Id of the transition
            explored: Silent transitions being resolved by the callers

        Returns:
            The bindings as causal connections of visible transition ids

        Raises:
            TransitionNotFoundError: If the net has no such transition
        """
        key = (direction, transition_id, explored)
        if key not in self._cache:
            self._cache[key] = self._resolve(direction, transition_id, explored)
        return self._cache[key]

    def _resolve(
        self,
        direction: ConnectionType,
        transition_id: str,
        explored: FrozenSet[str]
    ) -> CausalConnections:
        transition = self.net.get_transition(transition_id)
        silent_connections: Dict[str, CausalConnections] = {}

        # One list of OR options per place
        places_options: List[List[FrozenSet[str]]] = []
        for place in self._places(direction, transition):
            transitions = self._transitions(direction, place)

            pending = [
                t.id for t in transitions
                if t.is_silent and t.id not in silent_connections and t.id not in explored
            ]
            place_explored = explored | frozenset(pending)
            for silent_id in pending:
                silent_connections[silent_id] = self.connections(direction, silent_id, place_explored)

            places_options.append([
                frozenset([t.id]) for t in transitions if t.id not in explored
            ])

        # Cartesian product of the options of every place
        combinations: Set[FrozenSet[str]] = {frozenset()}
        previous: Set[str] = set()
        for options in places_options:
            place_ids = {element for option in options for element in option}
            current = combinations
            combinations = set()
            for option in options:
                if option & previous:
                    # Already combined: extend only the combinations sharing it
                    combinations |= {c | option for c in current if c & option}
                else:
                    combinations |= {option | c for c in current if not (c & place_ids)}
            previous |= place_ids

        # Replace silent ids with their own bindings
        result: Set[FrozenSet[str]] = set()
        for combination in combinations:
            if not combination:
                continue
            expanded = {combination}
            for silent_id in sorted(combination.intersection(silent_connections)):
                expanded = {
                    (subset | replacement) - {silent_id}
                    for subset in expanded
                    if silent_id in subset
                    for replacement in silent_connections[silent_id]
                }
            result |= expanded

        return frozenset(result)


def petri_net_to_causal_net(net: PetriNet) -> CausalModel:
    """
    Translate a Petri net to a Causal Net.

    Every visible transition becomes an activity whose inputs and outputs
    are resolved through the places around it and, recursively, through the
    silent transitions reached.

    Args:
        net: The Petri net to translate

    Returns:
        The Causal Net
    """
    resolver = BindingResolver(net)
    activities = frozenset(
        CausalActivity(
            transition.id,
            resolver.connections(ConnectionType.INPUT, transition.id),
            resolver.connections(ConnectionType.OUTPUT, transition.id),
            transition.name,
        )
        for transition in sorted(net.visible_transitions)
    )
    logger.debug(f"Resolved bindings of {len(activities)} activities of '{net.id}'")
    return CausalModel(id=net.id, activities=activities, semantics=Semantics.NET)
