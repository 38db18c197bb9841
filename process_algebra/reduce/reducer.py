"""
Structural reduction of Petri nets.

Removes places and silent transitions that do not change the behavior of a
net. Three rules are applied in turn until a full pass changes nothing:

- Self-loop: a silent transition (or a place) with the same predecessors and
  successors. Firing it leaves the marking unchanged.
- Parallel: silent transitions (or places) with exactly the same
  predecessors and successors. One of them is enough.
- Serial: ``place -> silent`` (or ``silent -> place``) where the first node
  has only that outgoing arc and the second only that incoming arc. Both are
  removed and the predecessors of the first are wired to the successors of
  the second.

Places of the initial or final marking are never removed. Every successful
rule removes at least one node, so the reduction always terminates.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Set, Tuple

from ..model.petrinet import (
    Node,
    PetriNet,
    Place,
    Transition,
    make_arc,
)

logger = logging.getLogger(__name__)


class NetReducer:
    """
    Mutable working copy of a Petri net being reduced.

    Example:
        reduced = NetReducer(net).reduce()
    """

    def __init__(self, net: PetriNet):
        """
        Initialize the reducer.

        Args:
            net: The Petri net to reduce (left untouched)
        """
        self.net_id = net.id
        self.places: Set[Place] = set(net.places)
        self.transitions: Set[Transition] = set(net.transitions)
        self.pre: Dict[Node, Set[Node]] = {n: set() for n in self.places | self.transitions}
        self.post: Dict[Node, Set[Node]] = {n: set() for n in self.places | self.transitions}
        for arc in net.arcs:
            self._connect(arc.source, arc.target)

    # ------------------------------------------------------------------
    # Graph editing
    # ------------------------------------------------------------------

    def _connect(self, source: Node, target: Node) -> None:
        self.post[source].add(target)
        self.pre[target].add(source)

    def _remove(self, node: Node) -> None:
        for predecessor in self.pre.pop(node):
            self.post[predecessor].discard(node)
        for successor in self.post.pop(node):
            self.pre[successor].discard(node)
        if isinstance(node, Place):
            self.places.discard(node)
        else:
            self.transitions.discard(node)

    def _silent_transitions(self) -> List[Transition]:
        return sorted(t for t in self.transitions if t.is_silent)

    def _removable_places(self) -> List[Place]:
        return sorted(p for p in self.places if not p.is_initial and not p.is_final)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def reduce_self_loops(self) -> int:
        """
        Remove silent transitions and places whose predecessors equal their
        successors.

        Returns:
            Number of removed nodes
        """
        removed = 0
        for transition in self._silent_transitions():
            if self.pre[transition] == self.post[transition]:
                self._remove(transition)
                removed += 1
        for place in self._removable_places():
            if self.pre[place] == self.post[place]:
                self._remove(place)
                removed += 1
        return removed

    def reduce_parallel(self) -> int:
        """
        Keep a single silent transition (or place) among those sharing their
        predecessors and successors. The lowest id is kept.

        Returns:
            Number of removed nodes
        """
        removed = 0

        transition_groups: Dict[Tuple, List[Transition]] = defaultdict(list)
        for transition in self._silent_transitions():
            signature = (frozenset(self.pre[transition]), frozenset(self.post[transition]))
            transition_groups[signature].append(transition)
        for group in transition_groups.values():
            for transition in group[1:]:
                self._remove(transition)
                removed += 1

        # Marked places only merge with places of the same marking
        place_groups: Dict[Tuple, List[Place]] = defaultdict(list)
        for place in sorted(self.places):
            signature = (
                frozenset(self.pre[place]),
                frozenset(self.post[place]),
                place.is_initial,
                place.is_final,
            )
            place_groups[signature].append(place)
        for group in place_groups.values():
            for place in group[1:]:
                self._remove(place)
                removed += 1

        return removed

    def reduce_serial(self) -> int:
        """
        Collapse ``place -> silent`` and ``silent -> place`` chains.

        Returns:
            Number of removed nodes
        """
        removed = 0

        for place in self._removable_places():
            if place not in self.places or len(self.post[place]) != 1:
                continue
            transition = next(iter(self.post[place]))
            if (
                not transition.is_silent
                or self.pre[transition] != {place}
                or transition in self.pre[place]
            ):
                continue

            inputs = set(self.pre[place])
            outputs = set(self.post[transition])
            self._remove(place)
            self._remove(transition)
            for source in inputs:
                for target in outputs:
                    self._connect(source, target)
            removed += 2

        for transition in self._silent_transitions():
            if transition not in self.transitions or len(self.post[transition]) != 1:
                continue
            place = next(iter(self.post[transition]))
            if (
                place.is_initial
                or place.is_final
                or self.pre[place] != {transition}
                or place in self.pre[transition]
            ):
                continue

            inputs = set(self.pre[transition])
            outputs = set(self.post[place])
            self._remove(transition)
            self._remove(place)
            for source in inputs:
                for target in outputs:
                    self._connect(source, target)
            removed += 2

        return removed

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def build(self) -> PetriNet:
        """Get the current state as an immutable Petri net."""
        arcs = frozenset(
            make_arc(source, target)
            for source, targets in self.post.items()
            for target in targets
        )
        return PetriNet(
            id=self.net_id,
            places=frozenset(self.places),
            transitions=frozenset(self.transitions),
            arcs=arcs,
        )

    def reduce(self) -> PetriNet:
        """
        Apply self-loop, parallel and serial reductions until nothing changes.

        Returns:
            The reduced Petri net
        """
        passes = 0
        total = 0
        while True:
            passes += 1
            changed = self.reduce_self_loops()
            changed += self.reduce_parallel()
            changed += self.reduce_serial()
            total += changed
            if not changed:
                break

        logger.debug(
            f"Reduced Petri net '{self.net_id}' in {passes} passes, "
            f"{total} nodes removed"
        )
        return self.build()


def reduce_net(net: PetriNet) -> PetriNet:
    """
    Reduce a Petri net to a fixpoint of the self-loop, parallel and serial rules.

    Args:
        net: The Petri net to reduce

    Returns:
        The reduced Petri net
    """
    return NetReducer(net).reduce()

