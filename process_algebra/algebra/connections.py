"""
Conversion of causal connections between Causal Net and Causal Matrix encodings.

A Causal Net reads ``{{0, 1}, {2}}`` as "0 and 1, or 2" (OR of ANDs) while a
Causal Matrix reads it as "0 or 1, and 2" (AND of ORs). Not every Causal Net
binding can be written as a Causal Matrix and vice versa, so every
conversion returns its result together with the approximations it needed.

Net -> Matrix, e.g. ``[[0, 1], [0, 2, 3], [4, 5, 6], [0, 7, 8]]``:

1. Take the first element not combined yet, ``0``. Drop the subsets holding
   it and remove from the rest any element sharing a subset with it. Combine
   what is left, ``[4, 5, 6]``, and add ``0``::

       [[0, 4], [0, 5], [0, 6]]

2. Next element, ``1``. Removing ``[0, 1]`` leaves ``[[2, 3], [4, 5, 6],
   [7, 8]]``. Every element of ``[4, 5, 6]`` was already combined, so only
   ``4`` is used::

       [[1, 2, 4, 7], [1, 2, 4, 8], [1, 3, 4, 7], [1, 3, 4, 8]]

3. Every element is combined, the result is the union of both steps.

Special cases:
- A subset emptied by the removal (it is contained in another subset, or
  three or more subsets depend on each other cyclically, as in
  ``[[0, 1], [1, 2], [2, 0]]``) cannot be represented: behavior is lost.
- When subsets to combine share elements, some combinations are filtered
  out and the result accepts combinations absent from the net: behavior is
  added.
- When no exact combination holds an element, the one mixing the fewest
  subsets is kept so that no activity disappears; behavior is lost.

Matrix -> Net is a cartesian product that skips subsets already satisfied
by an element of the partial combination and elements seen in previous
subsets. For ``[[1, 2, 3], [1, 2, 4]]`` it yields ``[[1], [2], [3, 4]]``.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Set

from ..model.causal import (
    CausalConnections,
    FidelityFlag,
    causal_connections,
    flatten,
    sorted_connections,
    subset_key,
)


@dataclass(frozen=True)
class ConnectionConversion:
    """
    Result of converting causal connections between encodings.

    Attributes:
        connections: The converted connections
        flags: Approximations introduced by the conversion
    """
    connections: CausalConnections
    flags: FrozenSet[FidelityFlag] = frozenset()

    @property
    def behavior_lost(self) -> bool:
        return FidelityFlag.BEHAVIOR_LOST in self.flags

    @property
    def behavior_added(self) -> bool:
        return FidelityFlag.BEHAVIOR_ADDED in self.flags

    @property
    def is_exact(self) -> bool:
        return not self.flags


def _flags(lost: bool, added: bool) -> FrozenSet[FidelityFlag]:
    flags = set()
    if lost:
        flags.add(FidelityFlag.BEHAVIOR_LOST)
    if added:
        flags.add(FidelityFlag.BEHAVIOR_ADDED)
    return frozenset(flags)


def _overlapping_subsets(
    subsets: List[FrozenSet[str]],
    combination: FrozenSet[str],
    together: FrozenSet[str]
) -> int:
    """Number of subsets contributing more than one element to a combination."""
    return sum(
        1 for subset in subsets
        if len(subset & combination) > 1 and not subset <= together
    )


def _ordered_elements(subsets: List[FrozenSet[str]]) -> List[str]:
    """Elements in order of first appearance over the sorted subsets."""
    elements = {}
    for subset in subsets:
        for element in sorted(subset):
            elements.setdefault(element, None)
    return list(elements)


def to_causal_matrix_connections(connections: Iterable[Iterable[str]]) -> ConnectionConversion:
    """
    Convert connections from Causal Net (OR of ANDs) to Causal Matrix
    (AND of ORs) encoding.

    Args:
        connections: Connections in Causal Net encoding

    Returns:
        The Causal Matrix connections and the approximations introduced
    """
    subsets = sorted_connections(connections)
    lost = False
    added = False
    result: Set[FrozenSet[str]] = set()
    combined: Set[str] = set()

    for element in _ordered_elements(subsets):
        if element in combined:
            continue

        containing = [s for s in subsets if element in s]
        together = flatten(containing)

        combinations: Set[FrozenSet[str]] = {frozenset()}
        for subset in subsets:
            if element in subset:
                continue
            reduced = subset - together
            if not reduced:
                # Contained in another subset, or part of a cyclic dependency
                lost = True
                continue
            if reduced <= combined:
                reduced = frozenset([min(reduced)])
            combinations = {
                combination | {item}
                for combination in combinations
                for item in reduced
            }

        # Every subset must contribute exactly one element, unless it lies
        # entirely inside the subsets holding ``element``
        kept = {
            combination | {element}
            for combination in combinations
            if all(
                len(subset & (combination | {element})) == 1 or subset <= together
                for subset in subsets
            )
        }

        if not kept:
            # No exact combination holds ``element``: keep the one breaking
            # the fewest subsets so the element is not dropped
            lost = True
            kept = {min(
                (combination | {element} for combination in combinations),
                key=lambda c: (_overlapping_subsets(subsets, c, together), subset_key(c)),
            )}
        elif len(combinations) > len(kept) and flatten(combinations) | {element} != flatten(kept):
            added = True

        result |= kept
        combined |= flatten(kept)

    return ConnectionConversion(frozenset(result), _flags(lost, added))


def to_causal_net_connections(connections: Iterable[Iterable[str]]) -> ConnectionConversion:
    """
    Convert connections from Causal Matrix (AND of ORs) to Causal Net
    (OR of ANDs) encoding.

    Args:
        connections: Connections in Causal Matrix encoding

    Returns:
        The Causal Net connections and the approximations introduced
    """
    subsets = sorted_connections(connections)
    if not subsets:
        return ConnectionConversion(causal_connections())

    lost = False
    combinations: Set[FrozenSet[str]] = {frozenset()}
    previous: Set[str] = set()

    for subset in subsets:
        extended: Set[FrozenSet[str]] = set()
        for combination in combinations:
            if combination & subset:
                extended.add(combination)
                continue
            candidates = [item for item in sorted(subset) if item not in previous]
            if not candidates:
                # The combination cannot satisfy this subset any more
                lost = True
            extended.update(combination | {item} for item in candidates)
        combinations = extended
        previous |= subset

    # Elements made redundant by earlier subsets still get a binding
    added = False
    for element in sorted(flatten(subsets) - flatten(combinations)):
        base = min(combinations, key=subset_key) if combinations else frozenset()
        combinations.add(base | {element})
        added = True

    return ConnectionConversion(frozenset(combinations), _flags(lost, added))
