"""
Trace replay on Petri nets.

Decides whether a Petri net can produce exactly a given sequence of visible
activities, starting from its initial marking and ending in its final
marking. The decision is a best-first search over replay states guided by
the number of visible activities still to be fired.
"""

import itertools
import logging
import time
from dataclasses import dataclass
from heapq import heappop, heappush
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from ..exceptions import ReplayTimeoutError
from ..model.petrinet import PetriNet, Place, Transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayState:
    """
    A node of the replay search.

    Attributes:
        tokens: Places holding a token
        fired: Ids of the visible transitions fired so far, in order
    """
    tokens: FrozenSet[Place]
    fired: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReplayOutcome:
    """
    Result of replaying one trace.

    Attributes:
        fits: Whether the net reproduces the trace exactly
        explored_states: Number of states expanded by the search
        unknown_activities: Trace activities without a visible transition
    """
    fits: bool
    explored_states: int = 0
    unknown_activities: Tuple[str, ...] = ()


class ReplayEngine:
    """
    Replays traces of activity ids on a Petri net.

    The engine only reads the net, so one engine can replay traces from
    several threads at once.

    Example:
        engine = ReplayEngine(net)
        engine.fits(["A", "B", "D"])
    """

    def __init__(self, net: PetriNet):
        """
        Initialize the engine.

        Args:
            net: The Petri net to replay traces on
        """
        self.net = net
        self._transitions: List[Transition] = sorted(net.transitions)
        self._inputs: Dict[Transition, FrozenSet[Place]] = {
            t: frozenset(net.preset(t)) for t in self._transitions
        }
        self._outputs: Dict[Transition, FrozenSet[Place]] = {
            t: frozenset(net.postset(t)) for t in self._transitions
        }
        self._visible_ids: FrozenSet[str] = frozenset(t.id for t in net.visible_transitions)
        self._final: FrozenSet[Place] = net.final_places

    def initial_state(self) -> ReplayState:
        """The state with a token in every initial place and nothing fired."""
        return ReplayState(self.net.initial_places)

    def enabled(self, state: ReplayState) -> List[Transition]:
        """Get the transitions whose input places all hold a token."""
        return [t for t in self._transitions if self._inputs[t] <= state.tokens]

    def fire(self, state: ReplayState, transition: Transition) -> ReplayState:
        """
        Fire a transition.

        Tokens are removed from its input places and added to its output
        places. Visible transitions are appended to the fired sequence.

        Returns:
            The new state
        """
        tokens = (state.tokens - self._inputs[transition]) | self._outputs[transition]
        fired = state.fired if transition.is_silent else state.fired + (transition.id,)
        return ReplayState(tokens, fired)

    @staticmethod
    def is_dead(state: ReplayState, trace: Sequence[str]) -> bool:
        """Whether the fired sequence can no longer become the trace."""
        fired = state.fired
        return len(fired) > len(trace) or tuple(trace[:len(fired)]) != fired

    def is_goal(self, state: ReplayState, trace: Sequence[str]) -> bool:
        """Whether the state is the final marking after firing the whole trace."""
        return state.tokens == self._final and state.fired == tuple(trace)

    def unknown_activities(self, trace: Iterable[str]) -> List[str]:
        """Get the activities of a trace without a visible transition, in order."""
        unknown: List[str] = []
        for activity in trace:
            if activity not in self._visible_ids and activity not in unknown:
                unknown.append(activity)
        return unknown

    def replay(self, trace: Sequence[str], timeout: Optional[float] = None) -> ReplayOutcome:
        """
        Search for a firing sequence reproducing the trace.

        Args:
            trace: Activity ids in execution order
            timeout: Wall-clock budget in seconds, None for no limit

        Returns:
            The outcome of the replay

        Raises:
            ReplayTimeoutError: If the search exceeds ``timeout``
        """
        trace = tuple(trace)
        unknown = self.unknown_activities(trace)
        if unknown:
            logger.debug(f"Trace rejected without search, unknown activities: {unknown}")
            return ReplayOutcome(fits=False, unknown_activities=tuple(unknown))

        deadline = time.monotonic() + timeout if timeout is not None else None
        # Ties are broken by insertion order
        counter = itertools.count()
        start = self.initial_state()
        frontier: List[Tuple[int, int, ReplayState]] = [(len(trace), next(counter), start)]
        visited: Set[ReplayState] = set()

        while frontier:
            if deadline is not None and time.monotonic() >= deadline:
                raise ReplayTimeoutError(timeout, len(visited))

            _, _, state = heappop(frontier)
            if state in visited:
                continue
            visited.add(state)

            if self.is_goal(state, trace):
                logger.debug(f"Trace fits after exploring {len(visited)} states")
                return ReplayOutcome(fits=True, explored_states=len(visited))

            for transition in self.enabled(state):
                successor = self.fire(state, transition)
                if successor in visited or self.is_dead(successor, trace):
                    continue
                remaining = len(trace) - len(successor.fired)
                heappush(frontier, (remaining, next(counter), successor))

        logger.debug(f"Trace does not fit, {len(visited)} states explored")
        return ReplayOutcome(fits=False, explored_states=len(visited))

    def fits(self, trace: Sequence[str], timeout: Optional[float] = None) -> bool:
        """
        Check whether the net reproduces the trace exactly.

        Args:
            trace: Activity ids in execution order
            timeout: Wall-clock budget in seconds, None for no limit

        Returns:
            True if the trace fits the net

        Raises:
            ReplayTimeoutError: If the search exceeds ``timeout``
        """
        return self.replay(trace, timeout).fits
