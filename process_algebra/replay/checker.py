"""
Replay fitness of event logs against process models.

Replays every case of an event log on a process model and reports which
traces the model reproduces exactly. Any supported formalism is accepted;
the model is translated to a Petri net once and shared, read-only, by all
replays.

Key metrics computed:
- Fits: Whether the model reproduces a trace from its initial to its final marking
- Fitness: Fraction of perfectly fitting traces (0.0 - 1.0)
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..translate import ProcessModel, to_petri_net
from .engine import ReplayEngine

logger = logging.getLogger(__name__)

Event = Union[str, Dict[str, Any]]


@dataclass
class TraceReplayResult:
    """
    Replay result for a single case (process instance).

    Attributes:
        case_id: Identifier for the process instance
        fits: True if the model reproduces the trace exactly
        trace: Activity ids of the trace in execution order
        trace_length: Number of activities replayed
        explored_states: States expanded by the replay search
        unknown_activities: Activities of the trace missing from the model
    """
    case_id: str
    fits: bool
    trace: List[str]
    trace_length: int
    explored_states: int = 0
    unknown_activities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "case_id": self.case_id,
            "fits": self.fits,
            "trace": self.trace,
            "trace_length": self.trace_length,
            "explored_states": self.explored_states,
            "unknown_activities": self.unknown_activities,
        }


@dataclass
class LogReplayResult:
    """
    Aggregated replay results across all cases.

    Attributes:
        model_id: Id of the process model used
        total_cases: Total number of cases replayed
        fitting_cases: Number of cases the model reproduces exactly
        fitness: Fraction of fitting cases (0.0 - 1.0)
        case_results: Individual results for each case
        analysis_timestamp: When the analysis was performed
    """
    model_id: str
    total_cases: int
    fitting_cases: int
    fitness: float
    case_results: List[TraceReplayResult]
    analysis_timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "model_id": self.model_id,
            "total_cases": self.total_cases,
            "fitting_cases": self.fitting_cases,
            "fitness": self.fitness,
            "analysis_timestamp": self.analysis_timestamp.isoformat(),
            "case_results": [r.to_dict() for r in self.case_results],
        }

    def get_non_fitting_cases(self) -> List[TraceReplayResult]:
        """Get cases the model cannot reproduce."""
        return [r for r in self.case_results if not r.fits]


class ReplayChecker:
    """
    Main replay fitness engine.

    Replays event traces on a process model and reports, per case, whether
    the model produces exactly the observed sequence of activities.

    Replays of different traces are independent. With ``max_workers``
    greater than one they run on a thread pool sharing the same net.
    A replay exceeding ``timeout`` raises ReplayTimeoutError; it is never
    counted as a non-fitting trace.

    Example:
        checker = ReplayChecker(causal_net, timeout=5.0)

        # Check a single trace
        result = checker.check_trace(["A", "B", "D"], case_id="CASE001")

        # Check multiple cases
        event_log = [
            {"case_id": "001", "events": [{"activity": "A"}, ...]},
            {"case_id": "002", "events": [...]},
        ]
        results = checker.check_log(event_log)
    """

    def __init__(
        self,
        model: ProcessModel,
        timeout: Optional[float] = None,
        max_workers: int = 1
    ):
        """
        Initialize the replay checker.

        Args:
            model: The process model to replay on, in any formalism
            timeout: Wall-clock budget per trace in seconds, None for no limit
            max_workers: Number of traces replayed concurrently
        """
        self._model = model
        self._net = to_petri_net(model)
        self._engine = ReplayEngine(self._net)
        self._timeout = timeout
        self._max_workers = max(1, max_workers)

    @property
    def model(self) -> ProcessModel:
        """Get the process model."""
        return self._model

    def check_trace(self, trace: Sequence[Event], case_id: str = "") -> TraceReplayResult:
        """
        Replay a single trace.

        Args:
            trace: Activity ids, or events with an 'activity' field
            case_id: Identifier for the process instance

        Returns:
            TraceReplayResult with replay details

        Raises:
            ReplayTimeoutError: If the replay exceeds the timeout
        """
        activities = self._extract_activities(trace)
        outcome = self._engine.replay(activities, self._timeout)

        return TraceReplayResult(
            case_id=case_id,
            fits=outcome.fits,
            trace=activities,
            trace_length=len(activities),
            explored_states=outcome.explored_states,
            unknown_activities=list(outcome.unknown_activities),
        )

    def check_traces(self, cases: List[Tuple[str, Sequence[Event]]]) -> List[TraceReplayResult]:
        """
        Replay several traces, concurrently when configured.

        Args:
            cases: (case id, trace) pairs

        Returns:
            One result per case, in input order
        """
        if self._max_workers == 1 or len(cases) < 2:
            return [self.check_trace(trace, case_id) for case_id, trace in cases]

        logger.debug(f"Replaying {len(cases)} traces on {self._max_workers} threads")
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            return list(executor.map(lambda case: self.check_trace(case[1], case[0]), cases))

    def check_log(
        self,
        event_log: List[Dict[str, Any]],
        case_id_field: str = "case_id",
        events_field: str = "events"
    ) -> LogReplayResult:
        """
        Replay an entire event log.

        The event log should be a list of cases, where each case has
        a case ID and a list of events.

        Args:
            event_log: List of cases with events
            case_id_field: Field name for case ID
            events_field: Field name for events list

        Returns:
            LogReplayResult with aggregated statistics
        """
        cases: List[Tuple[str, Sequence[Event]]] = []

        for case in event_log:
            case_id = str(case.get(case_id_field, f"case_{len(cases)}"))
            events = case.get(events_field, [])

            if not events:
                logger.debug(f"Skipping empty case: {case_id}")
                continue

            cases.append((case_id, events))

        return self._aggregate_results(self.check_traces(cases))

    def check_flat_log(
        self,
        events: List[Dict[str, Any]],
        case_id_field: str = "case_id",
        activity_field: str = "activity",
        timestamp_field: str = "timestamp"
    ) -> LogReplayResult:
        """
        Replay a flat event log.

        A flat log has all events in a single list, with case IDs
        identifying which case each event belongs to. Events of a case are
        replayed in timestamp order; events without a timestamp come first.

        Args:
            events: List of all events
            case_id_field: Field name for case ID
            activity_field: Field name for activity
            timestamp_field: Field name for timestamp

        Returns:
            LogReplayResult with aggregated statistics
        """
        # Group events by case
        cases: Dict[str, List[Dict[str, Any]]] = {}

        for event in events:
            case_id = str(event.get(case_id_field, "unknown"))
            cases.setdefault(case_id, []).append({
                "activity": event.get(activity_field),
                "timestamp": event.get(timestamp_field),
            })

        # Missing timestamps first; stable sort keeps the input order of ties
        for case_events in cases.values():
            case_events.sort(
                key=lambda e: (e.get("timestamp") is not None, e.get("timestamp") or 0)
            )

        event_log = [
            {"case_id": case_id, "events": case_events}
            for case_id, case_events in cases.items()
        ]

        return self.check_log(event_log)

    @staticmethod
    def _extract_activities(trace: Sequence[Event]) -> List[str]:
        """Extract activity ids from a trace."""
        activities = []
        for event in trace:
            if isinstance(event, dict):
                activity = event.get("activity") or event.get("type", "")
            else:
                activity = event
            if activity:
                activities.append(str(activity))
        return activities

    def _aggregate_results(self, case_results: List[TraceReplayResult]) -> LogReplayResult:
        """
        Aggregate individual case results into overall statistics.

        Args:
            case_results: List of individual case results

        Returns:
            Aggregated LogReplayResult
        """
        if not case_results:
            return LogReplayResult(
                model_id=self._net.id,
                total_cases=0,
                fitting_cases=0,
                fitness=0.0,
                case_results=[]
            )

        total_cases = len(case_results)
        fitting_cases = sum(1 for r in case_results if r.fits)

        return LogReplayResult(
            model_id=self._net.id,
            total_cases=total_cases,
            fitting_cases=fitting_cases,
            fitness=round(fitting_cases / total_cases, 4),
            case_results=case_results
        )


def check_replay(
    event_log: List[Dict[str, Any]],
    model: ProcessModel,
    timeout: Optional[float] = None,
    max_workers: int = 1
) -> LogReplayResult:
    """
    Convenience function to replay an event log on a model.

    Args:
        event_log: List of cases with events
        model: Process model to replay on
        timeout: Wall-clock budget per trace in seconds
        max_workers: Number of traces replayed concurrently

    Returns:
        LogReplayResult with analysis results
    """
    checker = ReplayChecker(model, timeout=timeout, max_workers=max_workers)
    return checker.check_log(event_log)


def replay_fitness(
    model: ProcessModel,
    traces: List[Sequence[str]],
    timeout: Optional[float] = None,
    max_workers: int = 1
) -> float:
    """
    Calculate the fraction of traces the model reproduces exactly.

    Args:
        model: Process model to replay on
        traces: Traces as lists of activity ids
        timeout: Wall-clock budget per trace in seconds
        max_workers: Number of traces replayed concurrently

    Returns:
        Fitness between 0.0 and 1.0, 0.0 for an empty list

    Raises:
        ReplayTimeoutError: If a replay exceeds the timeout
    """
    if not traces:
        return 0.0
    checker = ReplayChecker(model, timeout=timeout, max_workers=max_workers)
    results = checker.check_traces([(f"trace_{i}", trace) for i, trace in enumerate(traces)])
    return sum(1 for r in results if r.fits) / len(results)
