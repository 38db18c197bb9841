"""
Shared value types of every process model formalism.

Activities are the observable units of work. Arcs connect two activities and,
in directly-follows graphs, carry a weight (a frequency or a cost).
All types are immutable; transformations return new values.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict


class ConnectionType(Enum):
    """Direction of a connection relative to an activity."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True, order=True)
class Activity:
    """
    An activity of a process model.

    Activities are immutable and compared by ``(id, name)``. The same order
    is used as deterministic tie-breaker wherever an algorithm needs to pick
    a "first" activity.

    Attributes:
        id: Identifier, unique within a model
        name: Human-readable name (defaults to the id)
    """
    id: str
    name: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def __str__(self) -> str:
        return f"{self.id} : {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True, order=True)
class Arc:
    """
    An unweighted directed arc between two activities.

    Attributes:
        source: The source activity
        target: The target activity
    """
    source: Activity
    target: Activity

    def __str__(self) -> str:
        return f"{self.source.id} -> {self.target.id}"


@dataclass(frozen=True, order=True)
class WeightedArc:
    """
    A directed arc carrying a weight.

    The weight is a frequency or a cost. Flipping its sign turns a
    maximization problem into a minimization one.

    Attributes:
        source: The source activity
        target: The target activity
        weight: Arc weight
    """
    source: Activity
    target: Activity
    weight: float = 1.0

    def __post_init__(self):
        # Aggregators frequently hand over numpy scalars
        object.__setattr__(self, "weight", float(self.weight))

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def reversed(self) -> "WeightedArc":
        """Get the same arc pointing the other way."""
        return WeightedArc(self.target, self.source, self.weight)

    def inverted(self) -> "WeightedArc":
        """Get the same arc with the sign of its weight flipped."""
        return replace(self, weight=-self.weight)

    def __str__(self) -> str:
        return f"{self.source.id} -> {self.target.id} ({self.weight:g})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source.id,
            "target": self.target.id,
            "weight": self.weight,
        }
