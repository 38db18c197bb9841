"""
Process model formalisms.

Immutable value types shared by every algorithm of the library:
- Activities and (weighted) arcs
- Directly-follows graphs
- Causal models (Causal Nets and Causal Matrices)
- Petri nets
"""

from .base import Activity, Arc, ConnectionType, WeightedArc
from .causal import (
    CausalActivity,
    CausalConnections,
    CausalModel,
    CausalModelBuilder,
    FidelityFlag,
    Semantics,
    causal_connections,
    flatten,
    sorted_connections,
    subset_key,
)
from .dfg import DFGBuilder, DirectlyFollowsGraph
from .petrinet import (
    PetriArc,
    PetriNet,
    PetriNetBuilder,
    Place,
    PlaceToTransitionArc,
    Transition,
    TransitionToPlaceArc,
    arc_key,
    make_arc,
)

__all__ = [
    # Base
    "Activity",
    "Arc",
    "ConnectionType",
    "WeightedArc",
    # Directly-follows graphs
    "DirectlyFollowsGraph",
    "DFGBuilder",
    # Causal models
    "CausalActivity",
    "CausalConnections",
    "CausalModel",
    "CausalModelBuilder",
    "FidelityFlag",
    "Semantics",
    "causal_connections",
    "flatten",
    "sorted_connections",
    "subset_key",
    # Petri nets
    "PetriArc",
    "PetriNet",
    "PetriNetBuilder",
    "Place",
    "PlaceToTransitionArc",
    "Transition",
    "TransitionToPlaceArc",
    "arc_key",
    "make_arc",
]
