"""
Translation between process model formalisms.

Provides:
- Directly-follows graph -> Petri net
- Causal Net <-> Petri net
- Causal Net <-> Causal Matrix (with fidelity flags)
- Dispatch between any pair of supported formalisms
"""

from .causal import causal_matrix_to_causal_net, causal_net_to_causal_matrix, causal_net_to_petri_net
from .dfg import causal_model_to_dfg, dfg_to_petri_net
from .dispatch import (
    TRANSLATORS,
    ProcessModel,
    to_causal_matrix,
    to_causal_net,
    to_directly_follows_graph,
    to_petri_net,
    translate,
)
from .petrinet import BindingResolver, petri_net_to_causal_net

__all__ = [
    # Direct translations
    "dfg_to_petri_net",
    "causal_model_to_dfg",
    "causal_net_to_petri_net",
    "causal_net_to_causal_matrix",
    "causal_matrix_to_causal_net",
    "petri_net_to_causal_net",
    "BindingResolver",
    # Dispatch
    "ProcessModel",
    "TRANSLATORS",
    "to_petri_net",
    "to_causal_net",
    "to_causal_matrix",
    "to_directly_follows_graph",
    "translate",
]
