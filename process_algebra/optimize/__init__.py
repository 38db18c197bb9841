"""
Directly-follows graph optimization.

Provides:
- Cycle detection, extraction and collapsing
- Rooted spanning arborescences (Edmonds' algorithm)
- Arc filtering (TWE, Greedy and TWEG)
"""

from .arborescence import arborescence_cycles, spanning_arborescence
from .cycles import collapse_all_cycles, collapse_cycle, find_cycle, get_cycle, has_cycle
from .filtering import (
    FilterStrategy,
    check_dfg_correctness,
    filter_edges,
    filter_edges_greedy,
    filter_edges_twe,
    filter_edges_tweg,
)

__all__ = [
    # Cycles
    "find_cycle",
    "get_cycle",
    "has_cycle",
    "collapse_cycle",
    "collapse_all_cycles",
    # Arborescences
    "arborescence_cycles",
    "spanning_arborescence",
    # Filtering
    "FilterStrategy",
    "check_dfg_correctness",
    "filter_edges",
    "filter_edges_twe",
    "filter_edges_greedy",
    "filter_edges_tweg",
]
