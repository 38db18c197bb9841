"""
Petri net reduction.

Removes redundant places and silent transitions with self-loop, parallel
and serial rules applied to a fixpoint.
"""

from .reducer import NetReducer, reduce_net

__all__ = ["NetReducer", "reduce_net"]
