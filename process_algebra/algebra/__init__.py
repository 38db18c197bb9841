"""
Causal connection algebra.

Converts causal connections between the Causal Net (OR of ANDs) and the
Causal Matrix (AND of ORs) encodings, reporting lost or added behavior.
"""

from .connections import (
    ConnectionConversion,
    to_causal_matrix_connections,
    to_causal_net_connections,
)

__all__ = [
    "ConnectionConversion",
    "to_causal_matrix_connections",
    "to_causal_net_connections",
]
