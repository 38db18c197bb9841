"""
Process Model Graph Algebra

This library models business-process executions as interchangeable graph
formalisms (directly-follows graphs, causal nets, causal matrices and Petri
nets) and provides the algebra to transform, optimize and validate them
against observed execution traces.
"""

__version__ = "0.1.0"
__author__ = "Process Algebra Team"

# Default configuration
DEFAULT_CONFIG = {
    "filter_strategy": "tweg",  # "twe", "greedy" or "tweg"
    "minimize_weight": False,
    "replay_timeout": None,  # seconds per trace, None = no limit
    "replay_workers": 1,
    "log_level": "WARNING",
}
