"""
Trace replay module.

Provides:
- Best-first replay of activity sequences on Petri nets
- Per-case and per-log replay fitness for any supported formalism
"""

from .checker import (
    LogReplayResult,
    ReplayChecker,
    TraceReplayResult,
    check_replay,
    replay_fitness,
)
from .engine import ReplayEngine, ReplayOutcome, ReplayState

__all__ = [
    # Engine
    "ReplayEngine",
    "ReplayOutcome",
    "ReplayState",
    # Checker
    "ReplayChecker",
    "TraceReplayResult",
    "LogReplayResult",
    "check_replay",
    "replay_fitness",
]
