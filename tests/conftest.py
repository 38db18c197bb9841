"""
Pytest configuration and fixtures for process algebra tests.
"""

import json

import pytest

from process_algebra.model import (
    CausalModelBuilder,
    DFGBuilder,
    PetriNetBuilder,
    Semantics,
)


@pytest.fixture
def diamond_dfg():
    """A -> {B, C} -> D with a heavy upper branch."""
    return (DFGBuilder("diamond")
            .add_activities(["A", "B", "C", "D"])
            .add_arc("A", "B", 3)
            .add_arc("A", "C", 1)
            .add_arc("B", "D", 3)
            .add_arc("C", "D", 1)
            .build())


@pytest.fixture
def sequence_dfg():
    """A -> B -> C."""
    return (DFGBuilder("sequence")
            .add_activities(["A", "B", "C"])
            .add_sequence(["A", "B", "C"], 2)
            .build())


@pytest.fixture
def shortcut_dfg():
    """A -> B -> C with a light shortcut A -> C."""
    return (DFGBuilder("shortcut")
            .add_activities(["A", "B", "C"])
            .add_arc("A", "B", 5)
            .add_arc("B", "C", 5)
            .add_arc("A", "C", 1)
            .build())


@pytest.fixture
def loop_dfg():
    """A -> B <-> C -> D, with a self-loop on D."""
    return (DFGBuilder("loop")
            .add_activities(["A", "B", "C", "D"])
            .add_arc("A", "B", 4)
            .add_arc("B", "C", 4)
            .add_arc("C", "B", 2)
            .add_arc("C", "D", 4)
            .add_arc("D", "D", 1)
            .build())


@pytest.fixture
def parallel_causal_net():
    """A splits into B and C in parallel, D joins them."""
    return (CausalModelBuilder("parallel")
            .add_activity("A", outputs=[["B", "C"]])
            .add_activity("B", inputs=[["A"]], outputs=[["D"]])
            .add_activity("C", inputs=[["A"]], outputs=[["D"]])
            .add_activity("D", inputs=[["B", "C"]])
            .build())


@pytest.fixture
def choice_causal_net():
    """A chooses between B and C, D follows either."""
    return (CausalModelBuilder("choice")
            .add_activity("A", outputs=[["B"], ["C"]])
            .add_activity("B", inputs=[["A"]], outputs=[["D"]])
            .add_activity("C", inputs=[["A"]], outputs=[["D"]])
            .add_activity("D", inputs=[["B"], ["C"]])
            .build())


@pytest.fixture
def mixed_causal_net():
    """A is followed either by B and C together, or by D alone."""
    return (CausalModelBuilder("mixed")
            .add_activity("A", outputs=[["B", "C"], ["D"]])
            .add_activity("B", inputs=[["A"]], outputs=[["E"]])
            .add_activity("C", inputs=[["A"]], outputs=[["E"]])
            .add_activity("D", inputs=[["A"]], outputs=[["E"]])
            .add_activity("E", inputs=[["B", "C"], ["D"]])
            .build())


@pytest.fixture
def choice_causal_matrix():
    """Causal matrix where A is followed by one of B or C."""
    return (CausalModelBuilder("matrix", Semantics.MATRIX)
            .add_activity("A", outputs=[["B", "C"]])
            .add_activity("B", inputs=[["A"]], outputs=[["D"]])
            .add_activity("C", inputs=[["A"]], outputs=[["D"]])
            .add_activity("D", inputs=[["B", "C"]])
            .build())


@pytest.fixture
def skip_petri_net():
    """start -> A -> p1 -> (B | tau) -> p2 -> C -> end."""
    return (PetriNetBuilder("skip")
            .add_place("start", initial=True)
            .add_place("p1")
            .add_place("p2")
            .add_place("end", final=True)
            .add_transition("A")
            .add_transition("B")
            .add_transition("C")
            .add_transition("tau", silent=True)
            .connect_place("start", "A")
            .connect_transition("A", "p1")
            .connect_place("p1", "B", "tau")
            .connect_transition("B", "p2")
            .connect_transition("tau", "p2")
            .connect_place("p2", "C")
            .connect_transition("C", "end")
            .build())


@pytest.fixture
def event_log():
    """Structured event log with fitting and non-fitting cases."""
    return [
        {
            "case_id": "001",
            "events": [
                {"activity": "A", "timestamp": "2024-01-01T10:00:00"},
                {"activity": "B", "timestamp": "2024-01-01T11:00:00"},
                {"activity": "D", "timestamp": "2024-01-01T12:00:00"},
            ],
        },
        {
            "case_id": "002",
            "events": [
                {"activity": "A", "timestamp": "2024-01-02T10:00:00"},
                {"activity": "C", "timestamp": "2024-01-02T11:00:00"},
                {"activity": "D", "timestamp": "2024-01-02T12:00:00"},
            ],
        },
        {
            "case_id": "003",
            "events": [
                {"activity": "A", "timestamp": "2024-01-03T10:00:00"},
                {"activity": "D", "timestamp": "2024-01-03T12:00:00"},
            ],
        },
    ]


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON document to a temporary file and return its path."""
    def _write(name, data):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return str(path)
    return _write
