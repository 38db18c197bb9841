"""
Translations from and to directly-follows graphs.
"""

import logging

from ..model.base import WeightedArc
from ..model.causal import CausalModel
from ..model.dfg import DirectlyFollowsGraph
from ..model.petrinet import PetriNet, PetriNetBuilder
from ..reduce import reduce_net

logger = logging.getLogger(__name__)

START_PLACE = "StartPlace"
END_PLACE = "EndPlace"


def input_place_of(activity_id: str) -> str:
    return f"I_{activity_id}"


def output_place_of(activity_id: str) -> str:
    return f"O_{activity_id}"


def dfg_to_petri_net(dfg: DirectlyFollowsGraph) -> PetriNet:
    """
    Translate a directly-follows graph to a Petri net.

    Every activity becomes ``input place -> transition -> output place``.
    Every arc ``(u, v)`` becomes a silent transition from the output place of
    ``u`` to the input place of ``v``. A global initial place feeds the
    activities without predecessors and a global final place collects the
    activities without successors. The net is reduced before returning.

    Args:
        dfg: The graph to translate

    Returns:
        The reduced Petri net
    """
    builder = PetriNetBuilder(dfg.id)

    for activity in sorted(dfg.activities):
        (builder
            .add_place(input_place_of(activity.id))
            .add_transition(activity.id, activity.name)
            .add_place(output_place_of(activity.id))
            .connect_place(input_place_of(activity.id), activity.id)
            .connect_transition(activity.id, output_place_of(activity.id)))

    for arc in sorted(dfg.arcs):
        transition_id = f"{arc.source.id}->{arc.target.id}"
        (builder
            .add_transition(transition_id, f"{arc.source.name}->{arc.target.name}", silent=True)
            .connect_place(output_place_of(arc.source.id), transition_id)
            .connect_transition(transition_id, input_place_of(arc.target.id)))

    builder.add_place(START_PLACE, initial=True)
    for activity in dfg.sources():
        transition_id = f"start->{activity.id}"
        (builder
            .add_transition(transition_id, f"start->{activity.name}", silent=True)
            .connect_place(START_PLACE, transition_id)
            .connect_transition(transition_id, input_place_of(activity.id)))

    builder.add_place(END_PLACE, final=True)
    for activity in dfg.sinks():
        transition_id = f"{activity.id}->end"
        (builder
            .add_transition(transition_id, f"{activity.name}->end", silent=True)
            .connect_place(output_place_of(activity.id), transition_id)
            .connect_transition(transition_id, END_PLACE))

    net = builder.build()
    logger.debug(
        f"Translated DFG '{dfg.id}' to a Petri net with {len(net.places)} places "
        f"and {len(net.transitions)} transitions before reduction"
    )
    return reduce_net(net)


def causal_model_to_dfg(model: CausalModel) -> DirectlyFollowsGraph:
    """
    Translate a causal model to a directly-follows graph.

    The graph keeps the activities of the model and one arc of weight 1 for
    every causal arc.

    Args:
        model: Causal net or causal matrix

    Returns:
        The directly-follows graph
    """
    return DirectlyFollowsGraph(
        id=model.id,
        activities=frozenset(a.activity for a in model.activities),
        arcs=frozenset(WeightedArc(arc.source, arc.target, 1.0) for arc in model.arcs),
    )
