"""
Translations of causal models.

Causal Net <-> Causal Matrix conversions apply the connection algebra to
the inputs and outputs of every activity. Approximations are attached to
the resulting model as fidelity flags and logged as warnings; they never
raise.
"""

import logging
from typing import Callable, Set

from ..algebra import (
    ConnectionConversion,
    to_causal_matrix_connections,
    to_causal_net_connections,
)
from ..model.causal import (
    CausalActivity,
    CausalModel,
    FidelityFlag,
    Semantics,
    sorted_connections,
)
from ..model.petrinet import PetriNet, PetriNetBuilder
from ..reduce import reduce_net

logger = logging.getLogger(__name__)

FIDELITY_MESSAGES = {
    FidelityFlag.BEHAVIOR_LOST: (
        "the target formalism cannot represent every binding (a subset contained "
        "in another one, or a cyclic dependency between three or more subsets)"
    ),
    FidelityFlag.BEHAVIOR_ADDED: (
        "overlapping subsets forced the translation to allow extra bindings"
    ),
}


def _convert(
    model: CausalModel,
    target: Semantics,
    conversion: Callable[..., ConnectionConversion]
) -> CausalModel:
    flags: Set[FidelityFlag] = set(model.fidelity)
    activities = []
    for activity in sorted(model.activities):
        inputs = conversion(activity.inputs)
        outputs = conversion(activity.outputs)
        flags |= inputs.flags | outputs.flags
        activities.append(CausalActivity(
            activity.id,
            inputs.connections,
            outputs.connections,
            activity.name
        ))

    for flag in sorted(flags - model.fidelity, key=lambda f: f.value):
        logger.warning(
            f"Translation of '{model.id}' to {target.value} is not exact: "
            f"{FIDELITY_MESSAGES[flag]}"
        )

    return CausalModel(
        id=model.id,
        activities=frozenset(activities),
        semantics=target,
        fidelity=frozenset(flags),
    )


def causal_net_to_causal_matrix(model: CausalModel) -> CausalModel:
    """
    Translate a Causal Net to a Causal Matrix.

    Args:
        model: A model with Causal Net semantics

    Returns:
        The Causal Matrix, flagged with any approximation introduced
    """
    return _convert(model, Semantics.MATRIX, to_causal_matrix_connections)


def causal_matrix_to_causal_net(model: CausalModel) -> CausalModel:
    """
    Translate a Causal Matrix to a Causal Net.

    Args:
        model: A model with Causal Matrix semantics

    Returns:
        The Causal Net, flagged with any approximation introduced
    """
    return _convert(model, Semantics.NET, to_causal_net_connections)


def input_place_of(activity_id: str) -> str:
    return f"IN_{activity_id}"


def output_place_of(activity_id: str) -> str:
    return f"OUT_{activity_id}"


def link_place(source_id: str, target_id: str) -> str:
    return f"PLACE_{source_id}_to_{target_id}"


def causal_net_to_petri_net(model: CausalModel) -> PetriNet:
    """
    Translate a Causal Net to a Petri net.

    Creates:
    - A transition, an input place and an output place per activity. The
      input place of the start activity is initial and the output place of
      the end activity is final.
    - A silent transition per input and per output binding.
    - A link place per connected pair of activities, shared by the output
      binding of the source and the input binding of the target.

    For an activity A with outputs ``{{B}, {C, D}}`` the output place of A
    feeds two silent transitions: the first produces a token in the link
    place A->B, the second in the link places A->C and A->D.

    The net is reduced before returning.

    Args:
        model: A model with Causal Net semantics

    Returns:
        The reduced Petri net
    """
    builder = PetriNetBuilder(model.id)
    start = model.start_activity
    end = model.end_activity
    activities = sorted(model.activities)

    for activity in activities:
        (builder
            .add_transition(activity.id, activity.name)
            .add_place(input_place_of(activity.id), initial=activity == start)
            .connect_place(input_place_of(activity.id), activity.id)
            .add_place(output_place_of(activity.id), final=activity == end)
            .connect_transition(activity.id, output_place_of(activity.id)))

    index = 0
    for activity in activities:
        for binding in sorted_connections(activity.inputs):
            silent_id = f"tau_IN_{index}_{activity.id}"
            builder.add_transition(silent_id, silent=True)
            builder.connect_transition(silent_id, input_place_of(activity.id))
            for input_id in sorted(binding):
                place_id = link_place(input_id, activity.id)
                if not builder.has_place(place_id):
                    builder.add_place(place_id)
                builder.connect_place(place_id, silent_id)
            index += 1

    index = 0
    for activity in activities:
        for binding in sorted_connections(activity.outputs):
            silent_id = f"tau_OUT_{index}_{activity.id}"
            builder.add_transition(silent_id, silent=True)
            builder.connect_place(output_place_of(activity.id), silent_id)
            for output_id in sorted(binding):
                place_id = link_place(activity.id, output_id)
                if not builder.has_place(place_id):
                    builder.add_place(place_id)
                builder.connect_transition(silent_id, place_id)
            index += 1

    return reduce_net(builder.build())
