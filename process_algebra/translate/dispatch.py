"""
Translation between any pair of supported formalisms.

Each function accepts any process model and returns it in the requested
formalism, composing the direct translations when no direct one exists.
"""

import logging
from typing import Union

from ..exceptions import TranslationNotAvailableError
from ..model.causal import CausalModel, Semantics
from ..model.dfg import DirectlyFollowsGraph
from ..model.petrinet import PetriNet
from .causal import causal_matrix_to_causal_net, causal_net_to_causal_matrix, causal_net_to_petri_net
from .dfg import causal_model_to_dfg, dfg_to_petri_net
from .petrinet import petri_net_to_causal_net

logger = logging.getLogger(__name__)

ProcessModel = Union[DirectlyFollowsGraph, CausalModel, PetriNet]


def _not_available(model: object, target: str) -> TranslationNotAvailableError:
    return TranslationNotAvailableError(
        f"Can not translate from {type(model).__name__} to {target}"
    )


def to_petri_net(model: ProcessModel) -> PetriNet:
    """
    Get a process model as a Petri net.

    Raises:
        TranslationNotAvailableError: If the model type is not supported
    """
    if isinstance(model, PetriNet):
        return model
    if isinstance(model, DirectlyFollowsGraph):
        return dfg_to_petri_net(model)
    if isinstance(model, CausalModel):
        return causal_net_to_petri_net(to_causal_net(model))
    raise _not_available(model, "PetriNet")


def to_causal_net(model: ProcessModel) -> CausalModel:
    """
    Get a process model as a Causal Net.

    Raises:
        TranslationNotAvailableError: If the model type is not supported
    """
    if isinstance(model, CausalModel):
        if model.semantics == Semantics.NET:
            return model
        return causal_matrix_to_causal_net(model)
    if isinstance(model, PetriNet):
        return petri_net_to_causal_net(model)
    if isinstance(model, DirectlyFollowsGraph):
        return petri_net_to_causal_net(dfg_to_petri_net(model))
    raise _not_available(model, "CausalNet")


def to_causal_matrix(model: ProcessModel) -> CausalModel:
    """
    Get a process model as a Causal Matrix.

    Raises:
        TranslationNotAvailableError: If the model type is not supported
    """
    if isinstance(model, CausalModel) and model.semantics == Semantics.MATRIX:
        return model
    if isinstance(model, (CausalModel, PetriNet, DirectlyFollowsGraph)):
        return causal_net_to_causal_matrix(to_causal_net(model))
    raise _not_available(model, "CausalMatrix")


def to_directly_follows_graph(model: ProcessModel) -> DirectlyFollowsGraph:
    """
    Get a process model as a directly-follows graph.

    Raises:
        TranslationNotAvailableError: If the model type is not supported
    """
    if isinstance(model, DirectlyFollowsGraph):
        return model
    if isinstance(model, CausalModel):
        return causal_model_to_dfg(model)
    if isinstance(model, PetriNet):
        return causal_model_to_dfg(petri_net_to_causal_net(model))
    raise _not_available(model, "DirectlyFollowsGraph")


TRANSLATORS = {
    "petri_net": to_petri_net,
    "causal_net": to_causal_net,
    "causal_matrix": to_causal_matrix,
    "dfg": to_directly_follows_graph,
}


def translate(model: ProcessModel, target: str) -> ProcessModel:
    """
    Translate a model to the formalism named ``target``.

    Args:
        model: Any supported process model
        target: One of ``petri_net``, ``causal_net``, ``causal_matrix`` or ``dfg``

    Returns:
        The translated model

    Raises:
        TranslationNotAvailableError: If the target or the model type is not supported
    """
    try:
        translator = TRANSLATORS[target]
    except KeyError:
        raise TranslationNotAvailableError(
            f"Unknown target formalism '{target}', expected one of {sorted(TRANSLATORS)}"
        ) from None
    logger.debug(f"Translating {type(model).__name__} '{getattr(model, 'id', '')}' to {target}")
    return translator(model)
