"""
Dictionary (JSON) representation of process models.

Every model serializes to a dictionary carrying a ``type`` field:

- ``dfg``: ``activities`` [{id, name}], ``arcs`` [{source, target, weight}]
- ``causal_net`` / ``causal_matrix``: ``activities`` [{id, name, inputs,
  outputs}] with connections as lists of id lists, and ``fidelity`` flags
- ``petri_net``: ``places`` [{id, name, initial, final}], ``transitions``
  [{id, name, silent}], ``arcs`` [{source, target}]
"""

import logging
from typing import Any, Callable, Dict

import numpy as np

from .exceptions import ModelValidationError
from .model import (
    CausalModel,
    CausalModelBuilder,
    DFGBuilder,
    DirectlyFollowsGraph,
    FidelityFlag,
    PetriNet,
    PetriNetBuilder,
    Semantics,
)
from .translate import ProcessModel

logger = logging.getLogger(__name__)


def convert_for_json(obj: Any) -> Any:
    """Convert objects to JSON-serializable types, including numpy types."""
    if isinstance(obj, dict):
        return {str(k): convert_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple, set, frozenset)):
        return [convert_for_json(item) for item in obj]
    elif isinstance(obj, (np.integer,)):
        return int(obj)
    elif isinstance(obj, (np.floating,)):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.bool_):
        return bool(obj)
    else:
        return obj


def model_to_dict(model: ProcessModel) -> Dict[str, Any]:
    """
    Convert any process model to its dictionary representation.

    Raises:
        ModelValidationError: If the object is not a process model
    """
    if isinstance(model, (DirectlyFollowsGraph, CausalModel, PetriNet)):
        return convert_for_json(model.to_dict())
    raise ModelValidationError(f"Can not serialize {type(model).__name__}")


def _dfg_from_dict(data: Dict[str, Any]) -> DirectlyFollowsGraph:
    builder = DFGBuilder(str(data.get("id", "dfg")))
    for activity in data.get("activities", []):
        builder.add_activity(str(activity["id"]), activity.get("name", ""))
    for arc in data.get("arcs", []):
        builder.add_arc(str(arc["source"]), str(arc["target"]), float(arc.get("weight", 1.0)))
    return builder.build()


def _causal_from_dict(data: Dict[str, Any]) -> CausalModel:
    semantics = Semantics(data["type"])
    builder = CausalModelBuilder(str(data.get("id", "causal")), semantics)
    for activity in data.get("activities", []):
        builder.add_activity(
            str(activity["id"]),
            inputs=activity.get("inputs", []),
            outputs=activity.get("outputs", []),
            name=activity.get("name", ""),
        )
    model = builder.build()
    fidelity = data.get("fidelity", [])
    if fidelity:
        model = model.copy(fidelity=frozenset(FidelityFlag(flag) for flag in fidelity))
    return model


def _petri_net_from_dict(data: Dict[str, Any]) -> PetriNet:
    builder = PetriNetBuilder(str(data.get("id", "petri_net")))
    for place in data.get("places", []):
        builder.add_place(
            str(place["id"]),
            place.get("name", ""),
            initial=bool(place.get("initial", False)),
            final=bool(place.get("final", False)),
        )
    for transition in data.get("transitions", []):
        builder.add_transition(
            str(transition["id"]),
            transition.get("name", ""),
            silent=bool(transition.get("silent", False)),
        )
    for arc in data.get("arcs", []):
        builder.add_arc(str(arc["source"]), str(arc["target"]))
    return builder.build()


MODEL_READERS: Dict[str, Callable[[Dict[str, Any]], ProcessModel]] = {
    "dfg": _dfg_from_dict,
    Semantics.NET.value: _causal_from_dict,
    Semantics.MATRIX.value: _causal_from_dict,
    "petri_net": _petri_net_from_dict,
}


def model_from_dict(data: Dict[str, Any]) -> ProcessModel:
    """
    Rebuild a process model from its dictionary representation.

    Args:
        data: Dictionary produced by :func:`model_to_dict`

    Returns:
        The process model

    Raises:
        ModelValidationError: If the type is unknown or a field is missing
            or invalid
        ElementNotFoundError: If an arc references an undefined node
    """
    model_type = data.get("type") if isinstance(data, dict) else None
    reader = MODEL_READERS.get(model_type)
    if reader is None:
        raise ModelValidationError(
            f"Unknown model type {model_type!r}, expected one of {sorted(MODEL_READERS)}"
        )

    try:
        model = reader(data)
    except ModelValidationError:
        raise
    except KeyError as e:
        raise ModelValidationError(f"Missing field {e} in {model_type} document") from e
    except (TypeError, ValueError) as e:
        raise ModelValidationError(f"Invalid {model_type} document: {e}") from e

    logger.debug(f"Loaded {model_type} '{model.id}'")
    return model
