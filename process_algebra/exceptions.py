"""
Error hierarchy for process model algebra.

All errors derive from :class:`ProcessAlgebraError`. The concrete classes also
inherit from the closest builtin (``ValueError``, ``LookupError``,
``TypeError``, ``TimeoutError``) so callers can catch them generically.
"""

from typing import Optional


class ProcessAlgebraError(Exception):
    """Base class for all process algebra errors."""


class ModelValidationError(ProcessAlgebraError, ValueError):
    """Raised when a model violates a structural requirement."""

    def __init__(self, message: str, element_id: Optional[str] = None):
        super().__init__(message)
        self.element_id = element_id


class DFGValidationError(ModelValidationError):
    """
    Raised when a directly-follows graph is not suitable for filtering.

    Attributes:
        violated_property: One of ``connected``, ``single_root``,
            ``single_sink`` or ``sound``
    """

    CONNECTED = "connected"
    SINGLE_ROOT = "single_root"
    SINGLE_SINK = "single_sink"
    SOUND = "sound"

    def __init__(
        self,
        message: str,
        violated_property: str,
        element_id: Optional[str] = None
    ):
        super().__init__(message, element_id)
        self.violated_property = violated_property


class ElementNotFoundError(ProcessAlgebraError, LookupError):
    """Raised when a lookup references an element absent from a model."""

    element_kind = "element"

    def __init__(self, element_id: str, model_id: Optional[str] = None):
        where = f" in model '{model_id}'" if model_id else ""
        super().__init__(f"{self.element_kind.capitalize()} '{element_id}' not found{where}")
        self.element_id = element_id
        self.model_id = model_id


class ActivityNotFoundError(ElementNotFoundError):
    element_kind = "activity"


class ArcNotFoundError(ElementNotFoundError):
    element_kind = "arc"


class PlaceNotFoundError(ElementNotFoundError):
    element_kind = "place"


class TransitionNotFoundError(ElementNotFoundError):
    element_kind = "transition"


class TranslationNotAvailableError(ProcessAlgebraError, TypeError):
    """Raised when no translation exists between two model types."""


class ReplayTimeoutError(ProcessAlgebraError, TimeoutError):
    """
    Raised when a replay search exceeds its wall-clock budget.

    A timeout says nothing about whether the trace fits the model.
    """

    def __init__(self, timeout: float, explored_states: int):
        super().__init__(
            f"Replay search exceeded {timeout}s after exploring {explored_states} states"
        )
        self.timeout = timeout
        self.explored_states = explored_states
