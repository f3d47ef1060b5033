"""Generation-parameter clamping against a model's declared maximums.

Architectural role:
    Produces the `config` block of the upstream envelope from the optional
    parameters a client sent.

Parameter handling:
    - A parameter survives only if it is present, of the right numeric kind,
      and the model declares a positive maximum for it.
    - Surviving values become `min(requested, maximum)`; values are never
      raised or defaulted.
    - Wrong-kind values (strings, booleans, floats for integer parameters,
      NaN or infinite reals) are treated as absent.

Determinism:
    Pure function of its inputs; the input mapping is never mutated.
"""

import math
from typing import Mapping

from fragment_gateway.llm.models import ModelDescriptor


REAL_PARAMETERS = ("temperature", "presence_penalty", "frequency_penalty", "top_p")
INTEGER_PARAMETERS = ("max_tokens", "top_k")
PARAMETER_NAMES = REAL_PARAMETERS + INTEGER_PARAMETERS


def _coerce(name: str, value):
    # bool is an int subclass but never a valid generation parameter.
    if value is None or isinstance(value, bool):
        return None
    if name in INTEGER_PARAMETERS:
        return value if isinstance(value, int) else None
    if isinstance(value, (int, float)):
        value = float(value)
        # NaN and infinities cannot be clamped or sent as JSON.
        return value if math.isfinite(value) else None
    return None


def constrain_parameters(params: Mapping[str, object], descriptor: ModelDescriptor) -> dict | None:
    """Clamp requested generation parameters to the model's bounds.

    Args:
        params: Parameter name to requested value (`None` means not sent).
        descriptor: Model whose `bounds` apply.

    Returns:
        `None` when the model declares no bounds at all, otherwise a new dict
        holding only the accepted, clamped parameters (possibly empty).
    """
    bounds = descriptor.bounds
    if bounds.is_empty:
        return None

    constrained = {}
    for name in PARAMETER_NAMES:
        maximum = bounds.maximum_for(name)
        if not maximum or maximum <= 0:
            continue
        value = _coerce(name, params.get(name))
        if value is None:
            continue
        clamped = min(value, maximum)
        constrained[name] = float(clamped) if name in REAL_PARAMETERS else int(clamped)
    return constrained
