from __future__ import annotations
import functools
import inspect
import logging

import GradCatalog.core.backend.backend as backend
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import GradSlot, set_output

logger = logging.getLogger(__name__)

# Element type -> promotion policy. "promote" types are computed in the
# backend compute dtype (float32 by default) and cast back afterwards.
PROMOTION_POLICY = {
    "float16": "promote",
    "bfloat16": "promote",
    "float32": "keep",
    "float64": "keep",
}

def _dtype_name(dtype) -> str:
    return getattr(dtype, "name", None) or str(dtype)

def promotion_target(value):
    """
    Return the dtype `value` should be promoted to, or None.

    Only arrays whose element type has the "promote" policy qualify, and only
    while promotion is enabled on the backend.
    """
    if not backend.is_promotion_enabled():
        return None
    if not (hasattr(value, "dtype") and hasattr(value, "shape")):
        return None
    if PROMOTION_POLICY.get(_dtype_name(value.dtype)) != "promote":
        return None
    return backend.get_compute_dtype()

def _first_present(arguments, sources):
    if isinstance(sources, str):
        sources = (sources,)
    for name in sources:
        value = arguments.get(name)
        if value is not None:
            return value
    return None

def promote_precision(**slot_sources):
    """
    Wrap a gradient rule with precision promotion.

    Narrow floating array arguments are cast to the compute dtype, the rule
    body runs on the promoted values into temporary slots, and every written
    gradient is cast back to the element type of its source input.

    Args:
        **slot_sources: For each slot parameter of the rule, the name of the
            input whose element type its gradient must have. A tuple of names
            picks the first input that is present (not None).

    Returns:
        callable: Decorator producing the wrapped rule.

    Example:
        >>> @promote_precision(x_grad="x")
        ... def exp_grad(out, out_grad, x_grad=None): ...
    """
    def decorator(rule):
        sig = inspect.signature(rule)

        @functools.wraps(rule)
        def wrapper(*args, **kwargs):
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()
            arguments = dict(bound.arguments)
            slots = {name: arguments.get(name) for name in slot_sources}
            if all(slot is None for slot in slots.values()):
                return None

            promoted = {}
            for name, value in arguments.items():
                if name in slot_sources:
                    continue
                target = promotion_target(value)
                if target is not None:
                    promoted[name] = ops.cast(value, target)
            if not promoted:
                return rule(**arguments)

            logger.debug("%s: promoting %s", rule.__name__, sorted(promoted))
            temps = {name: (GradSlot() if slot is not None else None) for name, slot in slots.items()}
            call_args = dict(arguments)
            call_args.update(promoted)
            call_args.update(temps)
            rule(**call_args)

            for name, slot in slots.items():
                tmp = temps[name]
                if tmp is None or not tmp.written:
                    continue
                source = _first_present(arguments, slot_sources[name])
                dtype = source.dtype if source is not None else tmp.value.dtype
                set_output(ops.cast(tmp.value, dtype), slot)
            return None

        return wrapper
    return decorator
