"""
Operator-kind tag -> gradient rule.

`RULES` is a plain mapping; the caller that walks the forward graph looks up
the rule for each node with `get_rule` and invokes it, or uses `vjp` to have
the slots allocated and the gradients returned.
"""
import inspect
import logging

from GradCatalog.core.tensor.slot import GradSlot
from GradCatalog.exceptions import UnregisteredOperator, UnsupportedAttribute
from GradCatalog.vjp import activations, composite, elementwise, indexing, manipulation, normalization, reductions

logger = logging.getLogger(__name__)

RULES = {
    # elementwise unary
    "abs": activations.abs_grad,
    "cos": activations.cos_grad,
    "erf": activations.erf_grad,
    "exp": activations.exp_grad,
    "floor": activations.floor_grad,
    "gelu": activations.gelu_grad,
    "hardswish": activations.hardswish_grad,
    "leaky_relu": activations.leaky_relu_grad,
    "log": activations.log_grad,
    "relu": activations.relu_grad,
    "sigmoid": activations.sigmoid_grad,
    "silu": activations.silu_grad,
    "sin": activations.sin_grad,
    "sqrt": activations.sqrt_grad,
    "tanh": activations.tanh_grad,
    # elementwise binary
    "add": elementwise.add_grad,
    "divide": elementwise.divide_grad,
    "elementwise_pow": elementwise.elementwise_pow_grad,
    "power": elementwise.elementwise_pow_grad,
    "maximum": elementwise.maximum_grad,
    "minimum": elementwise.minimum_grad,
    "multiply": elementwise.multiply_grad,
    "subtract": elementwise.subtract_grad,
    # reductions
    "cumsum": reductions.cumsum_grad,
    "max": reductions.max_grad,
    "prod": reductions.prod_grad,
    "sum": reductions.sum_grad,
    # shape transforms
    "assign": manipulation.assign_grad,
    "cast": manipulation.cast_grad,
    "concat": manipulation.concat_grad,
    "expand": manipulation.expand_grad,
    "pad": manipulation.pad_grad,
    "reshape": manipulation.reshape_grad,
    "roll": manipulation.roll_grad,
    "slice": manipulation.slice_grad,
    "split": manipulation.split_grad,
    "tile": manipulation.tile_grad,
    "transpose": manipulation.transpose_grad,
    # indexing
    "gather": indexing.gather_grad,
    "gather_nd": indexing.gather_nd_grad,
    "scatter": indexing.scatter_grad,
    "scatter_nd_add": indexing.scatter_nd_add_grad,
    "topk": indexing.topk_grad,
    # composite
    "dropout": composite.dropout_grad,
    "instance_norm": normalization.instance_norm_grad,
    "layer_norm": normalization.layer_norm_grad,
    "softmax": composite.softmax_grad,
}

# Rules whose slot is a list with one entry per element of a list input.
VARIADIC_SLOTS = {
    "concat": ("x_grad", "x"),
}

def get_rule(op: str):
    """Return the gradient rule registered for `op`."""
    try:
        return RULES[op]
    except KeyError:
        raise UnregisteredOperator(f"no gradient rule registered for operator '{op}'") from None

def grad_slot_names(op: str) -> tuple:
    """Names of the gradient slots of `op`'s rule, in signature order (e.g. ('x_grad', 'y_grad'))."""
    sig = inspect.signature(get_rule(op))
    return tuple(name for name in sig.parameters if name.endswith("_grad") and name != "out_grad")

def _slot_name(name: str) -> str:
    return name if name.endswith("_grad") else f"{name}_grad"

def vjp(op: str, *args, wrt=None, **attrs):
    """
    Run the gradient rule of `op` and return the requested gradients.

    Args:
        op (str): Operator-kind tag, e.g. "add" or "layer_norm".
        *args: Positional arguments of the rule (forward tensors, upstream gradient, attributes).
        wrt (str or sequence of str, optional): Inputs to differentiate with
            respect to, by input name ("x") or slot name ("x_grad"). Default:
            every differentiable input.
        **attrs: Keyword arguments of the rule.

    Returns:
        tuple: One entry per slot of the rule, in signature order. Entries not
        requested, or not written by the rule, are None. A variadic slot
        (concat) yields a list.

    Raises:
        UnregisteredOperator: If no rule exists for `op`.
        UnsupportedAttribute: If `wrt` names an input that is not differentiable.
    """
    rule = get_rule(op)
    names = grad_slot_names(op)
    if wrt is None:
        wanted = names
    else:
        if isinstance(wrt, str):
            wrt = [wrt]
        wanted = tuple(_slot_name(w) for w in wrt)
        unknown = [w for w in wanted if w not in names]
        if unknown:
            raise UnsupportedAttribute(
                f"operator '{op}' is not differentiable with respect to {', '.join(unknown)}"
            )

    slots = {}
    for name in wanted:
        variadic = VARIADIC_SLOTS.get(op)
        if variadic is not None and variadic[0] == name:
            bound = inspect.signature(rule).bind_partial(*args, **attrs)
            slots[name] = [GradSlot() for _ in bound.arguments[variadic[1]]]
        else:
            slots[name] = GradSlot()

    logger.debug("vjp %s -> %s", op, ", ".join(wanted))
    rule(*args, **attrs, **slots)

    results = []
    for name in names:
        slot = slots.get(name)
        if slot is None:
            results.append(None)
        elif isinstance(slot, list):
            results.append([s.value for s in slot])
        else:
            results.append(slot.value)
    return tuple(results)
