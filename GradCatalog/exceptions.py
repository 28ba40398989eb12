"""
Exceptions raised by gradient rules.

Rules never catch these themselves: a failure at one node aborts the whole
gradient computation and is reported to whoever invoked the rule.
"""


class VJPError(Exception):
    """Base class for all gradient-rule failures."""
    pass


class ShapeMismatch(VJPError, ValueError):
    """Operand shapes violate the broadcast or layout preconditions of a rule."""
    pass


class UnsupportedAttribute(VJPError, ValueError):
    """A gradient was requested for a non-differentiable input, or an attribute is out of its domain."""
    pass


class UnregisteredOperator(VJPError, KeyError):
    """No gradient rule is registered for an operator tag."""
    pass
