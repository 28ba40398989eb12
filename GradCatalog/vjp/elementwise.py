"""
Gradient rules for elementwise binary operations with broadcasting.

Every rule computes the gradient at the broadcast output shape and hands it to
`reduce_to_shape`, which sums over the broadcast axes of each operand. When an
operand already has the output shape nothing is reduced and, for add and
subtract, the upstream gradient itself is written to the slot.
"""
from GradCatalog.core.tensor import ops
from GradCatalog.core.tensor.slot import set_output
from GradCatalog.core.tensor.utils import reduce_to_shape

def add_grad(x, y, out_grad, x_grad=None, y_grad=None):
    """
    Gradient of out = x + y.

    Args:
        x (ndarray): Forward first operand.
        y (ndarray): Forward second operand.
        out_grad (ndarray): Upstream gradient, shaped like broadcast(x, y).
        x_grad (GradSlot, optional): Destination for dL/dx.
        y_grad (GradSlot, optional): Destination for dL/dy.
    """
    if y_grad is not None:
        set_output(reduce_to_shape(out_grad, y.shape), y_grad)
    if x_grad is not None:
        set_output(reduce_to_shape(out_grad, x.shape), x_grad)

def subtract_grad(x, y, out_grad, x_grad=None, y_grad=None):
    """Gradient of out = x - y."""
    if y_grad is not None:
        set_output(reduce_to_shape(ops.scale(out_grad, -1.0), y.shape), y_grad)
    if x_grad is not None:
        set_output(reduce_to_shape(out_grad, x.shape), x_grad)

def multiply_grad(x, y, out_grad, x_grad=None, y_grad=None):
    """Gradient of out = x * y."""
    if x_grad is not None:
        set_output(reduce_to_shape(out_grad * y, x.shape), x_grad)
    if y_grad is not None:
        set_output(reduce_to_shape(out_grad * x, y.shape), y_grad)

def divide_grad(x, y, out, out_grad, x_grad=None, y_grad=None):
    """
    Gradient of out = x / y.

    dx = dout / y and dy = -dout * x / y^2, the latter computed as
    -dout * out / y.
    """
    if y_grad is not None:
        set_output(reduce_to_shape(-(out_grad * out) / y, y.shape), y_grad)
    if x_grad is not None:
        set_output(reduce_to_shape(out_grad / y, x.shape), x_grad)

def elementwise_pow_grad(x, y, out_grad, x_grad=None, y_grad=None):
    """
    Gradient of out = x ** y.

    dx = y * x^(y-1) * dout and dy = ln(x) * x^y * dout. The exponent
    gradient is only defined for positive bases.
    """
    if y_grad is not None:
        dy_res = ops.log(x) * ops.elementwise_pow(x, y) * out_grad
        set_output(reduce_to_shape(dy_res, y.shape), y_grad)
    if x_grad is not None:
        dx_res = y * ops.elementwise_pow(x, y - 1.0) * out_grad
        set_output(reduce_to_shape(dx_res, x.shape), x_grad)

def maximum_grad(x, y, out_grad, x_grad=None, y_grad=None):
    """
    Gradient of out = maximum(x, y).

    x receives the gradient where x > y and y where x <= y, so a tie is
    credited to y only.
    """
    if x_grad is not None:
        mask = ops.cast(ops.greater_than(x, y), out_grad.dtype)
        set_output(reduce_to_shape(out_grad * mask, x.shape), x_grad)
    if y_grad is not None:
        mask = ops.cast(ops.less_equal(x, y), out_grad.dtype)
        set_output(reduce_to_shape(out_grad * mask, y.shape), y_grad)

def minimum_grad(x, y, out_grad, x_grad=None, y_grad=None):
    """
    Gradient of out = minimum(x, y).

    x receives the gradient where x < y and y where x >= y.
    """
    if x_grad is not None:
        mask = ops.cast(ops.less_than(x, y), out_grad.dtype)
        set_output(reduce_to_shape(out_grad * mask, x.shape), x_grad)
    if y_grad is not None:
        mask = ops.cast(ops.greater_equal(x, y), out_grad.dtype)
        set_output(reduce_to_shape(out_grad * mask, y.shape), y_grad)
